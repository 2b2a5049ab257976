"""
Unit tests for xnotid.ui.presenter.NotificationPresenter.

The presenter is exercised with a fake TimerService, so no event loop or
display is needed. These tests validate:
- effective timeouts and expiry scheduling
- popup tracking, replacement rebuilds and the popup cap
- outbound signals for expire/dismiss/action/card/clear-all
- DND, center toggling and hover pause
"""

from __future__ import annotations

import json
from typing import Callable, Dict, Tuple

from xnotid.config.yaml_config import BehaviorConfig, DaemonConfig, PopupConfig
from xnotid.core.state_store import NotificationStore
from xnotid.domain.models import (
    Action,
    CardChoice,
    CloseReason,
    MultipleChoiceCard,
    Notification,
    PermissionCard,
    Urgency,
)
from xnotid.runtime.bridge import ActionInvokedSignal, Bridge, NotificationClosedSignal, UiCommand
from xnotid.ui.presenter import NotificationPresenter


class FakeTimers:
    """Records timers; tests fire them explicitly."""

    def __init__(self) -> None:
        self.pending: Dict[int, Tuple[int, Callable[[], None]]] = {}

    def start(self, nid: int, seconds: int, callback: Callable[[], None]) -> None:
        self.pending[nid] = (seconds, callback)

    def cancel(self, nid: int) -> bool:
        return self.pending.pop(nid, None) is not None

    def fire(self, nid: int) -> None:
        _, cb = self.pending.pop(nid)
        cb()


def _setup(cfg: DaemonConfig | None = None):
    store = NotificationStore()
    bridge = Bridge.create()
    timers = FakeTimers()
    presenter = NotificationPresenter(store, bridge, cfg or DaemonConfig(), timers)
    return presenter, store, bridge, timers


def _n(summary: str = "s", **kw) -> Notification:
    return Notification(app_name="app", summary=summary, **kw)


def test_effective_timeout() -> None:
    """0 is persistent, negative uses urgency defaults, positive is ms."""
    presenter, _, _, _ = _setup()

    assert presenter.effective_timeout(_n(timeout=0)) == 0
    assert presenter.effective_timeout(_n(timeout=-1)) == 10
    assert presenter.effective_timeout(_n(timeout=-1, urgency=Urgency.LOW)) == 5
    assert presenter.effective_timeout(_n(timeout=-1, urgency=Urgency.CRITICAL)) == 0
    assert presenter.effective_timeout(_n(timeout=3500)) == 3
    assert presenter.effective_timeout(_n(timeout=200)) == 1


def test_refresh_tracks_popups_and_schedules_expiry() -> None:
    """New popups get a timer unless persistent or acknowledge-only."""
    presenter, store, _, timers = _setup()
    a = store.add(_n("timed"))
    b = store.add(_n("sticky", timeout=0))
    c = store.add(_n("ack", acknowledge_to_dismiss=True))

    view = presenter.refresh()

    assert [n.id for n in view.popups] == [c, b, a]
    assert presenter.popup_ids == {a, b, c}
    assert set(timers.pending) == {a}
    assert timers.pending[a][0] == 10


def test_expire_closes_and_signals() -> None:
    """A fired timer closes the notification with reason EXPIRED."""
    presenter, store, bridge, timers = _setup()
    changes = []
    store.set_on_change(lambda: changes.append(1))
    nid = store.add(_n())
    presenter.refresh()

    timers.fire(nid)

    assert store.get(nid) is None
    assert bridge.signals.drain() == [NotificationClosedSignal(id=nid, reason=CloseReason.EXPIRED)]
    assert changes
    assert presenter.refresh().popups == ()


def test_dismiss_unknown_emits_nothing() -> None:
    """Dismissing an id that is gone sends no signal."""
    presenter, _, bridge, _ = _setup()
    assert presenter.dismiss(5) is False
    assert bridge.signals.drain() == []


def test_invoke_action_signals_then_closes() -> None:
    """ActionInvoked precedes NotificationClosed(DISMISSED)."""
    presenter, store, bridge, timers = _setup()
    nid = store.add(_n(actions=(Action("reply", "Reply"),)))
    presenter.refresh()

    assert presenter.invoke_action(nid, "reply") is True

    assert bridge.signals.drain() == [
        ActionInvokedSignal(id=nid, action_key="reply"),
        NotificationClosedSignal(id=nid, reason=CloseReason.DISMISSED),
    ]
    assert nid not in timers.pending
    assert len(store) == 0


def test_click_default_action_and_click_to_dismiss() -> None:
    """Body click runs "default" if present, else dismisses unless disabled."""
    presenter, store, bridge, _ = _setup()
    with_default = store.add(_n(actions=(Action("default", "Open"),)))
    plain = store.add(_n())
    ack = store.add(_n(acknowledge_to_dismiss=True))

    assert presenter.click(with_default) is True
    assert bridge.signals.drain()[0] == ActionInvokedSignal(id=with_default, action_key="default")
    assert presenter.click(plain) is True
    assert presenter.click(ack) is False
    assert store.get(ack) is not None

    cfg = DaemonConfig(behavior=BehaviorConfig(click_to_dismiss=False))
    presenter2, store2, _, _ = _setup(cfg)
    nid = store2.add(_n())
    assert presenter2.click(nid) is False


def test_answer_permission_card() -> None:
    """Permission cards answer with the ``allow`` action key."""
    presenter, store, bridge, _ = _setup()
    nid = store.add(_n(card=PermissionCard("Allow?"), acknowledge_to_dismiss=True))

    assert presenter.answer_card(nid) is True
    assert bridge.signals.drain()[0] == ActionInvokedSignal(id=nid, action_key="allow")


def test_answer_multiple_choice_card() -> None:
    """Multiple-choice answers are sent as a JSON action key."""
    presenter, store, bridge, _ = _setup()
    card = MultipleChoiceCard("Pick", (CardChoice("a", "A"), CardChoice("b", "B")))
    nid = store.add(_n(card=card, acknowledge_to_dismiss=True))

    presenter.answer_card(nid, selected_ids=("b",))

    sig = bridge.signals.drain()[0]
    assert json.loads(sig.action_key)["selected"] == [{"id": "b", "label": "B"}]
    assert presenter.answer_card(nid) is False


def test_replacement_is_rebuilt_and_rescheduled() -> None:
    """A replaced id is reported once and gets a fresh timer."""
    presenter, store, _, timers = _setup()
    nid = store.add(_n("v1", timeout=5000))
    presenter.refresh()
    assert timers.pending[nid][0] == 5

    store.add(_n("v2", timeout=8000), replaces_id=nid)
    view = presenter.refresh()

    assert view.rebuilt_ids == (nid,)
    assert view.popups[0].summary == "v2"
    assert timers.pending[nid][0] == 8
    assert presenter.refresh().rebuilt_ids == ()


def test_popup_cap() -> None:
    """Only max_visible popups are shown; the rest are counted."""
    presenter, store, _, _ = _setup(DaemonConfig(popup=PopupConfig(max_visible=2)))
    for i in range(5):
        store.add(_n(str(i)))

    view = presenter.refresh()

    assert [n.summary for n in view.popups] == ["4", "3"]
    assert view.queued_popups == 3
    assert len(view.center) == 5


def test_dnd_hides_non_critical_popups() -> None:
    """Under DND only critical notifications become popups."""
    presenter, store, _, _ = _setup()
    assert presenter.toggle_dnd() is True
    store.add(_n("quiet"))
    crit = store.add(_n("loud", urgency=Urgency.CRITICAL))

    view = presenter.refresh()

    assert [n.id for n in view.popups] == [crit]
    assert view.dnd is True
    assert len(view.center) == 2


def test_dnd_disabled_stays_off() -> None:
    """With dnd_enabled false, toggling never turns DND on."""
    presenter, store, _, _ = _setup(DaemonConfig(behavior=BehaviorConfig(dnd_enabled=False)))
    assert presenter.toggle_dnd() is False
    assert store.dnd is False


def test_clear_all_signals_each() -> None:
    """clear_all emits one NotificationClosed per removed notification."""
    presenter, store, bridge, timers = _setup()
    ids = [store.add(_n(str(i))) for i in range(3)]
    presenter.refresh()

    assert presenter.clear_all() == 3

    sigs = bridge.signals.drain()
    assert sorted(s.id for s in sigs) == sorted(ids)
    assert all(s.reason is CloseReason.DISMISSED for s in sigs)
    assert timers.pending == {}
    assert presenter.popup_ids == set()


def test_toggle_center_command() -> None:
    """TOGGLE_CENTER flips center visibility."""
    presenter, _, _, _ = _setup()

    presenter.handle_command(UiCommand.TOGGLE_CENTER)
    assert presenter.refresh().center_visible is True
    presenter.handle_command(UiCommand.TOGGLE_CENTER)
    assert presenter.center_visible is False


def test_hover_pause_and_resume() -> None:
    """Hovering cancels the timer; leaving restarts it."""
    presenter, store, _, timers = _setup()
    nid = store.add(_n())
    presenter.refresh()

    presenter.pause_timeout(nid)
    assert nid not in timers.pending
    presenter.resume_timeout(nid)
    assert timers.pending[nid][0] == 10

    presenter2, store2, _, timers2 = _setup(DaemonConfig(behavior=BehaviorConfig(hover_pause=False)))
    nid2 = store2.add(_n())
    presenter2.refresh()
    presenter2.pause_timeout(nid2)
    assert nid2 in timers2.pending
