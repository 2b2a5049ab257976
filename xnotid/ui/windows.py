from __future__ import annotations

from typing import Dict, Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QGuiApplication
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QPushButton,
    QScrollArea,
    QVBoxLayout,
    QWidget,
)

from xnotid.config.yaml_config import PopupConfig
from xnotid.domain.models import Notification
from xnotid.ui.presenter import NotificationPresenter, PresenterView
from xnotid.ui.widgets.notification_widget import NotificationWidget


def _connect(w: NotificationWidget, presenter: NotificationPresenter) -> None:
    w.dismissed.connect(presenter.dismiss)
    w.clicked.connect(presenter.click)
    w.action_invoked.connect(presenter.invoke_action)
    w.card_answered.connect(presenter.answer_card)


def _clear_layout(layout: QVBoxLayout) -> None:
    while layout.count():
        item = layout.takeAt(0)
        w = item.widget()
        if w is not None:
            w.deleteLater()


class PopupWindow(QWidget):
    """
    Frameless, always-on-top stack of popups anchored to a screen corner.

    Widgets are cached by id and reused across refreshes unless the id was
    replaced in place, in which case the widget is rebuilt.
    """

    def __init__(self, presenter: NotificationPresenter, cfg: PopupConfig) -> None:
        super().__init__(None, Qt.FramelessWindowHint | Qt.WindowStaysOnTopHint | Qt.Tool)
        self.setObjectName("PopupWindow")
        self.setAttribute(Qt.WA_TranslucentBackground)
        self.setAttribute(Qt.WA_ShowWithoutActivating)
        self.setFixedWidth(cfg.width)

        self._presenter = presenter
        self._cfg = cfg
        self._widgets: Dict[int, NotificationWidget] = {}

        self._layout = QVBoxLayout(self)
        self._layout.setContentsMargins(0, 0, 0, 0)
        self._layout.setSpacing(cfg.spacing)

        self._more = QLabel()
        self._more.setObjectName("AppName")
        self._more.setAlignment(Qt.AlignCenter)

    def _widget_for(self, noti: Notification, group_count: int) -> NotificationWidget:
        w = self._widgets.get(noti.id)
        if w is None:
            w = NotificationWidget(noti, group_count=group_count)
            _connect(w, self._presenter)
            w.hovered.connect(self._on_hover)
            self._widgets[noti.id] = w
        return w

    def _on_hover(self, nid: int, inside: bool) -> None:
        if inside:
            self._presenter.pause_timeout(nid)
        else:
            self._presenter.resume_timeout(nid)

    def apply(self, view: PresenterView) -> None:
        for nid in view.rebuilt_ids:
            w = self._widgets.pop(nid, None)
            if w is not None:
                w.deleteLater()

        wanted = {n.id for n in view.popups}
        for nid in list(self._widgets):
            if nid not in wanted:
                self._widgets.pop(nid).deleteLater()

        while self._layout.count():
            self._layout.takeAt(0)

        for noti in view.popups:
            count = view.group_counts.get(noti.group, 1) if noti.group else 1
            self._layout.addWidget(self._widget_for(noti, count))

        if view.queued_popups:
            self._more.setText(f"+{view.queued_popups} more")
            self._layout.addWidget(self._more)
            self._more.show()
        else:
            self._more.hide()

        if view.popups:
            self.adjustSize()
            self._reposition()
            self.show()
        else:
            self.hide()

    def _reposition(self) -> None:
        screen = QGuiApplication.primaryScreen()
        if screen is None:
            return
        geo = screen.availableGeometry()
        m = self._cfg.margin
        if self._cfg.position_x == "left":
            x = geo.left() + m
        elif self._cfg.position_x == "center":
            x = geo.left() + (geo.width() - self.width()) // 2
        else:
            x = geo.right() - self.width() - m
        if self._cfg.position_y == "bottom":
            y = geo.bottom() - self.height() - m
        else:
            y = geo.top() + m
        self.move(x, y)


class CenterWindow(QWidget):
    """
    Notification center: full history of non-transient notifications plus
    DND and clear-all controls. Shown and hidden by ToggleCenter.
    """

    def __init__(self, presenter: NotificationPresenter, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setObjectName("CenterWindow")
        self.setWindowTitle("Notifications")
        self.resize(420, 640)
        self._presenter = presenter

        root = QVBoxLayout(self)
        root.setContentsMargins(12, 12, 12, 12)
        root.setSpacing(8)

        top = QHBoxLayout()
        self._title = QLabel("Notifications")
        self._title.setObjectName("Summary")
        top.addWidget(self._title)
        top.addStretch(1)

        self._dnd_btn = QPushButton("DND: off")
        self._dnd_btn.setCheckable(True)
        self._dnd_btn.clicked.connect(lambda: presenter.toggle_dnd())
        top.addWidget(self._dnd_btn)

        clear_btn = QPushButton("Clear all")
        clear_btn.clicked.connect(lambda: presenter.clear_all())
        top.addWidget(clear_btn)
        root.addLayout(top)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        inner = QWidget()
        self._list = QVBoxLayout(inner)
        self._list.setContentsMargins(0, 0, 0, 0)
        self._list.setSpacing(8)
        self._list.addStretch(1)
        scroll.setWidget(inner)
        root.addWidget(scroll, 1)

    def apply(self, view: PresenterView) -> None:
        self._dnd_btn.setChecked(view.dnd)
        self._dnd_btn.setText("DND: on" if view.dnd else "DND: off")
        self._title.setText(f"Notifications ({len(view.center)})")

        # Rebuilt from scratch on every refresh.
        _clear_layout(self._list)
        for noti in view.center:
            w = NotificationWidget(noti)
            _connect(w, self._presenter)
            self._list.addWidget(w)
        self._list.addStretch(1)

        if view.center_visible and not self.isVisible():
            self.show()
            self.raise_()
        elif not view.center_visible and self.isVisible():
            self.hide()

    def closeEvent(self, event) -> None:
        if self._presenter.center_visible:
            self._presenter.toggle_center()
        super().closeEvent(event)
