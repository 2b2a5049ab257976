"""
Unit tests for xnotid.core.audit_log.AuditLog.

These tests validate:
- one JSON object per line, appended
- parent directories are created on demand
- disabled logs and write failures never raise
"""

from __future__ import annotations

import json
from pathlib import Path

from xnotid.core.audit_log import AuditLog
from xnotid.domain.events import LifecycleEvent, LifecycleEventType
from xnotid.domain.models import Notification


def _event(event: LifecycleEventType = LifecycleEventType.RECEIVED) -> LifecycleEvent:
    return LifecycleEvent.from_notification(Notification(app_name="a", summary="s", id=1), event)


def test_append_writes_jsonl_and_creates_dirs(tmp_path: Path) -> None:
    """Each append adds one parseable line; missing directories are created."""
    path = tmp_path / "nested" / "dir" / "log.jsonl"
    audit = AuditLog(path)

    assert audit.append(_event()) is True
    assert audit.append(_event(LifecycleEventType.DISMISSED)) is True

    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["event"] for line in lines] == ["received", "dismissed"]


def test_disabled_log_writes_nothing(tmp_path: Path) -> None:
    """A disabled log is a no-op."""
    path = tmp_path / "log.jsonl"
    assert AuditLog(path, enabled=False).append(_event()) is False
    assert not path.exists()


def test_write_failure_is_swallowed(tmp_path: Path) -> None:
    """An unwritable target (a directory) reports False instead of raising."""
    target = tmp_path / "is_a_dir"
    target.mkdir()
    assert AuditLog(target).append(_event()) is False
