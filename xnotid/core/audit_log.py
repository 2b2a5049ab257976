"""
JSONL lifecycle audit log.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from xnotid.domain.events import LifecycleEvent
from xnotid.logger import get_logger

log = get_logger()


@dataclass(frozen=True)
class AuditLog:
    """
    Append-only JSONL record of notification lifecycle events.

    Each event becomes one JSON object on its own line. The file (and its
    parent directories) is created on first write and reopened for every
    append, so external rotation is tolerated.

    Notes
    -----
    - Writes are best-effort: I/O and serialisation failures are logged and
      swallowed, never raised to the caller.
    - There is no rotation or size bound.

    Parameters
    ----------
    path
        Target ``.jsonl`` file.
    enabled
        When False, :meth:`append` is a no-op.
    """

    path: Path
    enabled: bool = True

    def append(self, event: LifecycleEvent) -> bool:
        """
        Append one event.

        Parameters
        ----------
        event
            Lifecycle event to record.

        Returns
        -------
        bool
            True if a line was written.
        """
        if not self.enabled:
            return False
        try:
            line = json.dumps(event.to_json_dict(), ensure_ascii=False)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
            return True
        except (OSError, TypeError, ValueError) as e:
            log.warning("audit log write to {} failed: {!r}", self.path, e)
            return False
