from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from xnotid.domain.models import Urgency
from xnotid.logger import get_logger
from xnotid.runtime.bridge import DEFAULT_SIGNAL_QUEUE_SIZE

log = get_logger()

_POSITIONS_X = ("left", "center", "right")
_POSITIONS_Y = ("top", "bottom")


def _xdg_dir(env: str, fallback: str) -> Path:
    raw = os.getenv(env)
    return Path(raw).expanduser() if raw else Path.home() / fallback


def default_config_path() -> Path:
    return _xdg_dir("XDG_CONFIG_HOME", ".config") / "xnotid" / "config.yaml"


def default_audit_log_path() -> Path:
    return _xdg_dir("XDG_DATA_HOME", ".local/share") / "xnotid" / "notifications.jsonl"


@dataclass(frozen=True)
class PopupConfig:
    """Popup stack placement and size."""
    position_x: str = "right"
    position_y: str = "top"
    width: int = 400
    max_visible: int = 3
    margin: int = 12
    spacing: int = 8


@dataclass(frozen=True)
class TimeoutConfig:
    """Default display timeouts in seconds per urgency (0 = persistent)."""
    low: int = 5
    normal: int = 10
    critical: int = 0

    def for_urgency(self, urgency: Urgency) -> int:
        if urgency == Urgency.LOW:
            return self.low
        if urgency == Urgency.CRITICAL:
            return self.critical
        return self.normal


@dataclass(frozen=True)
class BehaviorConfig:
    """Interaction switches."""
    hover_pause: bool = True
    click_to_dismiss: bool = True
    dnd_enabled: bool = True


@dataclass(frozen=True)
class LogConfig:
    """Audit log (JSONL) and diagnostic log settings."""
    enabled: bool = True
    path: Path = field(default_factory=default_audit_log_path)
    level: str = "INFO"
    file: Optional[Path] = None


@dataclass(frozen=True)
class DbusConfig:
    """IPC-side polling and queue bounds."""
    poll_interval_ms: int = 50
    signal_queue_size: int = DEFAULT_SIGNAL_QUEUE_SIZE


@dataclass(frozen=True)
class UiConfig:
    """Presentation loop settings."""
    poll_interval_ms: int = 50


@dataclass(frozen=True)
class DaemonConfig:
    """
    Root daemon configuration loaded from YAML.

    Every section is optional; missing keys take the defaults above.
    """
    popup: PopupConfig = field(default_factory=PopupConfig)
    timeouts: TimeoutConfig = field(default_factory=TimeoutConfig)
    behavior: BehaviorConfig = field(default_factory=BehaviorConfig)
    log: LogConfig = field(default_factory=LogConfig)
    dbus: DbusConfig = field(default_factory=DbusConfig)
    ui: UiConfig = field(default_factory=UiConfig)

    def timeout_for_urgency(self, urgency: Urgency) -> int:
        return self.timeouts.for_urgency(urgency)


def _read_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("config.yaml must contain a YAML mapping at the root")
    return data


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    s = raw.get(name) or {}
    if not isinstance(s, dict):
        raise ValueError(f"config section '{name}' must be a mapping")
    return s


def _choice(value: Any, allowed: tuple, default: str) -> str:
    s = str(value).lower()
    return s if s in allowed else default


def _resolve_config_path(path: Optional[str]) -> tuple[Path, bool]:
    """
    Resolve config.yaml location.

    Priority:
    1) explicit path argument
    2) XNOTID_CONFIG env var if provided
    3) $XDG_CONFIG_HOME/xnotid/config.yaml

    Returns the path and whether it was explicitly requested.
    """
    if path:
        return Path(path).expanduser().resolve(), True
    env = os.getenv("XNOTID_CONFIG")
    if env:
        return Path(env).expanduser().resolve(), True
    return default_config_path(), False


def parse_daemon_config(raw: Dict[str, Any]) -> DaemonConfig:
    """
    Convert a raw YAML mapping into typed config objects.

    Raises
    ------
    ValueError, TypeError
        If a section or value has the wrong shape.
    """
    p = _section(raw, "popup")
    popup = PopupConfig(
        position_x=_choice(p.get("position_x", "right"), _POSITIONS_X, "right"),
        position_y=_choice(p.get("position_y", "top"), _POSITIONS_Y, "top"),
        width=int(p.get("width", 400)),
        max_visible=max(1, int(p.get("max_visible", 3))),
        margin=int(p.get("margin", 12)),
        spacing=int(p.get("spacing", 8)),
    )

    t = _section(raw, "timeouts")
    timeouts = TimeoutConfig(
        low=max(0, int(t.get("low", 5))),
        normal=max(0, int(t.get("normal", 10))),
        critical=max(0, int(t.get("critical", 0))),
    )

    b = _section(raw, "behavior")
    behavior = BehaviorConfig(
        hover_pause=bool(b.get("hover_pause", True)),
        click_to_dismiss=bool(b.get("click_to_dismiss", True)),
        dnd_enabled=bool(b.get("dnd_enabled", True)),
    )

    lg = _section(raw, "log")
    log_file = lg.get("file")
    log_cfg = LogConfig(
        enabled=bool(lg.get("enabled", True)),
        path=Path(str(lg["path"])).expanduser() if lg.get("path") else default_audit_log_path(),
        level=str(lg.get("level", "INFO")).upper(),
        file=Path(str(log_file)).expanduser() if log_file else None,
    )

    d = _section(raw, "dbus")
    dbus_cfg = DbusConfig(
        poll_interval_ms=max(1, int(d.get("poll_interval_ms", 50))),
        signal_queue_size=max(0, int(d.get("signal_queue_size", DEFAULT_SIGNAL_QUEUE_SIZE))),
    )

    u = _section(raw, "ui")
    ui = UiConfig(poll_interval_ms=max(1, int(u.get("poll_interval_ms", 50))))

    return DaemonConfig(
        popup=popup,
        timeouts=timeouts,
        behavior=behavior,
        log=log_cfg,
        dbus=dbus_cfg,
        ui=ui,
    )


def load_daemon_config(path: Optional[str] = None) -> DaemonConfig:
    """
    Load daemon configuration from YAML.

    Parameters
    ----------
    path
        Explicit path to config.yaml. If None, uses default resolution.

    Returns
    -------
    DaemonConfig
        Parsed configuration; defaults if the default file is absent or if
        the file cannot be parsed.

    Raises
    ------
    FileNotFoundError
        If an explicitly requested config file does not exist.
    """
    cfg_path, explicit = _resolve_config_path(path)
    if not cfg_path.exists():
        if explicit:
            raise FileNotFoundError(f"Config not found: {cfg_path}")
        log.info("No config file found at {}, using defaults", cfg_path)
        return DaemonConfig()

    try:
        return parse_daemon_config(_read_yaml(cfg_path))
    except (yaml.YAMLError, ValueError, TypeError) as e:
        log.warning("Failed to parse config {}: {}, using defaults", cfg_path, e)
        return DaemonConfig()
