from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from xnotid.config.yaml_config import DaemonConfig, load_daemon_config
from xnotid.core.audit_log import AuditLog
from xnotid.core.state_store import NotificationStore
from xnotid.dbus.server import NotificationServer
from xnotid.runtime.bridge import Bridge
from xnotid.runtime.dbus_thread import DbusServiceConfig, DbusServiceThread, FatalHandler
from xnotid.ui.scheduler import UiCallQueue


@dataclass(frozen=True)
class DaemonWiring:
    """Everything the presentation layer needs to run the daemon."""
    config: DaemonConfig
    store: NotificationStore
    bridge: Bridge
    calls: UiCallQueue
    server: NotificationServer
    dbus: DbusServiceThread


def build_store(cfg: DaemonConfig) -> NotificationStore:
    audit = AuditLog(path=cfg.log.path, enabled=cfg.log.enabled)
    return NotificationStore(audit_log=audit if cfg.log.enabled else None)


def build_daemon_system(
    on_fatal: FatalHandler,
    config_path: Optional[str] = None,
    cfg: Optional[DaemonConfig] = None,
) -> DaemonWiring:
    """
    Build the shared state and the IPC thread (not started).

    Parameters
    ----------
    on_fatal
        Called on the IPC thread if the bus connection or a bus name fails.
    config_path
        Explicit config.yaml; ignored when `cfg` is given.
    cfg
        Already loaded configuration.
    """
    cfg = cfg if cfg is not None else load_daemon_config(config_path)

    # --- STATE ---
    store = build_store(cfg)

    # --- CHANNELS ---
    bridge = Bridge.create(signal_queue_size=cfg.dbus.signal_queue_size)
    calls = UiCallQueue()

    # --- IPC ---
    server = NotificationServer(store=store, schedule=calls.call_soon)
    dbus = DbusServiceThread(
        cfg=DbusServiceConfig(poll_interval_s=cfg.dbus.poll_interval_ms / 1000.0),
        server=server,
        bridge=bridge,
        on_fatal=on_fatal,
    )

    return DaemonWiring(
        config=cfg,
        store=store,
        bridge=bridge,
        calls=calls,
        server=server,
        dbus=dbus,
    )
