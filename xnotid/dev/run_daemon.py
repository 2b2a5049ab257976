from __future__ import annotations

import sys
from typing import Optional

from PySide6.QtWidgets import QApplication

from xnotid import logger
from xnotid.bootstrap import build_daemon_system
from xnotid.config.yaml_config import load_daemon_config
from xnotid.ui.daemon_host import DaemonHost, QtTimerService
from xnotid.ui.presenter import NotificationPresenter
from xnotid.ui.theme import APP_QSS
from xnotid.ui.windows import CenterWindow, PopupWindow

log = logger.get_logger()


def _config_arg(argv: list[str]) -> Optional[str]:
    if "--config" in argv:
        i = argv.index("--config")
        if i + 1 < len(argv):
            return argv[i + 1]
    return None


def main() -> None:
    """
    Start the notification daemon.

    Notes
    -----
    - Loads configuration from ``$XDG_CONFIG_HOME/xnotid/config.yaml`` by
      default (or ``$XNOTID_CONFIG``).
    - Optional CLI usage:
        python -m xnotid.dev.run_daemon --config path/to/config.yaml
    - Exits with status 1 if the bus connection or a bus name cannot be
      acquired.
    """
    app = QApplication(sys.argv)
    app.setStyleSheet(APP_QSS)
    app.setQuitOnLastWindowClosed(False)

    cfg = load_daemon_config(_config_arg(sys.argv))
    logger.configure(level=cfg.log.level, log_file=cfg.log.file)

    def _on_fatal(exc: BaseException) -> None:
        # Runs on the IPC thread; quit from the presentation thread.
        log.critical("D-Bus service failed, exiting: {!r}", exc)
        wiring.calls.call_soon(lambda: app.exit(1))

    wiring = build_daemon_system(on_fatal=_on_fatal, cfg=cfg)

    timers = QtTimerService()
    presenter = NotificationPresenter(wiring.store, wiring.bridge, cfg, timers)
    host = DaemonHost(
        presenter,
        wiring.bridge,
        wiring.calls,
        interval_ms=cfg.ui.poll_interval_ms,
    )
    popups = PopupWindow(presenter, cfg.popup)
    center = CenterWindow(presenter)
    host.view_changed.connect(popups.apply)
    host.view_changed.connect(center.apply)

    wiring.store.set_on_change(host.mark_dirty)
    host.start()
    wiring.dbus.start()

    def _stop_all() -> None:
        host.stop()
        wiring.dbus.stop()
        wiring.dbus.join()
        wiring.bridge.close()

    app.aboutToQuit.connect(_stop_all)
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
