import runpy
import traceback


def main():
    try:
        # Equivalent to: python -m xnotid.dev.run_daemon
        runpy.run_module("xnotid.dev.run_daemon", run_name="__main__")
    except SystemExit:
        raise
    except Exception:
        traceback.print_exc()
        raise SystemExit(1)


if __name__ == "__main__":
    main()
