"""InkMap launcher.

Configures logging and runs preflight checks before importing GTK-related
modules, which gives clearer error messages on new systems.
"""

from __future__ import annotations

import logging


def main() -> int:
    from inkmap.config import configure_logging
    from inkmap.preflight import run_preflight_or_die

    configure_logging()
    run_preflight_or_die(require_display=True, check_deps=True)
    logging.getLogger(__name__).debug("Preflight passed, starting GTK app")

    from inkmap.app import main as app_main

    return int(app_main())


if __name__ == "__main__":
    raise SystemExit(main())
