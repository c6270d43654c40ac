"""
SitePhoto - Construction site photo annotation and ledger client.

This is the main entry point for the application.
Run with: python -m sitephoto.app
"""

import argparse
import logging
import signal
import sys
from typing import List, Optional

from PySide6.QtCore import QTimer
from PySide6.QtWidgets import QApplication

from sitephoto import __version__
from sitephoto.core.app_core import AppCore
from sitephoto.services.logging_service import get_logger, setup_logging

# Global app reference for signal handlers
_app: Optional[QApplication] = None
_app_core: Optional[AppCore] = None
_should_quit = False


def request_quit(signum, frame):
    """Handle termination signals; the quit timer does the actual work."""
    global _should_quit
    _should_quit = True


def check_for_quit():
    """Timer callback to check if we should quit."""
    if _should_quit:
        get_logger(__name__).info("Signal received, quitting...")
        if _app_core:
            _app_core.shutdown()
        elif _app:
            _app.quit()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sitephoto",
        description="Annotate construction site photos and export photo ledgers.",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="use built-in demo data instead of the REST backend",
    )
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for SitePhoto application.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    global _app, _app_core

    args = parse_args(argv)

    # Initialize logging first to catch early errors
    setup_logging(logging.DEBUG if args.debug else logging.INFO)
    logger = get_logger(__name__)

    try:
        logger.info("Starting SitePhoto application...")

        _app = QApplication(sys.argv[:1])
        _app.setApplicationName("SitePhoto")
        _app.setOrganizationName("SitePhoto")
        _app.setApplicationVersion(__version__)

        signal.signal(signal.SIGINT, request_quit)
        signal.signal(signal.SIGTERM, request_quit)

        # Timer to poll for quit signal (Qt event loop blocks Python signals)
        quit_timer = QTimer()
        quit_timer.timeout.connect(check_for_quit)
        quit_timer.start(100)

        _app_core = AppCore(_app, offline=args.offline)

        logger.info("SitePhoto initialization complete. Entering event loop...")
        exit_code = _app.exec()

        logger.info(f"SitePhoto exiting with code {exit_code}")
        return exit_code

    except Exception as e:
        logger.critical(f"Fatal error during startup: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
