"""
DentalCeph - Cephalometric annotation for dental radiographs.

This is the main entry point for the application.
Run with: python -m dentalceph.app [image]
"""

import signal
import sys

from PySide6.QtCore import QTimer
from PySide6.QtWidgets import QApplication

from dentalceph import __version__
from dentalceph.services.config_service import ConfigService
from dentalceph.services.logging_service import configure_from, get_logger, setup_logging
from dentalceph.ui.main_window import MainWindow


def main() -> int:
    """
    Main entry point for the DentalCeph application.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    # Console logging first to catch early errors; the config refines it
    setup_logging()
    logger = get_logger(__name__)

    try:
        logger.info("Starting DentalCeph...")

        app = QApplication(sys.argv)
        app.setApplicationName("DentalCeph")
        app.setOrganizationName("DentalCeph")
        app.setApplicationVersion(__version__)

        # Let Ctrl+C reach Python while the Qt loop is running
        signal.signal(signal.SIGINT, lambda signum, frame: app.quit())
        interrupt_timer = QTimer()
        interrupt_timer.timeout.connect(lambda: None)
        interrupt_timer.start(200)

        config = ConfigService()
        log_path = configure_from(config)
        if log_path:
            logger.info(f"Logging to {log_path}")
        window = MainWindow(config)
        window.show()

        # Optional image path on the command line
        args = app.arguments()[1:]
        if args:
            window.open_image(args[0])

        logger.info("DentalCeph initialization complete. Entering event loop...")

        exit_code = app.exec()

        logger.info(f"DentalCeph exiting with code {exit_code}")
        return exit_code

    except Exception as e:
        logger.critical(f"Fatal error during startup: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
