"""
Logging setup for DentalCeph.

The application configures logging twice: console-only at startup so early
failures are visible, then again from the "logging" section of the
configuration once ConfigService has loaded (level, daily log file, folder).

Log files are named dentalceph_YYYYMMDD.log and live in
~/.local/share/dentalceph/logs/ by default.
"""

import logging
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from dentalceph.services.config_service import ConfigService


DEFAULT_LOG_DIR = Path.home() / ".local" / "share" / "dentalceph" / "logs"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Set on handlers installed here; a reconfigure only replaces those
_HANDLER_MARK = "_dentalceph_handler"


def log_file_path(log_dir: Path, day: Optional[date] = None) -> Path:
    """Return the log file for a given day (today by default)."""
    day = day or date.today()
    return log_dir / f"dentalceph_{day.strftime('%Y%m%d')}.log"


def parse_level(level: Union[str, int]) -> int:
    """Map a level name such as "debug" to its constant. Unknown names give INFO."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    return value if isinstance(value, int) else logging.INFO


def _install(root: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    setattr(handler, _HANDLER_MARK, True)
    root.addHandler(handler)


def setup_logging(
    log_level: int = logging.INFO,
    log_to_file: bool = False,
    log_dir: Optional[Path] = None,
) -> Optional[Path]:
    """
    Configure console logging and, optionally, the daily log file.

    Calling it again replaces the handlers of the previous call; handlers
    installed by anything else are left alone.

    Args:
        log_level: The logging level (e.g., logging.DEBUG, logging.INFO).
        log_to_file: Whether to also log to a file.
        log_dir: Directory for log files. Defaults to DEFAULT_LOG_DIR.

    Returns:
        The log file path, or None when logging to the console only.
    """
    root_logger = logging.getLogger()
    for handler in [h for h in root_logger.handlers if getattr(h, _HANDLER_MARK, False)]:
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(log_level)

    _install(root_logger, logging.StreamHandler(), log_level)

    if not log_to_file:
        return None

    log_path = log_file_path(log_dir or DEFAULT_LOG_DIR)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
    except OSError as e:
        root_logger.warning(f"Could not create log file {log_path}: {e}. Logging to console only.")
        return None

    _install(root_logger, file_handler, log_level)
    return log_path


def configure_from(config: "ConfigService") -> Optional[Path]:
    """Apply the logging settings of a loaded configuration."""
    level = parse_level(config.log_level)
    log_path = setup_logging(level, config.log_to_file, config.log_folder)
    get_logger(__name__).debug(
        f"Logging at {logging.getLevelName(level)}, file: {log_path or 'none'}"
    )
    return log_path


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a DentalCeph module.

    Usage:
        logger = get_logger(__name__)
        logger.info(f"Image loaded: {width}x{height}")
    """
    return logging.getLogger(name)
