"""
Logging service for SitePhoto.

Console output plus a size-rotated log file in ~/.local/share/sitephoto/logs/.
HTTP and imaging libraries are kept at WARNING so that photo listings and
ledger exports don't flood the log.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Iterable, Optional

# Default log directory following XDG Base Directory Specification
DEFAULT_LOG_DIR = Path.home() / ".local" / "share" / "sitephoto" / "logs"
LOG_FILENAME = "sitephoto.log"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3

NOISY_LOGGERS = ("urllib3", "requests", "PIL")

_logging_initialized = False


def quiet_loggers(names: Iterable[str] = NOISY_LOGGERS, level: int = logging.WARNING) -> None:
    for name in names:
        logging.getLogger(name).setLevel(level)


def setup_logging(
    log_level: int = logging.INFO,
    log_to_file: bool = True,
    log_dir: Optional[Path] = None,
    force: bool = False,
) -> Optional[Path]:
    """
    Configure the root logger for SitePhoto.

    Args:
        log_level: The logging level (e.g., logging.DEBUG, logging.INFO).
        log_to_file: Whether to also write the rotating log file.
        log_dir: Directory for the log file. Defaults to DEFAULT_LOG_DIR.
        force: Reconfigure even if logging was already set up.

    Returns:
        Path of the log file, or None when logging to the console only.
    """
    global _logging_initialized

    if _logging_initialized and not force:
        return None

    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    log_path = None
    if log_to_file:
        log_path = (log_dir or DEFAULT_LOG_DIR) / LOG_FILENAME
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_path,
                maxBytes=LOG_MAX_BYTES,
                backupCount=LOG_BACKUP_COUNT,
                encoding="utf-8",
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            log_path = None
            root_logger.warning(f"Could not create log file: {e}. Logging to console only.")

    quiet_loggers()
    _logging_initialized = True
    return log_path


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Args:
        name: The name for the logger, typically __name__ of the calling module.
    """
    return logging.getLogger(name)
