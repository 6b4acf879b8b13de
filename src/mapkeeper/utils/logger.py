"""Application logging utility."""

import logging
import sys
from datetime import datetime
from pathlib import Path

from PySide6.QtCore import QStandardPaths

from mapkeeper.utils.settings import Settings

# Global logger instance
_logger: logging.Logger | None = None
_file_handler: logging.FileHandler | None = None


def get_log_path() -> Path:
    """Get the log file path.

    Next to the executable when frozen, otherwise in the per-user data
    folder that also holds the shared content.
    """
    if getattr(sys, "frozen", False):
        return Path(sys.executable).parent / "MapKeeper.log"
    data_dir = QStandardPaths.writableLocation(
        QStandardPaths.StandardLocation.GenericDataLocation
    )
    return Path(data_dir) / "MapKeeper" / "MapKeeper.log"


def setup_logging(settings: Settings | None = None) -> logging.Logger:
    """Setup and return the application logger.

    Module loggers (``logging.getLogger(__name__)``) live under ``mapkeeper``
    and propagate to the root logger, so the handlers are attached there too.
    """
    global _logger

    if _logger is not None:
        return _logger

    _logger = logging.getLogger("MapKeeper")
    _logger.setLevel(logging.DEBUG)
    logging.getLogger("mapkeeper").setLevel(logging.DEBUG)

    # Console handler (always enabled)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_formatter = logging.Formatter("%(levelname)s: %(message)s")
    console_handler.setFormatter(console_formatter)
    _logger.addHandler(console_handler)
    logging.getLogger("mapkeeper").addHandler(console_handler)

    # File handler (based on settings)
    settings = settings or Settings()
    if settings.load_logging_enabled():
        _enable_file_logging()

    return _logger


def _enable_file_logging():
    """Enable file logging."""
    global _logger, _file_handler

    if _file_handler is not None or _logger is None:
        return

    log_path = get_log_path()

    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        # Overwrite log file each time (mode='w')
        _file_handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
        _file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        _file_handler.setFormatter(file_formatter)
        _logger.addHandler(_file_handler)
        logging.getLogger("mapkeeper").addHandler(_file_handler)

        from mapkeeper import __version__, get_build_date

        _logger.info("=" * 50)
        _logger.info(f"MapKeeper v{__version__}")
        _logger.info(f"Build: {get_build_date()}")
        _logger.info(f"Started: {datetime.now()}")
        _logger.info(f"Log file: {log_path}")
        _logger.info(f"Python: {sys.version}")
        _logger.info(f"Platform: {sys.platform}")
        _logger.info("=" * 50)
    except OSError as e:
        _logger.warning(f"Could not create log file: {e}")
        _file_handler = None


def _disable_file_logging():
    """Disable file logging."""
    global _logger, _file_handler

    if _file_handler is not None and _logger is not None:
        _logger.removeHandler(_file_handler)
        logging.getLogger("mapkeeper").removeHandler(_file_handler)
        _file_handler.close()
        _file_handler = None


def set_logging_enabled(enabled: bool, settings: Settings | None = None):
    """Enable or disable file logging."""
    settings = settings or Settings()
    settings.save_logging_enabled(enabled)

    if enabled:
        _enable_file_logging()
    else:
        _disable_file_logging()


def get_logger() -> logging.Logger:
    """Get the application logger."""
    global _logger
    if _logger is None:
        return setup_logging()
    return _logger
