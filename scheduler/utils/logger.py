"""Logging configuration for the scheduling engine."""
import logging
import logging.handlers
from typing import Optional

from scheduler.config.settings import settings


def configure_logging(name: str, level: Optional[str] = None, console: bool = True) -> logging.Logger:
    """
    Configure logging for a module.

    Args:
        name: Logger name (typically __name__, or 'scheduler' for the package)
        level: Log level name (default: settings.LOG_LEVEL)
        console: Attach a console handler (off when the root logger already prints)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level or settings.LOG_LEVEL)

    # Already configured by an earlier call
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    # File handler
    if settings.LOG_TO_FILE:
        log_dir = settings.LOG_DIR
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / f'{name}.log',
            maxBytes=10485760,  # 10MB
            backupCount=5,
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
