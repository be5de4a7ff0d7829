# ABOUTME: Logging setup for the Starling Hub exporter
# ABOUTME: Logs to stderr, or to a daily rotated file when a log file is configured
import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from starlinghub_exporter.config import AppConfig

LOGGER_NAME = 'starlinghub_exporter'


def get_logger(app_config: AppConfig) -> logging.Logger:
    """
    Create and configure the exporter logger.

    Args:
        app_config: Application configuration with log level and optional log file

    Returns:
        Configured logger instance with a single handler
    """
    logger = logging.getLogger(LOGGER_NAME)

    # Avoid adding duplicate handlers if get_logger is called multiple times
    if logger.handlers:
        return logger

    logger.setLevel(app_config.log_level.upper())

    if app_config.log_file:
        log_path = Path(app_config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        # Rotate daily at midnight, keep 30 days
        handler: logging.Handler = TimedRotatingFileHandler(
            app_config.log_file,
            when='midnight',
            interval=1,
            backupCount=30
        )
    else:
        handler = logging.StreamHandler(sys.stderr)

    formatter = logging.Formatter(
        '%(asctime)s %(levelname)s %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    handler.setFormatter(formatter)

    logger.addHandler(handler)

    return logger
