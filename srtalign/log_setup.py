"""Logging configuration for SrtAlign."""

import logging
import sys
from logging.handlers import RotatingFileHandler
import os
from typing import Optional
from .utils import ensure_dir_exists

DEFAULT_LOG_FORMAT = '%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

def setup_logging(
    log_level: int = logging.INFO,
    log_dir: Optional[str] = "logs",
    log_file: str = "srtalign.log",
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    max_bytes: int = 5 * 1024 * 1024, # 5 MB
    backup_count: int = 3
) -> None:
    """
    (Re)configures the root logger for the check/fix/plan commands and the batch runner.

    The command line entry points call this twice through load_settings():
    first with log_dir=None, so problems while reading config.yaml reach the
    console, and again once the configuration is loaded, to add a rotating
    file under its log_dir. Each call replaces the handlers of the previous
    one. Console output goes to stderr; stdout carries the issue reports
    and cascade previews.

    Args:
        log_level: Level for the root logger and both handlers.
        log_dir: Directory for the log file; None or empty keeps console only.
        log_file: File name inside log_dir (the batch runner uses its own).
        log_format: Format string for both handlers.
        date_format: Timestamp format for both handlers.
        max_bytes: Size at which the log file is rotated.
        backup_count: Rotated files kept next to the current one.
    """
    logger = logging.getLogger() # Root logger
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(log_level)
    formatter = logging.Formatter(log_format, datefmt=date_format)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    stream_handler.setLevel(log_level)
    logger.addHandler(stream_handler)

    # Only relevant with --shorten, where the model is downloaded and loaded
    logging.getLogger("transformers").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    if not log_dir:
        return

    try:
        ensure_dir_exists(log_dir)
        log_path = os.path.join(log_dir, log_file)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        logger.debug(f"File logging enabled: {log_path}")
    except Exception as e:
        # The command still runs with stderr logging only
        logger.error(f"Could not open log file {log_file} in {log_dir}: {e}", exc_info=True)
