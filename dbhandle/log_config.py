"""Logging configuration for applications embedding the database handle."""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Loggers that get their own file handler
FILE_LOGGERS = ["dbhandle"]


def setup_logging(level=logging.INFO, log_dir: Optional[str] = "logs"):
    """Configure logging for the handle and its host process.

    - Root logger: console handler at `level`
    - One RotatingFileHandler per logger in FILE_LOGGERS (5 MB max,
      3 backups) under `log_dir/`; pass log_dir=None to skip files

    Does nothing when the root logger already has handlers.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    root = logging.getLogger()
    if root.handlers:
        return

    root.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_dir is None:
        return

    os.makedirs(log_dir, exist_ok=True)
    for name in FILE_LOGGERS:
        log_file = os.path.join(log_dir, f"{name.replace('.', '_')}.log")
        handler = RotatingFileHandler(
            log_file, maxBytes=5 * 1024 * 1024, backupCount=3
        )
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logging.getLogger(name).addHandler(handler)
