"""
Logging setup — a timestamped file log for the package.

The terminal belongs to the UI, so nothing is logged to stderr.
"""

import logging
import os
from datetime import datetime

LOGGER_NAME = "hunkedit"


def setup_logger(log_dir: str = ".hunkedit/logs", level: int = logging.DEBUG) -> logging.Logger:
    """Creates a file logger. All verbose output goes here."""
    os.makedirs(log_dir, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = os.path.join(log_dir, f"hunkedit_{timestamp}.log")

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # File handler: captures everything
    fh = logging.FileHandler(log_file, encoding="utf-8")
    fh.setLevel(level)
    fh.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%H:%M:%S"
    ))
    logger.addHandler(fh)

    return logger
