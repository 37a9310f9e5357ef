"""Console logging setup shared by the command line tools."""

from __future__ import annotations

import logging
import sys

__all__ = ["get_logger"]

LOG_FORMAT = "[%(asctime)s] %(levelname)s - %(message)s"


def get_logger(name: str = "height_shapley", level: int | str = logging.INFO) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if logger.handlers:
        return logger
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return logger
