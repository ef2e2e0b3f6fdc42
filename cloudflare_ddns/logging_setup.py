from __future__ import annotations

import logging
from typing import TextIO

LOG_FORMAT = "[%(asctime)s] [%(levelname)-8s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str | int = "INFO", stream: TextIO | None = None) -> None:
    """Configure the root logger with a single console handler.

    Safe to call more than once: existing root handlers are removed first.
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    root_logger.setLevel(level.upper() if isinstance(level, str) else level)

    console = logging.StreamHandler(stream)
    console.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console)

    # No per-connection urllib3 lines at DEBUG.
    logging.getLogger("urllib3").setLevel(max(root_logger.level, logging.INFO))
