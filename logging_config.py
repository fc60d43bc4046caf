"""
Hostel Room Manager - logging setup
Plain text logs to stdout, level taken from LOG_LEVEL
"""

import logging
import os
import sys
from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(level: str = LOG_LEVEL) -> logging.Logger:
    """Configure the shared 'hostel' logger once and return it"""
    log = logging.getLogger("hostel")
    log.setLevel(getattr(logging, level, logging.INFO))

    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        log.addHandler(handler)

    # uvicorn installs its own root handler
    log.propagate = False
    return log


logger = setup_logging()
