"""Process-wide logging for the registration API.

Records below WARNING go to stdout and everything else to stderr, so container
log collectors can tell upload/notification noise from real failures. Uvicorn
is started without its own dictConfig and propagates into the same handlers.
"""

import logging
import sys
from typing import Optional

from conference_registration.config import config

DEV_FORMAT = "%(levelname)s:%(name)s:%(message)s"
PROD_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Chatty at INFO: SQL echo, multipart parser internals, per-request access lines
QUIET_LOGGERS = ("sqlalchemy.engine", "multipart", "python_multipart", "uvicorn.access")

UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


class BelowWarningFilter(logging.Filter):
    def filter(self, record):
        return record.levelno < logging.WARNING


def setup_logging(
    level_name: Optional[str] = None, environment: Optional[str] = None
) -> logging.Logger:
    """
    Install the stdout/stderr handler pair on the root logger.

    Args:
        level_name: Overrides config["log_level"] (e.g. "DEBUG")
        environment: Overrides config["environment"]; production adds timestamps

    Returns:
        The configured root logger
    """
    level_name = (level_name or config.get("log_level") or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    environment = environment or config.get("environment")
    formatter = logging.Formatter(
        PROD_FORMAT if environment == "production" else DEV_FORMAT
    )

    out_handler = logging.StreamHandler(sys.stdout)
    out_handler.setLevel(logging.DEBUG)
    out_handler.addFilter(BelowWarningFilter())
    out_handler.setFormatter(formatter)

    err_handler = logging.StreamHandler(sys.stderr)
    err_handler.setLevel(logging.WARNING)
    err_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(out_handler)
    root_logger.addHandler(err_handler)

    # uvicorn attaches its own handlers unless told otherwise; route it through ours
    for name in UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True

    if level > logging.DEBUG:
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger
