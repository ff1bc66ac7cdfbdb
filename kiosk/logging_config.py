"""
logging_config.py - Centralized logging configuration for the kiosk service.

All modules log through ``logging.getLogger(__name__)``; this module only
installs the handlers and the shared format once, when the app is created.
"""

import logging
import sys

from . import config

LOG_FORMAT = '%(asctime)s - %(levelname)s - [PID:%(process)d] - %(name)s - %(message)s'


def setup_logging(level: str = None, log_file: str = None):
    """
    Configures the global logging system for the application.

    The configuration includes:
        - Log level: ``KIOSK_LOG_LEVEL`` (INFO by default)
        - Output destinations:
            1. Console (stdout): real-time logs, Docker compatible
            2. File: only when ``KIOSK_LOG_FILE`` is set
        - Reduced verbosity for httpx and the SQLAlchemy engine
    """
    handlers = [logging.StreamHandler(sys.stdout)]
    log_file = log_file or config.LOG_FILE
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=(level or config.LOG_LEVEL).upper(),
        format=LOG_FORMAT,
        handlers=handlers,
    )

    # Reduce verbosity from external libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
