"""
logging_config.py — Centralized Logging Configuration for the POS Engine

One logging setup shared by the engine, the terminal API and the command line.
Every record goes to the terminal log file and to stdout in the same format.

Features:
    • Log file and level taken from the environment (POS_LOG_FILE, POS_LOG_LEVEL)
    • Process ID in every line, so several terminal workers can share one file
    • httpx/httpcore request chatter kept out of the cashier log
"""

import logging
import sys

from .config import LOG_FILE, LOG_LEVEL


def setup_logging(log_file=None, level=None):
    """
    Installs the root handlers for the POS engine.

    Records are written as ``time - LEVEL - [PID:n] - message`` to:
        1. the file POS_LOG_FILE (default 'pos_engine.log')
        2. stdout

    Args:
        log_file (str | None): Log file path; defaults to POS_LOG_FILE.
        level (str | int | None): Log level; defaults to POS_LOG_LEVEL.
    """
    log_format = '%(asctime)s - %(levelname)s - [PID:%(process)d] - %(message)s'

    logging.basicConfig(
        level=level or LOG_LEVEL,
        format=log_format,
        handlers=[
            logging.FileHandler(log_file or LOG_FILE),
            logging.StreamHandler(sys.stdout)
        ]
    )

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name):
    """
    Module logger; handlers and format come from ``setup_logging``.

    Args:
        name (str): Usually ``__name__``.
    """
    return logging.getLogger(name)
