"""
Logging for the Streamlit client.

Streamlit re-executes the script on every interaction, so handlers are attached
once per logger name and reused on later runs.
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from config.settings import settings

LOGS_DIR = Path(settings.LOG_DIR)
LOGS_DIR.mkdir(parents=True, exist_ok=True)

_FILE_FORMAT = logging.Formatter(
    fmt='%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
_CONSOLE_FORMAT = logging.Formatter(fmt='%(asctime)s - %(levelname)s - %(message)s', datefmt='%H:%M:%S')


def _rotating(filename: str, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        LOGS_DIR / filename,
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=5,
        encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(_FILE_FORMAT)
    return handler


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger writing to stdout, ``client.log`` and ``client-error.log``.

    Args:
        name: Name of the logger (typically __name__ of the module)
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    logger.propagate = False

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(_CONSOLE_FORMAT)

    logger.addHandler(console_handler)
    logger.addHandler(_rotating("client.log", logging.DEBUG))
    logger.addHandler(_rotating("client-error.log", logging.ERROR))
    return logger
