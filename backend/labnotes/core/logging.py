"""
Logging setup for the lab notebook backend.

The root logger gets one stdout handler and two rotating files (app.log, error.log)
inside settings.LOG_DIR. Modules ask for loggers via get_logger(__name__).
"""
import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler

from .config import settings

_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
_BACKUP_COUNT = 5

_configured_dir: str | None = None


def _find_handler(root: logging.Logger, predicate) -> logging.Handler | None:
    for h in root.handlers:
        if predicate(h):
            return h
    return None


def _rotating(path: Path, level: int, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=_MAX_BYTES, backupCount=_BACKUP_COUNT, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def configure_logging(log_dir: str | None = None, level: str | None = None) -> None:
    """
    Attach the console and file handlers to the root logger.

    Safe to call more than once (uvicorn reload, test app factories); handlers are
    only added when missing for the given directory.
    """
    global _configured_dir

    target_dir = Path(log_dir or settings.LOG_DIR)
    if _configured_dir == str(target_dir):
        return
    target_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO))

    detailed = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    simple = logging.Formatter(fmt="%(asctime)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S")

    is_stdout = lambda h: isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stdout  # noqa: E731
    if _find_handler(root, is_stdout) is None:
        console = logging.StreamHandler(sys.stdout)
        console.setLevel(logging.INFO)
        console.setFormatter(simple)
        root.addHandler(console)

    for filename, file_level in (("app.log", logging.DEBUG), ("error.log", logging.ERROR)):
        path = target_dir / filename
        existing = _find_handler(
            root,
            lambda h: isinstance(h, RotatingFileHandler) and getattr(h, "baseFilename", "").endswith(filename),
        )
        if existing is not None:
            if Path(existing.baseFilename) == path.resolve():
                continue
            root.removeHandler(existing)
            existing.close()
        root.addHandler(_rotating(path, file_level, detailed))

    # Access logs come from our own request middleware.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    _configured_dir = str(target_dir)


def get_logger(name: str) -> logging.Logger:
    """
    Return a module logger, configuring the root handlers on first use.

    Args:
        name: Name of the logger (typically __name__ of the module)
    """
    if _configured_dir is None:
        configure_logging()
    return logging.getLogger(name)
