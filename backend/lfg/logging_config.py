"""Root logger setup shared by the API process and its tests."""

import logging
import sys
from pathlib import Path
from typing import Optional

LOG_DIR = Path(__file__).parent.parent / "logs"

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
CONSOLE_FORMAT = "%(levelname)s: %(name)s: %(message)s"

# Libraries that log every request at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "passlib")


def _owned(handler: logging.Handler) -> bool:
    return getattr(handler, "_lfg_handler", False)


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None):
    """Attach file and console handlers to the root logger.

    Safe to call more than once: handlers from a previous call are closed
    and replaced, handlers installed by anything else are left alone.
    """
    log_file = log_file or LOG_DIR / "app.log"
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level)

    for handler in [h for h in root.handlers if _owned(h)]:
        root.removeHandler(handler)
        handler.close()

    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT))

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    for handler in (file_handler, console_handler):
        handler.setLevel(level)
        handler._lfg_handler = True
        root.addHandler(handler)

    # Uvicorn output goes through the root handlers
    logging.getLogger("uvicorn.access").handlers = []
    logging.getLogger("uvicorn.error").handlers = []
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
