"""
bfvm - Logging setup for hosts

The library modules only ever do ``logging.getLogger(__name__)``; they
never attach handlers. A host (the bfrun CLI, a test harness, a notebook)
calls setup_logging() once to get:

  - a rich console handler on stderr at console_level (WARNING default)
  - optionally, a timestamped DEBUG log file under log_dir

Log files: ``<log_dir>/<name>_YYYYMMDD_HHMMSS.log``
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

FILE_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _add_file_handler(logger: logging.Logger, name: str, log_dir: Path):
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"{name}_{ts}.log"
    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATEFMT))
    logger.addHandler(fh)
    logger.info("Log file: %s", log_file)


def setup_logging(
    name: str = "bfvm",
    level: int = logging.DEBUG,
    console_level: int = logging.WARNING,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """Configure and return the named logger.

    Repeated calls for the same logger (several CLI runs in one process)
    do not stack handlers: the existing console handler takes the new
    console_level, and a file handler is only added when log_dir names a
    directory the logger is not already writing into.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    consoles = [h for h in logger.handlers if isinstance(h, RichHandler)]
    if consoles:
        for ch in consoles:
            ch.setLevel(console_level)
    else:
        # ── Console handler: stderr, keeps stdout clean for program output ──
        ch = RichHandler(
            console=Console(stderr=True),
            level=console_level,
            show_time=True,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
        logger.addHandler(ch)

    # ── File handler: captures everything (DEBUG+) ──
    if log_dir is not None:
        target = Path(log_dir).resolve()
        writing_there = any(
            isinstance(h, logging.FileHandler)
            and Path(h.baseFilename).resolve().parent == target
            for h in logger.handlers)
        if not writing_there:
            _add_file_handler(logger, name, target)

    logger.debug("Logger initialized: %s (console level %s)",
                 name, logging.getLevelName(console_level))
    return logger
