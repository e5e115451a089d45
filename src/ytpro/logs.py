from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "ytpro"
LOG_FILE_NAME = "ytpro.log"

_LEVELS = {0: logging.WARNING, 1: logging.INFO}


def setup_logging(console: Console, verbosity: int = 0, log_dir: Path | None = None) -> logging.Logger:
    """Route ``ytpro.*`` loggers to the console and, optionally, a run log file.

    The console stays at WARNING by default so log lines do not land inside
    a live progress viewport.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=console,
        rich_tracebacks=True,
        show_path=False,
        show_level=verbosity > 0,
        markup=False,
    )
    console_handler.setLevel(_LEVELS.get(verbosity, logging.DEBUG))
    console_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / LOG_FILE_NAME, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger
