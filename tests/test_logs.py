import logging
from pathlib import Path

from ytpro.logs import LOG_FILE_NAME, setup_logging


def test_setup_logging_writes_debug_to_file_only(console, tmp_path: Path) -> None:
    logger = setup_logging(console, verbosity=0, log_dir=tmp_path)
    try:
        logging.getLogger("ytpro.monitor").debug("Starting ffmpeg -i a.webm")
        logging.getLogger("ytpro.ffmpeg_runner").warning("Duration unknown for a.webm")
        for handler in logger.handlers:
            handler.flush()
        text = (tmp_path / LOG_FILE_NAME).read_text(encoding="utf-8")
        assert "Starting ffmpeg -i a.webm" in text
        assert "ytpro.monitor" in text
        output = console.file.getvalue()
        assert "Starting ffmpeg" not in output
        assert "Duration unknown for a.webm" in output
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()


def test_setup_logging_is_idempotent(console) -> None:
    logger = setup_logging(console, verbosity=2)
    logger = setup_logging(console, verbosity=2)
    try:
        assert len(logger.handlers) == 1
        assert logger.handlers[0].level == logging.DEBUG
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
