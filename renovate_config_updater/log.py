"""Run-scoped log sink: a timestamped file plus stdout."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

LOGGER_NAME = "renovate_config_updater"
FILE_FORMAT = "%(asctime)s %(message)s"
DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


def log_file_path(log_dir: Path, now: datetime | None = None) -> Path:
    timestamp = (now or datetime.now()).strftime("%Y-%m-%d_%H-%M-%S")
    return log_dir / f"renovate-updater_{timestamp}.log"


@contextmanager
def run_log(log_dir: Path, stream=None) -> Iterator[logging.Logger]:
    """Open the log for one run and close it when the run ends.

    Every record goes to the log file with a timestamp and to ``stream``
    (stdout by default) as the bare message.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    path = log_file_path(log_dir)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO)
    previous_propagate = logger.propagate
    logger.propagate = False

    file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    console_handler = logging.StreamHandler(stream or sys.stdout)
    console_handler.setFormatter(logging.Formatter("%(message)s"))

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)
    try:
        yield logger
    finally:
        for handler in (file_handler, console_handler):
            handler.flush()
            logger.removeHandler(handler)
        file_handler.close()
        logger.propagate = previous_propagate
