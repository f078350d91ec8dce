"""Operational logging for pipeline runs."""

from __future__ import annotations

import logging
import os
from datetime import datetime

FORMAT = "%(asctime)s | %(levelname)s | %(message)s"


def generate_run_id() -> str:
    return datetime.now().strftime("%Y%m%d_%H%M%S_%f")


def setup_operational_logger(
    log_dir: str | None, run_id: str
) -> tuple[logging.Logger, str | None]:
    """
    Configure a logger for one pipeline run.
    Logs go to stderr (INFO) and, when `log_dir` is set, to a UTF-8 file (DEBUG).
    Engine loggers (`versionkit.*`) write to the same handlers for the run.
    """

    logger = logging.getLogger(f"file_pipeline.{run_id}")
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()
    logger.propagate = False

    formatter = logging.Formatter(FORMAT)
    handlers: list[logging.Handler] = []

    log_file: str | None = None
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(log_dir, f"{run_id}_oplog.log")
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(logging.INFO)
    handlers.append(stream_handler)

    engine_logger = logging.getLogger("versionkit")
    engine_logger.setLevel(logging.DEBUG)
    engine_logger.handlers.clear()
    engine_logger.propagate = False

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        engine_logger.addHandler(handler)

    logger.info("Operational logging initialized for run %s", run_id)
    if log_file:
        logger.debug("Operational log file: %s", log_file)
    return logger, log_file


def close_operational_logger(logger: logging.Logger) -> None:
    """Detach and close the run's handlers (also from the engine logger)."""

    engine_logger = logging.getLogger("versionkit")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        if handler in engine_logger.handlers:
            engine_logger.removeHandler(handler)
        handler.close()
    engine_logger.propagate = True
