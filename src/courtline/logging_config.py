"""Logging setup for the live-match service.

Console output always; a timestamped log file when a directory is given.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union


def setup_logging(
    level: Union[int, str] = logging.INFO, log_dir: Optional[str] = None
) -> Optional[Path]:
    """Configure the root logger.

    Existing handlers are cleared first so repeated calls (tests, app
    factories) do not duplicate output.

    Args:
        level: Minimum level for console output.
        log_dir: When set, a DEBUG-level file handler writes to
            ``{log_dir}/courtline-<timestamp>.log``.

    Returns:
        Path to the log file, or None when file logging is disabled.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(logging.DEBUG if log_dir else level)
    root.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)-5s [%(name)s] %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root.addHandler(console)

    log_file: Optional[Path] = None
    if log_dir:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y-%m-%d-%H%M%S")
        log_file = directory / f"courtline-{timestamp}.log"

        file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-5s [%(name)s] %(message)s")
        )
        root.addHandler(file_handler)

    # Quiet the broker client unless something is wrong.
    logging.getLogger("kombu").setLevel(logging.WARNING)
    logging.getLogger("celery").setLevel(logging.WARNING)

    return log_file


__all__ = ["setup_logging"]
