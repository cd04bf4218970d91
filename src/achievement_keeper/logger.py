# SPDX-License-Identifier: MIT

import logging
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

LOGGER = logging.getLogger("achievement_keeper")

# Silence noisy third-party loggers
logging.getLogger("watchdog").setLevel(logging.WARNING)


def setup_logging(level: str = "WARNING", log_file: Optional[Path] = None) -> None:
    """
    Attach handlers to the package logger.

    Console output goes to stderr through rich so it never mixes with the
    tables printed on stdout. Calling this again replaces the handlers
    instead of stacking duplicates.
    """
    for handler in list(LOGGER.handlers):
        LOGGER.removeHandler(handler)
        handler.close()

    LOGGER.setLevel(level.upper())
    LOGGER.propagate = False

    console_handler = RichHandler(show_path=False, rich_tracebacks=True)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    LOGGER.addHandler(console_handler)

    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        except OSError as error:
            LOGGER.warning("Could not open log file %s: %s", log_file, error)
        else:
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s [%(levelname)s] %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )
            LOGGER.addHandler(file_handler)
