"""Shared utility functions for the Household Ledger project."""

import logging
import os
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path

import colorlog

CENT = Decimal("0.01")


def get_logger(name: str) -> logging.Logger:
    """Get a logger with a colorized format for the project.

    Child loggers (``ledger.api``, ``ledger.db``...) carry no handlers of their own and propagate
    to the ``ledger`` logger, so the file handler added by ``setup_logging`` sees every record.
    """
    logger = logging.getLogger(name)
    if "." in name:
        return logger
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = colorlog.ColoredFormatter(
            "%(log_color)s%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "bold_red",
            },
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.propagate = False
    return logger


def setup_logging(level: str = "INFO", log_file: str | None = None) -> logging.Logger:
    """Configure the root project logger for console output and, optionally, a plain log file.

    Calling it again replaces the file handler of an earlier call, so the most recently built
    application decides where (and whether) records are written to disk.
    """
    logger = get_logger("ledger")
    logger.setLevel(level.upper())
    target = os.path.abspath(log_file) if log_file else None
    for handler in [h for h in logger.handlers if isinstance(h, logging.FileHandler)]:
        if handler.baseFilename == target:
            return logger
        logger.removeHandler(handler)
        handler.close()
    # Add file handler for persistent logs (not colorized); the file is opened on first record
    if log_file:
        ensure_dir(Path(log_file).parent)
        file_handler = logging.FileHandler(log_file, delay=True)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(file_handler)
    return logger


def ensure_dir(path: str | Path) -> None:
    """Ensure a directory exists (like mkdir -p)."""
    Path(path).mkdir(parents=True, exist_ok=True)


def round_money(value: Decimal) -> float:
    """Round a decimal amount half-up to cents and return it as a JSON-friendly float."""
    return float(Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))
