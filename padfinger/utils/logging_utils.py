"""
Logging Utilities

Provides consistent logging setup across the project.

Usage:
    from padfinger.utils.logging_utils import setup_logging, get_logger

    setup_logging("DEBUG")
    logger = get_logger(__name__)
    logger.info("Solve started")
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union
from datetime import datetime


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown logging level: {level}")
    return resolved


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    use_tqdm: bool = False
) -> None:
    """
    Set up logging configuration.

    Args:
        level: Logging level (e.g., logging.INFO or "DEBUG")
        log_file: Optional file path for logging output
        format_string: Custom format string
        use_tqdm: Route console output through tqdm.write so progress
            bars are not broken by log lines
    """
    level = _resolve_level(level)

    if format_string is None:
        format_string = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    formatter = logging.Formatter(format_string, datefmt='%Y-%m-%d %H:%M:%S')

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers
    root_logger.handlers = []

    # Console handler
    if use_tqdm:
        console_handler = TqdmLoggingHandler()
    else:
        console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler (optional)
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the specified name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


class ProgressLogger:
    """Periodic progress reports for iterative searches (generations, annealing steps)."""

    def __init__(
        self,
        name: str,
        total: int,
        log_interval: int = 100,
        unit: str = "steps"
    ):
        """
        Args:
            name: Logger name
            total: Total number of steps
            log_interval: How often to log progress
            unit: Label used in messages
        """
        self.logger = get_logger(name)
        self.total = total
        self.log_interval = max(1, log_interval)
        self.unit = unit
        self.current = 0
        self.start_time = None

    def start(self):
        """Start progress tracking."""
        self.start_time = datetime.now()
        self.logger.debug(f"Starting {self.total} {self.unit}")

    def update(self, n: int = 1, **metrics: float):
        """Advance by n steps, logging the supplied metrics at each interval."""
        self.current += n

        if self.current % self.log_interval == 0 or self.current == self.total:
            elapsed = (datetime.now() - self.start_time).total_seconds()
            rate = self.current / elapsed if elapsed > 0 else 0
            details = " ".join(f"{key}={value:.3f}" for key, value in metrics.items())

            self.logger.debug(
                f"Progress: {self.current}/{self.total} {self.unit} "
                f"({100 * self.current / max(self.total, 1):.1f}%) - "
                f"{rate:.1f} {self.unit}/sec {details}".rstrip()
            )

    def finish(self):
        """Finish progress tracking."""
        elapsed = (datetime.now() - self.start_time).total_seconds()
        self.logger.info(f"Completed {self.current} {self.unit} in {elapsed:.2f}s")


class TqdmLoggingHandler(logging.Handler):
    """
    Logging handler compatible with tqdm progress bars.

    Prevents log messages from breaking tqdm output.
    """

    def __init__(self, level=logging.NOTSET):
        super().__init__(level)

    def emit(self, record):
        try:
            from tqdm import tqdm
            msg = self.format(record)
            tqdm.write(msg)
        except Exception:
            self.handleError(record)
