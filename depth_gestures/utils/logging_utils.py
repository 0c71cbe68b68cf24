"""
Logging Utilities

Provides consistent logging setup across the gesture pipeline.

Usage:
    from depth_gestures.utils.logging_utils import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__)
    logger.info("Pipeline ready")
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime

from tqdm import tqdm


DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class TqdmLoggingHandler(logging.Handler):
    """
    Logging handler compatible with tqdm progress bars.

    Routes records through tqdm.write so per-frame messages do not
    break an active progress bar.
    """

    def __init__(self, level=logging.NOTSET):
        super().__init__(level)

    def emit(self, record):
        try:
            msg = self.format(record)
            tqdm.write(msg)
        except Exception:
            self.handleError(record)


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    use_tqdm: bool = False
) -> None:
    """
    Set up logging configuration.

    Args:
        level: Logging level (e.g., logging.INFO, logging.DEBUG)
        log_file: Optional file path for logging output
        format_string: Custom format string
        use_tqdm: Write console records through tqdm (for progress bars)
    """
    if format_string is None:
        format_string = DEFAULT_FORMAT

    formatter = logging.Formatter(format_string, datefmt='%Y-%m-%d %H:%M:%S')

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []

    if use_tqdm:
        console_handler = TqdmLoggingHandler(level)
    else:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

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
    """Logs throughput while a frame sequence is being processed."""

    def __init__(
        self,
        name: str,
        total: Optional[int] = None,
        log_interval: int = 100
    ):
        """
        Args:
            name: Logger name
            total: Total number of frames, if known
            log_interval: How often to log progress (frames)
        """
        self.logger = get_logger(name)
        self.total = total
        self.log_interval = log_interval
        self.current = 0
        self.start_time = None

    def start(self):
        self.start_time = datetime.now()
        if self.total:
            self.logger.info(f"Processing {self.total} frames")
        else:
            self.logger.info("Processing frame stream")

    def update(self, n: int = 1):
        self.current += n

        if self.current % self.log_interval == 0 or self.current == self.total:
            elapsed = self._elapsed()
            rate = self.current / elapsed if elapsed > 0 else 0

            if self.total:
                self.logger.info(
                    f"Progress: {self.current}/{self.total} "
                    f"({100 * self.current / self.total:.1f}%) - "
                    f"{rate:.1f} frames/sec"
                )
            else:
                self.logger.info(f"Progress: {self.current} frames - {rate:.1f} frames/sec")

    def finish(self):
        elapsed = self._elapsed()
        rate = self.current / elapsed if elapsed > 0 else 0
        self.logger.info(
            f"Completed {self.current} frames in {elapsed:.1f}s ({rate:.1f} frames/sec)"
        )

    def _elapsed(self) -> float:
        if self.start_time is None:
            return 0.0
        return (datetime.now() - self.start_time).total_seconds()
