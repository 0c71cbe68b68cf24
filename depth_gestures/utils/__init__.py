"""Utility functions and classes."""

from .config import load_config, save_config, merge_configs, Config
from .logging_utils import setup_logging, get_logger, ProgressLogger

__all__ = [
    "load_config",
    "save_config",
    "merge_configs",
    "Config",
    "setup_logging",
    "get_logger",
    "ProgressLogger",
]
