"""Utility modules for logging and timing."""
from .logging_config import (
    setup_logging,
    timed,
    perf_logger,
)

__all__ = [
    "setup_logging",
    "timed",
    "perf_logger",
]
