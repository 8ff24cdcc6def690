"""Logging configuration for router-cli.

Provides configurable logging with:
- File-based logging with rotation
- Console output on stderr so stdout stays clean for diffs and command output
- Performance timing decorator for RPC round trips

Environment Variables:
    ROUTER_CLI_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    ROUTER_CLI_LOG_FILE: Path to log file (default: ~/.router-cli/router-cli.log)
    ROUTER_CLI_LOG_MAX_SIZE: Max log file size in MB (default: 10)
    ROUTER_CLI_LOG_BACKUPS: Number of backup files to keep (default: 5)

Usage:
    from router_cli.utils.logging_config import setup_logging, timed

    setup_logging()  # Call once at startup

    @timed("rpc")
    async def execute(self, request):
        ...
"""
import asyncio
import functools
import logging
import os
import sys
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Callable, Any

# Performance logger - separate from main logger for easy filtering
perf_logger = logging.getLogger("router_cli.perf")

LOG_FORMAT = "%(asctime)s.%(msecs)03d | %(name)-28s | %(levelname)-7s | %(message)s"
PERF_FORMAT = "%(asctime)s.%(msecs)03d | PERF | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_log_level() -> int:
    """Get log level from environment."""
    level_str = os.environ.get("ROUTER_CLI_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_str, logging.INFO)


def get_log_file() -> Path:
    """Get log file path from environment."""
    default_path = Path.home() / ".router-cli" / "router-cli.log"
    path_str = os.environ.get("ROUTER_CLI_LOG_FILE", str(default_path))
    return Path(path_str)


def setup_logging(level: Optional[int] = None, log_file: Optional[Path] = None) -> None:
    """Configure logging for the application.

    Sets up:
    - Console handler on stderr (INFO+ by default, respects ROUTER_CLI_LOG_LEVEL)
    - File handler with rotation (DEBUG level - captures everything)
    - Performance log file fed by the ``timed`` decorator

    Args:
        level: Console level override (e.g. from ``--verbose``)
        log_file: Log file override, mostly for tests
    """
    log_level = level if level is not None else get_log_level()
    log_file = log_file or get_log_file()
    max_size_mb = int(os.environ.get("ROUTER_CLI_LOG_MAX_SIZE", "10"))
    backup_count = int(os.environ.get("ROUTER_CLI_LOG_BACKUPS", "5"))

    log_file.parent.mkdir(parents=True, exist_ok=True)

    main_format = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    perf_format = logging.Formatter(PERF_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(main_format)

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(main_format)

    perf_log_file = log_file.parent / "router-cli-perf.log"
    perf_handler = RotatingFileHandler(
        perf_log_file,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8"
    )
    perf_handler.setLevel(logging.DEBUG)
    perf_handler.setFormatter(perf_format)

    root_logger = logging.getLogger("router_cli")
    root_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    # Perf records go to their own file only; console stays readable
    perf_logger.setLevel(logging.DEBUG)
    perf_logger.propagate = False
    perf_logger.handlers.clear()
    perf_logger.addHandler(perf_handler)

    root_logger.debug(f"Logging initialized: level={logging.getLevelName(log_level)}, file={log_file}")


def timed(operation: str, router: Optional[str] = None):
    """Decorator to log execution time of sync/async functions.

    Args:
        operation: Name of the operation (e.g., "connect", "rpc")
        router: Optional router identifier (can also be inferred from self.router)
    """
    def decorator(func: Callable) -> Callable:
        def _target(args) -> str:
            if router is not None:
                return router
            if args and hasattr(args[0], "router"):
                return str(args[0].router)
            return "N/A"

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            target = _target(args)
            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
                elapsed = (time.perf_counter() - start) * 1000  # ms
                perf_logger.info(
                    f"{operation:20s} | {target:20s} | {elapsed:8.2f}ms | OK"
                )
                return result
            except Exception as e:
                elapsed = (time.perf_counter() - start) * 1000
                perf_logger.warning(
                    f"{operation:20s} | {target:20s} | {elapsed:8.2f}ms | FAIL: {e}"
                )
                raise

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs) -> Any:
            target = _target(args)
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
                elapsed = (time.perf_counter() - start) * 1000
                perf_logger.info(
                    f"{operation:20s} | {target:20s} | {elapsed:8.2f}ms | OK"
                )
                return result
            except Exception as e:
                elapsed = (time.perf_counter() - start) * 1000
                perf_logger.warning(
                    f"{operation:20s} | {target:20s} | {elapsed:8.2f}ms | FAIL: {e}"
                )
                raise

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator
