from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

from rich.logging import RichHandler


class HealthCheckFilter(logging.Filter):
    """Drop uvicorn access lines for /health checks."""

    def filter(self, record: logging.LogRecord) -> bool:
        args = record.args
        if isinstance(args, tuple) and len(args) >= 3:
            return not str(args[2]).startswith("/health")
        return "/health" not in record.getMessage()


def _level(value: Union[int, str, None]) -> int:
    if isinstance(value, int):
        return value
    name = str(value or os.getenv("LOG_LEVEL") or "INFO").strip().upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: Union[int, str, None] = None, log_file: Optional[Union[str, Path]] = None) -> None:
    """
    Configure the root logger: Rich console output plus an optional log file.

    ``level`` and ``log_file`` fall back to LOG_LEVEL / LOG_FILE.
    """
    lvl = _level(level)
    log_file = log_file or (os.getenv("LOG_FILE") or "").strip() or None

    root_logger = logging.getLogger()
    root_logger.setLevel(lvl)
    root_logger.handlers.clear()

    console_handler = RichHandler(show_time=True, show_path=False, rich_tracebacks=True)
    console_handler.setLevel(lvl)
    console_handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root_logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
        root_logger.addHandler(file_handler)

    access = logging.getLogger("uvicorn.access")
    if not any(isinstance(f, HealthCheckFilter) for f in access.filters):
        access.addFilter(HealthCheckFilter())

    # Vendor SDKs are chatty at INFO
    for name in ("botocore", "boto3", "urllib3", "httpx", "stripe"):
        logging.getLogger(name).setLevel(logging.WARNING)
