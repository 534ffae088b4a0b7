from __future__ import annotations

import logging
import sys
import time
from typing import Dict, Optional, Tuple

from gaswise.configuration.config import settings

APP_NAMESPACE = "gaswise"

_RESET = "\033[0m"
_DIM = "\033[2m"

# level name -> (emoji, ANSI color)
_LEVEL_STYLE: Dict[str, Tuple[str, str]] = {
    "DEBUG": ("🔍", "\033[36m"),
    "INFO": ("ℹ️", "\033[32m"),
    "WARNING": ("⚠️", "\033[33m"),
    "ERROR": ("❌", "\033[31m"),
    "CRITICAL": ("🛑", "\033[35m"),
}


def _level_from_str(value: str) -> int:
    level = getattr(logging, (value or "INFO").upper(), None)
    return level if isinstance(level, int) else logging.INFO


class ColorFormatter(logging.Formatter):
    """
    One line per record: local timestamp, level emoji, level, logger name, message.

      2025-10-02 01:36:22.123+0200 ℹ️ INFO     gaswise.core.jobs.refresh_job - [GAS][JOB][REFRESH] ...
    """

    def __init__(self, use_color: bool = True) -> None:
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        local = time.localtime(record.created)
        timestamp = f"{time.strftime('%Y-%m-%d %H:%M:%S', local)}.{int(record.msecs):03d}{time.strftime('%z', local)}"
        level = record.levelname.upper()
        emoji, color = _LEVEL_STYLE.get(level, ("", ""))

        if self.use_color:
            line = (f"{_DIM}{timestamp}{_RESET} {color}{emoji} {level:<8}{_RESET} "
                    f"{record.name} {_DIM}- {record.getMessage()}{_RESET}")
        else:
            line = f"{timestamp} {emoji} {level:<8} {record.name} - {record.getMessage()}"

        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def init_logging() -> None:
    """Configure the root console handler, the 'gaswise' level and library levels."""
    root = logging.getLogger()
    root.setLevel(_level_from_str(settings.LOG_LEVEL))
    if not any(getattr(handler, "_gaswise_handler", False) for handler in root.handlers):
        handler = logging.StreamHandler(stream=sys.stderr)
        handler._gaswise_handler = True
        handler.setFormatter(ColorFormatter(use_color=sys.stderr.isatty() and not settings.NO_COLOR))
        root.addHandler(handler)

    logging.getLogger(APP_NAMESPACE).setLevel(_level_from_str(settings.LOG_LEVEL_GASWISE))

    library_levels = {
        "httpx": settings.LOG_LEVEL_LIB_HTTPX,
        "httpcore": settings.LOG_LEVEL_LIB_HTTPCORE,
        "asyncio": settings.LOG_LEVEL_LIB_ASYNCIO,
        "anyio": settings.LOG_LEVEL_LIB_ANYIO,
        "web3": settings.LOG_LEVEL_LIB_WEB3,
    }
    for name, level in library_levels.items():
        logging.getLogger(name).setLevel(_level_from_str(level))

    # uvicorn ships its own handlers; route its records through the root formatter instead.
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger under the 'gaswise.*' namespace for `name` (usually `__name__`)."""
    base = name or APP_NAMESPACE
    if base != APP_NAMESPACE and not base.startswith(APP_NAMESPACE + "."):
        base = f"{APP_NAMESPACE}.{base}"
    return logging.getLogger(base)
