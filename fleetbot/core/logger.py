"""Logging with Loguru.

Session tasks set ``session_ctx`` to their account handle so every record they
emit, including those from the driver and auth layers, carries
``extra["session"]`` in the JSON log.
"""

import contextvars
import logging
import sys
from pathlib import Path
from types import FrameType
from typing import Any, Dict, Optional, Union

from loguru import logger

# Handle of the session whose task is currently running
session_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "session", default=None
)

__all__ = ["InterceptHandler", "session_ctx", "setup_structured_logging"]

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
TEXT_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

_ROTATION: Dict[str, Any] = {"rotation": "10 MB", "retention": "30 days", "compression": "zip"}


class InterceptHandler(logging.Handler):
    """Route stdlib logging records (web layer, uvicorn) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: Union[str, int] = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip logging's own frames so loguru reports the real caller
        frame: Optional[FrameType] = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _session_patcher(record: Dict[str, Any]) -> None:
    handle = session_ctx.get()
    if handle:
        record["extra"]["session"] = handle


def setup_structured_logging(
    level: str = "INFO", json_format: bool = True, logs_dir: Union[str, Path] = "logs"
) -> None:
    """
    Configure loguru sinks and take over stdlib logging.

    Sinks:
    - stdout, colorized
    - ``fleet.jsonl`` (serialized records) or ``fleet.log`` (plain text)
    - ``errors_<date>.log`` with tracebacks, kept longer

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Write the main log file as JSON lines
        logs_dir: Directory for the rotating log files
    """
    logger.remove()
    logger.configure(patcher=_session_patcher)

    logs_path = Path(logs_dir)
    logs_path.mkdir(parents=True, exist_ok=True)

    logger.add(sys.stdout, format=CONSOLE_FORMAT, level=level, colorize=True)

    if json_format:
        logger.add(logs_path / "fleet.jsonl", level=level, serialize=True, **_ROTATION)
    else:
        logger.add(logs_path / "fleet.log", format=TEXT_FORMAT, level=level, **_ROTATION)

    logger.add(
        logs_path / "errors_{time:YYYY-MM-DD}.log",
        format=TEXT_FORMAT,
        level="ERROR",
        rotation="10 MB",
        retention="90 days",
        backtrace=True,
        # Variable values may include account secrets
        diagnose=level == "DEBUG",
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    logging.root.setLevel(getattr(logging, level))
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers = []
        logging.getLogger(name).propagate = True

    logger.info(f"Logging initialized (level={level}, json={json_format}, dir={logs_path})")
