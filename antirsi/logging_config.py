from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from loguru import logger


_configured = False

_DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


class _InterceptHandler(logging.Handler):
    """Forward standard logging records into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(
    *,
    level: str = "INFO",
    force: bool = False,
    log_file: Optional[str | Path] = None,
    rotation: str = "1 MB",
    fmt: Optional[str] = None,
) -> None:
    """
    Configure the loguru sinks for the whole app.

    Library modules keep using `logging.getLogger(__name__)`; those records are
    intercepted and routed here.

    Parameters:
    - level: minimum level for stderr (and the optional file sink).
    - force: reconfigure even if already configured.
    - log_file: optional path of a rotating log file.
    - rotation: loguru rotation rule for the file sink.
    - fmt: optional custom format.
    """
    global _configured

    if _configured and not force:
        return

    logger.remove()

    logger.add(
        sys.stderr,
        level=level.upper(),
        colorize=True,
        format=fmt or _DEFAULT_FORMAT,
    )

    if log_file is not None:
        logger.add(
            str(log_file),
            level=level.upper(),
            rotation=rotation,
            retention=3,
            encoding="utf-8",
            format=fmt or _DEFAULT_FORMAT,
        )

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)
    _configured = True
