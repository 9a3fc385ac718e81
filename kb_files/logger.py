from loguru import logger
import sys
import logging
from typing import Optional
from .settings import settings


class InterceptHandler(logging.Handler):
    """Intercept standard library logging and forward to loguru.

    uvicorn, fastapi and sqlalchemy log through the logging module; this
    routes them to the same sinks and formatting as the file store.
    """

    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        # find caller depth so loguru shows correct origin
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def configure(level: Optional[str] = None):
    """(Re)install the console and file sinks at the given level."""
    level = level or settings.LOG_LEVEL
    settings.LOG_DIR.mkdir(parents=True, exist_ok=True)
    logger.remove()

    # Console sink: human readable, colorized
    logger.add(
        sys.stdout,
        level=level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | {message}",
        colorize=True,
    )

    # File sink: daily rotation, JSON serialized, asynchronous (enqueue)
    logger.add(
        str(settings.LOG_DIR / "kb-files-{time:YYYY-MM-DD}.log"),
        level=level,
        rotation="00:00",
        retention="14 days",
        serialize=True,
        enqueue=True,
        compression="zip",
    )

    logging.root.handlers = [InterceptHandler()]
    for name in ("uvicorn.access", "uvicorn.error", "fastapi", "sqlalchemy.engine"):
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.setLevel(logging.INFO)
