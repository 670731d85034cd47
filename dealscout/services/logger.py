import logging
import sys
from loguru import logger
from dealscout.config import settings

CONSOLE_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"

def setup_logging(level: str | None = None):
    logger.remove()
    logger.add(sys.stderr, level=level or settings.LOG_LEVEL, format=CONSOLE_FORMAT)

    # File sink keeps skipped items and swallowed recorder failures
    settings.ensure_dirs()
    logger.add(settings.DATA_DIR / "app.log", rotation="10 MB", level="DEBUG")

    # One line per request from the HTTP clients would drown the scan log
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

setup_logging()
