import sys
from datetime import datetime, timezone
from pathlib import Path

from loguru import logger

from athletehub import settings
from athletehub.db import ACTIVITY_LOGS, collection


def setup_logger(level: str = settings.LOG_LEVEL, log_file: str | None = settings.LOG_FILE) -> None:
    """Console logging, plus a rotating file when LOG_FILE is set."""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level,
        colorize=True,
    )
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            level=level,
            rotation="10 MB",
            retention="7 days",
        )


def log_activity(user_id: str, action: str, metadata: dict | None = None):
    collection(ACTIVITY_LOGS).insert_one({
        "user_id": user_id,
        "action": action,
        "timestamp": datetime.now(timezone.utc),
        "metadata": metadata or {}
    })
