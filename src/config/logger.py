import json
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from src.config.settings import settings

_BASE_LOGGER_NAME = "uvicorn.error"
_CONFIGURED = False
_ANALYSIS_FILE_HANDLER_MARK = "_analysis_debug_file"


def _level(base_logger: logging.Logger, setting: str, fallback: int) -> int:
    """Resolve a level setting by name, warning once when it is not a real level."""
    name = str(getattr(settings, setting, "") or "").strip().upper()
    level = getattr(logging, name, None)
    if isinstance(level, int):
        return level
    base_logger.warning(
        "[logger] Invalid %s '%s', fallback to %s",
        setting,
        name,
        logging.getLevelName(fallback),
    )
    return fallback


def _attach_file_handler(base_logger: logging.Logger) -> None:
    if any(getattr(h, _ANALYSIS_FILE_HANDLER_MARK, False) for h in base_logger.handlers):
        return

    backup_count = settings.LOG_FILE_BACKUP_COUNT
    if backup_count < 0:
        base_logger.warning("[logger] Invalid LOG_FILE_BACKUP_COUNT '%s', fallback to 7", backup_count)
        backup_count = 7

    log_dir = Path(settings.LOG_DIR)
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            filename=str(log_dir / settings.LOG_FILE_NAME),
            when=settings.LOG_FILE_WHEN,
            interval=settings.LOG_FILE_INTERVAL,
            backupCount=backup_count,
            encoding=settings.LOG_FILE_ENCODING,
        )
    except OSError as exc:
        base_logger.warning("[logger] Failed to configure debug file logging at '%s': %s", log_dir, exc)
        return

    file_handler.setLevel(_level(base_logger, "LOG_FILE_LEVEL", logging.DEBUG))
    file_handler.setFormatter(logging.Formatter(settings.LOG_FORMAT))
    setattr(file_handler, _ANALYSIS_FILE_HANDLER_MARK, True)
    base_logger.addHandler(file_handler)


def configure_logging() -> None:
    """Attach console and rotating debug-file handlers to the uvicorn logger once."""
    global _CONFIGURED
    if _CONFIGURED:
        return

    base_logger = logging.getLogger(_BASE_LOGGER_NAME)
    if not base_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(settings.LOG_FORMAT))
        base_logger.addHandler(handler)
        base_logger.propagate = False
    base_logger.setLevel(_level(base_logger, "LOG_LEVEL", logging.INFO))

    _attach_file_handler(base_logger)
    _CONFIGURED = True


def get_logger(name: str | None = None) -> logging.Logger:
    configure_logging()
    base_logger = logging.getLogger(_BASE_LOGGER_NAME)
    return base_logger.getChild(name) if name else base_logger


def _stringify_log_content(content: Any) -> str:
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, BaseModel):
        return json.dumps(content.model_dump(mode="json", by_alias=True), ensure_ascii=False)
    if isinstance(content, (dict, list)):
        return json.dumps(content, ensure_ascii=False, default=str)
    return str(content)


def log_stage(logger: logging.Logger, stage: str, content: Any) -> None:
    """Log a stage payload, truncated to LOG_TRUNCATE characters."""
    text = _stringify_log_content(content)
    if not text:
        logger.info("[%s] output:\n[EMPTY]", stage)
        return

    limit = settings.LOG_TRUNCATE
    if len(text) > limit:
        text = f"{text[:limit]} ...[truncated {len(text) - limit} chars]"
    logger.info("[%s] output:\n%s", stage, text)
