"""Loguru setup for the price service: console, rotating file and Slack alerts."""

import logging
import sys
from pathlib import Path
from typing import Any

import httpx
from loguru import logger

from token_pricer.core.config import settings

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> [{extra[request_id]}] | {message}"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {extra[name]}:{function}:{line} | {extra[request_id]} | {message}"

KNOWN_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}
LEVEL_ALIASES = {"WARN": "WARNING", "FATAL": "CRITICAL"}
STDLIB_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

_configured = False


class InterceptHandler(logging.Handler):
    """Redirect stdlib logs to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_name == "emit":
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _slack_sink(message: Any) -> None:
    record = message.record
    extra = record["extra"]
    text = (
        f":rotating_light: *{record['level'].name}* in token-pricer ({settings.ENV})\n"
        f"`{extra.get('name', 'token_pricer')}:{record['function']}:{record['line']}` "
        f"request={extra.get('request_id', '-')}\n{record['message']}"
    )
    try:
        httpx.post(settings.SLACK_WEBHOOK_URL, json={"text": text}, timeout=5.0)
    except httpx.HTTPError:
        # a failing webhook must not log again
        pass


def _resolve_level(raw: str | None) -> str:
    level = (raw or "INFO").strip().upper()
    level = LEVEL_ALIASES.get(level, level)
    return level if level in KNOWN_LEVELS else "INFO"


def _add_file_sink(level: str) -> None:
    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_dir / "token_pricer.log",
        level=level,
        format=FILE_FORMAT,
        rotation="10 MB",
        retention="14 days",
        enqueue=True,
        backtrace=False,
        diagnose=False,
    )


def _route_stdlib_logging() -> None:
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    # per-request lines only at WARNING and above
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    for name in STDLIB_LOGGERS:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False


def configure_logging() -> None:
    """Install sinks once per process."""
    global _configured
    if _configured:
        return
    _configured = True

    level = _resolve_level(settings.effective_log_level)

    logger.remove()
    logger.configure(extra={"name": "token_pricer", "request_id": "-"})
    logger.add(sys.stdout, level=level, format=CONSOLE_FORMAT, colorize=not settings.is_production, diagnose=False)

    if settings.LOG_TO_FILE:
        _add_file_sink(level)
    if settings.SLACK_WEBHOOK_URL:
        logger.add(_slack_sink, level="ERROR", enqueue=True)

    _route_stdlib_logging()


def get_logger(name: str) -> logger.__class__:
    return logger.bind(name=name)


def request_logger(name: str, request_id: str) -> logger.__class__:
    """Logger whose lines carry the API request id."""
    return logger.bind(name=name, request_id=request_id)


configure_logging()
