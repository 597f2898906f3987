"""
Global logging configuration for debtdesk.

Features:
- Log level from DEBTDESK_LOG_LEVEL or the loaded config
- Structured JSON lines for log files
- Coloured human-readable console output
- Size-based rotation of module log files
- Task-local logging context (entity, operation, actor)
"""

import json
import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

LOGS_DIR = Path(os.getenv("DEBTDESK_LOG_DIR", "logs"))
MAX_FILE_SIZE = 20 * 1024 * 1024  # 20MB
BACKUP_COUNT = 5
DEFAULT_LOG_LEVEL = os.getenv("DEBTDESK_LOG_LEVEL", "INFO")

_current_log_level = DEFAULT_LOG_LEVEL.upper()
_log_context: ContextVar[dict[str, Any]] = ContextVar("debtdesk_log_context", default={})


class StructuredFormatter(logging.Formatter):
    """Formatter that outputs one JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if getattr(record, "context", None):
            log_data["context"] = record.context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class HumanFormatter(logging.Formatter):
    """Human-readable formatter for console output."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]

        base_msg = f"[{timestamp}] {color}{record.levelname:8}{self.RESET} | {record.name:36} | {record.getMessage()}"

        if getattr(record, "context", None):
            base_msg += f" | context={json.dumps(record.context, ensure_ascii=False, default=str)}"

        if record.exc_info:
            base_msg += f"\n{self.formatException(record.exc_info)}"

        return base_msg


class ModuleFileHandler:
    """Caches one rotating file handler per module name."""

    _handlers: dict[str, RotatingFileHandler] = {}

    @classmethod
    def get_handler(cls, module_name: str) -> RotatingFileHandler:
        if module_name in cls._handlers:
            return cls._handlers[module_name]

        LOGS_DIR.mkdir(parents=True, exist_ok=True)

        safe_name = module_name.replace(".", "_").replace("/", "_")
        handler = RotatingFileHandler(
            LOGS_DIR / f"{safe_name}.log",
            maxBytes=MAX_FILE_SIZE,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
        handler.setFormatter(StructuredFormatter())

        cls._handlers[module_name] = handler
        return handler


class ContextFilter(logging.Filter):
    """Attaches the current task-local context to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = dict(_log_context.get())
        context.update(getattr(record, "context", None) or {})
        record.context = context
        return True


class DebtDeskLogger(logging.Logger):
    """Logger with structured context helpers."""

    def _log_with_context(
        self,
        level: int,
        msg: str,
        args: tuple,
        context: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        if not self.isEnabledFor(level):
            return
        extra = kwargs.get("extra", {})
        extra["context"] = {**_log_context.get(), **(context or {})}
        kwargs["extra"] = extra
        super()._log(level, msg, args, **kwargs)

    def info_with_context(self, msg: str, context: dict[str, Any] | None = None, *args: Any, **kwargs: Any) -> None:
        self._log_with_context(logging.INFO, msg, args, context, **kwargs)

    def error_with_context(self, msg: str, context: dict[str, Any] | None = None, *args: Any, **kwargs: Any) -> None:
        self._log_with_context(logging.ERROR, msg, args, context, **kwargs)

    def warning_with_context(self, msg: str, context: dict[str, Any] | None = None, *args: Any, **kwargs: Any) -> None:
        self._log_with_context(logging.WARNING, msg, args, context, **kwargs)

    def debug_with_context(self, msg: str, context: dict[str, Any] | None = None, *args: Any, **kwargs: Any) -> None:
        self._log_with_context(logging.DEBUG, msg, args, context, **kwargs)


logging.setLoggerClass(DebtDeskLogger)


def setup_logging(
    level: str | None = None,
    enable_file: bool = False,
    enable_console: bool = True,
    module_name: str = "debtdesk",
) -> None:
    """
    Setup logging configuration.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_file: Enable JSON file logging under LOGS_DIR
        enable_console: Enable console logging
        module_name: Module name for the log file
    """
    global _current_log_level

    if level:
        _current_log_level = level.upper()

    numeric_level = getattr(logging, _current_log_level, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(HumanFormatter())
        console_handler.addFilter(ContextFilter())
        console_handler.setLevel(numeric_level)
        root_logger.addHandler(console_handler)

    if enable_file:
        file_handler = ModuleFileHandler.get_handler(module_name)
        file_handler.addFilter(ContextFilter())
        file_handler.setLevel(numeric_level)
        root_logger.addHandler(file_handler)

    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> DebtDeskLogger:
    """
    Get a logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        DebtDeskLogger instance
    """
    return logging.getLogger(name)  # type: ignore


def set_log_level(level: str) -> None:
    """Dynamically set the log level on the root logger and its handlers."""
    global _current_log_level
    _current_log_level = level.upper()
    numeric_level = getattr(logging, _current_log_level, logging.INFO)

    logging.getLogger().setLevel(numeric_level)
    for handler in logging.getLogger().handlers:
        handler.setLevel(numeric_level)


def get_log_level() -> str:
    return _current_log_level


def get_log_context() -> dict[str, Any]:
    return dict(_log_context.get())


@contextmanager
def log_context(**kwargs: Any):
    """
    Context manager for adding context to logs.

    The context is task-local, so concurrent repository calls do not
    leak entity names or actors into each other's records.

    Usage:
        with log_context(entity="cases", operation="create"):
            logger.info("Creating record")
    """
    token = _log_context.set({**_log_context.get(), **kwargs})
    try:
        yield
    finally:
        _log_context.reset(token)
