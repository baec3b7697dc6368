"""Logging for the storefront.

structlog renders through the standard library root logger: coloured console
output in development and test, one JSON object per line in production and
staging. Request handlers bind ``request_id`` and ``path`` with
``add_context`` so every line logged while serving a request carries them.

Money taken without a matching order is reported on the ``storefront.audit``
logger, which gets its own file when ``LOG_DIR`` is set.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

AUDIT_LOGGER_NAME = "storefront.audit"

_DEFAULT_LEVELS = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

_JSON_ENVIRONMENTS = ("production", "staging")

# Third-party loggers that are too chatty below WARNING
_QUIET_LOGGERS = ("urllib3", "asyncio", "stripe", "httpx", "protean")


def get_environment() -> str:
    return (os.getenv("PROTEAN_ENV") or os.getenv("ENVIRONMENT") or "development").lower()


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", _DEFAULT_LEVELS.get(get_environment(), "INFO")).upper()


def _file_handler(path: Path, level: int | str) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(path, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8")
    handler.setLevel(level)
    return handler


def _attach_file_handlers(root: logging.Logger, log_dir: str, level: str) -> None:
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    root.addHandler(_file_handler(directory / "storefront.log", level))
    root.addHandler(_file_handler(directory / "storefront_error.log", logging.ERROR))
    logging.getLogger(AUDIT_LOGGER_NAME).addHandler(_file_handler(directory / "storefront_audit.log", logging.WARNING))


def _renderer(environment: str):
    if environment in _JSON_ENVIRONMENTS:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=sys.stdout.isatty(),
        exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=2),
    )


def configure_logging() -> None:
    """Configure the stdlib root logger and structlog. Safe to call again."""
    environment = get_environment()
    level = get_log_level()

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [logging.StreamHandler(sys.stdout)]

    log_dir = os.getenv("LOG_DIR")
    if log_dir:
        _attach_file_handlers(root, log_dir, level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            ),
            _renderer(environment),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def get_audit_logger() -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(AUDIT_LOGGER_NAME)


def add_context(**kwargs: Any) -> None:
    """Bind values that every following log line in this context will carry."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
