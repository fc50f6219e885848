"""Structured logging configuration.

JSON (production) or text (development) records carrying the request
correlation ID. Share-token secrets, access codes and bearer-link
ciphertext are bearer credentials: they are masked in messages and in
extra fields before any handler writes them.
"""

import json
import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

# Context variable for correlation ID - available throughout request lifecycle
correlation_id_ctx: ContextVar[str | None] = ContextVar("correlation_id", default=None)

DEFAULT_SERVICE_NAME = "carelink-share-api"

MASK = "***"

# Extra-field names whose value is always a credential
CREDENTIAL_FIELDS = frozenset({"secret", "access_code", "link_data", "password"})

# Credentials embedded in paths and URLs: /by-secret/<secret>, ?token=<secret>, ?data=<ciphertext>
_CREDENTIAL_PATTERNS = (
    re.compile(r"(/by-secret/)[^/?#\s'\"]+"),
    re.compile(r"([?&](?:token|data)=)[^&#\s'\"]+"),
)


def mask_credentials(text: str) -> str:
    """Replace credentials embedded in a path, URL or message with ``***``."""
    for pattern in _CREDENTIAL_PATTERNS:
        text = pattern.sub(rf"\1{MASK}", text)
    return text


def redact_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``fields`` safe to log."""
    redacted = {}
    for key, value in fields.items():
        if key in CREDENTIAL_FIELDS:
            redacted[key] = MASK
        elif isinstance(value, str):
            redacted[key] = mask_credentials(value)
        else:
            redacted[key] = value
    return redacted


class CredentialFilter(logging.Filter):
    """Masks credentials in every record passing through a handler.

    Also covers third-party loggers (uvicorn access logs print full URLs).
    """

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = mask_credentials(message)
        if masked != message:
            record.msg = masked
            record.args = None
        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            record.extra_fields = redact_fields(extra_fields)
        return True


class JsonFormatter(logging.Formatter):
    """Formats records as one JSON object per line.

    Keys: timestamp, level, service, message, logger, correlation_id (when
    set), the record's extra fields, exception text, and for errors the
    source location.
    """

    def __init__(self, service_name: str = DEFAULT_SERVICE_NAME):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "message": record.getMessage(),
            "logger": record.name,
        }

        correlation_id = correlation_id_ctx.get()
        if correlation_id:
            log_data["correlation_id"] = correlation_id

        if hasattr(record, "extra_fields"):
            log_data.update(redact_fields(record.extra_fields))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.levelno >= logging.ERROR:
            log_data["location"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter for development.

    Format: timestamp - service - level - [correlation_id] - message key=value...
    """

    def __init__(self, service_name: str = DEFAULT_SERVICE_NAME):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        correlation_id = correlation_id_ctx.get() or "-"

        parts = [
            f"{timestamp} - {self.service_name} - {record.levelname} - "
            f"[{correlation_id}] - {record.getMessage()}"
        ]
        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            parts.extend(
                f"{key}={value}" for key, value in redact_fields(extra_fields).items()
            )
        line = " ".join(parts)

        if record.exc_info:
            line += f"\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(
    log_format: str = "json",
    log_level: str = "INFO",
    service_name: str = DEFAULT_SERVICE_NAME,
) -> None:
    """Configure structured logging for the application.

    Args:
        log_format: 'json' for structured logging, 'text' for human-readable
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        service_name: Service name to include in logs
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(CredentialFilter())
    if log_format.lower() == "json":
        handler.setFormatter(JsonFormatter(service_name=service_name))
    else:
        handler.setFormatter(TextFormatter(service_name=service_name))
    root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


class StructuredLogger:
    """Logger wrapper taking structured fields as keyword arguments.

    Usage:
        logger = get_logger(__name__)
        logger.info("Share token accepted", token_id=str(token.id))
    """

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    def _log(
        self,
        level: int,
        msg: str,
        extra_fields: dict[str, Any],
        exc_info: bool = False,
    ) -> None:
        extra = {"extra_fields": extra_fields} if extra_fields else {}
        self._logger.log(level, msg, extra=extra, exc_info=exc_info)

    def debug(self, msg: str, **extra_fields: Any) -> None:
        self._log(logging.DEBUG, msg, extra_fields)

    def info(self, msg: str, **extra_fields: Any) -> None:
        self._log(logging.INFO, msg, extra_fields)

    def warning(self, msg: str, **extra_fields: Any) -> None:
        self._log(logging.WARNING, msg, extra_fields)

    def error(self, msg: str, **extra_fields: Any) -> None:
        self._log(logging.ERROR, msg, extra_fields)

    def exception(self, msg: str, **extra_fields: Any) -> None:
        """Log at ERROR with the active exception's traceback."""
        self._log(logging.ERROR, msg, extra_fields, exc_info=True)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(name)
