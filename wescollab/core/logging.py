"""Logging utilities with JSON formatting, redaction, and request correlation.

This module centralizes logging configuration, including:
- Context-aware request_id propagation via contextvars
- Redaction of credentials and posting contact data on log records
- JSON (or plain text) formatting
- Configurable stdout/file handlers with rotation support

Events are logged as short dotted names (``post.created``,
``rate_limit.exceeded``) with the interesting values passed through ``extra``.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging import LogRecord
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Mapping

from wescollab.core.config import LogSettings, settings

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

REDACTED = "[REDACTED]"

# Credentials plus the personal contact fields carried by postings.
# Compared lower-cased, so camelCase wire names are listed flattened.
SENSITIVE_KEYS_DEFAULT: frozenset[str] = frozenset(
    {
        "authorization",
        "apikey",
        "cookie",
        "set-cookie",
        "password",
        "email",
        "contactemail",
        "contact_email",
        "contactphone",
        "contact_phone",
        "contactdetails",
        "contact_details",
    }
)

# Any key ending like this is treated as a credential (access_token, anon_key, ...)
SENSITIVE_SUFFIXES: tuple[str, ...] = ("token", "_key", "secret")

# Attributes every LogRecord carries; only what callers add via ``extra`` is emitted
_RECORD_ATTRS = frozenset(vars(LogRecord("", logging.INFO, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "taskName",
}


def set_request_id(request_id: str | None) -> None:
    """Store the current request id in a context variable."""

    _request_id_var.set(request_id)


def get_request_id() -> str | None:
    """Fetch the current request id from context, if one was set."""

    return _request_id_var.get()


def clear_request_id() -> None:
    _request_id_var.set(None)


class Redactor:
    """Replaces values stored under sensitive keys, recursing into containers."""

    def __init__(self, sensitive_keys: Iterable[str] | None = None) -> None:
        keys = SENSITIVE_KEYS_DEFAULT if sensitive_keys is None else sensitive_keys
        self.sensitive_keys = frozenset(k.lower() for k in keys)

    def is_sensitive(self, key: Any) -> bool:
        if not isinstance(key, str):
            return False
        lowered = key.lower()
        return lowered in self.sensitive_keys or lowered.endswith(SENSITIVE_SUFFIXES)

    def redact(self, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {
                k: REDACTED if self.is_sensitive(k) else self.redact(v)
                for k, v in value.items()
            }
        if isinstance(value, (list, tuple)):
            return type(value)(self.redact(v) for v in value)
        return value

    def extras(self, record: LogRecord) -> dict[str, Any]:
        """Return the caller-supplied fields of ``record``, redacted."""
        return {
            key: REDACTED if self.is_sensitive(key) else self.redact(value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }


class RequestIdFilter(logging.Filter):
    """Attach request_id from context when absent on the record."""

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()
        return True


class SensitiveDataFilter(logging.Filter):
    """Redact sensitive fields on the record before any formatter sees it."""

    def __init__(self, sensitive_keys: Iterable[str] | None = None) -> None:
        super().__init__()
        self.redactor = Redactor(sensitive_keys)

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        for key, value in self.redactor.extras(record).items():
            setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    """Format LogRecord as one JSON object per line, with redaction."""

    def __init__(
        self,
        *,
        sensitive_keys: Iterable[str] | None = None,
        ensure_ascii: bool = True,
    ) -> None:
        super().__init__()
        self.redactor = Redactor(sensitive_keys)
        self.ensure_ascii = ensure_ascii

    def format(self, record: LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(self.redactor.extras(record))

        request_id = payload.get("request_id") or get_request_id()
        if request_id:
            payload["request_id"] = request_id
        else:
            payload.pop("request_id", None)

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, ensure_ascii=self.ensure_ascii)


class PlainFormatter(logging.Formatter):
    """Human-readable single line, with the request id when there is one."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s%(rid)s %(message)s")

    def format(self, record: LogRecord) -> str:  # noqa: D401
        request_id = getattr(record, "request_id", None) or get_request_id()
        record.rid = f" [{request_id}]" if request_id else ""
        return super().format(record)


def _build_handler(log_settings: LogSettings) -> logging.Handler:
    if log_settings.output != "file":
        return logging.StreamHandler(sys.stdout)

    file_path = Path(log_settings.file_path or "logs/app.log")
    file_path.parent.mkdir(parents=True, exist_ok=True)
    if log_settings.max_bytes == 0:
        return logging.FileHandler(file_path, encoding="utf-8")
    return RotatingFileHandler(
        file_path,
        maxBytes=log_settings.max_bytes,
        backupCount=log_settings.backup_count,
        encoding="utf-8",
    )


def configure_logging(log_settings: LogSettings | None = None) -> None:
    """Configure the root logger with redaction and the selected formatter.

    APP_DEBUG=true forces DEBUG level regardless of LOG_LEVEL.

    Args:
        log_settings: Optional log settings; defaults to global settings if omitted.
    """

    cfg = log_settings or settings.log

    level = logging.DEBUG if settings.app.debug else logging.getLevelName(cfg.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = _build_handler(cfg)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(PlainFormatter() if cfg.format == "plain" else JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Keep uvicorn from re-emitting through the root handler
    logging.getLogger("uvicorn").propagate = False
    logging.getLogger("uvicorn.access").propagate = False
    # httpx logs full request URLs, which carry PostgREST filters with user ids
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
