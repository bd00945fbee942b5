"""Structured logging for the API and the export runner.

Every record carries the correlation id of the request or export run that
produced it. Extras attached through ``extra=`` are emitted as JSON fields
after redaction, so editor emails and Google credentials never reach the logs.
"""

from __future__ import annotations

from contextvars import ContextVar, Token
from datetime import datetime, timezone
import json
import logging
import re
from typing import Any, Mapping
from uuid import uuid4


CORRELATION_ID_CONTEXT: ContextVar[str] = ContextVar("correlation_id", default="-")
CORRELATION_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,127}$")

# Matched against keys lowercased with "-" and "_" removed.
_SENSITIVE_KEY_FRAGMENTS = ("authorization", "token", "password", "secret", "apikey", "privatekey", "email")

# Applied in order; the PEM block goes first so its body is not partially rewritten.
_REDACTIONS: tuple[tuple[re.Pattern[str], str], ...] = (
    (
        re.compile(r"-----BEGIN [A-Z ]*PRIVATE KEY-----[\s\S]*?-----END [A-Z ]*PRIVATE KEY-----"),
        "[REDACTED_PRIVATE_KEY]",
    ),
    (re.compile(r"(?i)\bBearer\s+[A-Za-z0-9\-._~+/]+=*"), "Bearer [REDACTED]"),
    (re.compile(r"\bya29\.[0-9A-Za-z\-_.]+"), "[REDACTED_OAUTH_TOKEN]"),
    (re.compile(r"\bAIza[0-9A-Za-z\-_]{35}\b"), "[REDACTED_API_KEY]"),
    (re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"), "[REDACTED_EMAIL]"),
)

# Attributes every LogRecord has; anything else on a record came from ``extra=``.
_RECORD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {
    "message",
    "asctime",
    "correlation_id",
}


def normalize_correlation_id(candidate: str | None) -> str:
    """Return ``candidate`` trimmed when it is a safe header value, otherwise a fresh UUID."""
    trimmed = (candidate or "").strip()
    if trimmed and CORRELATION_ID_PATTERN.fullmatch(trimmed):
        return trimmed
    return str(uuid4())


def set_correlation_id(correlation_id: str) -> Token[str]:
    return CORRELATION_ID_CONTEXT.set(correlation_id)


def reset_correlation_id(token: Token[str]) -> None:
    CORRELATION_ID_CONTEXT.reset(token)


def get_correlation_id() -> str:
    return CORRELATION_ID_CONTEXT.get()


def _is_sensitive_key(key: str) -> bool:
    compact = key.lower().replace("-", "").replace("_", "")
    return any(fragment in compact for fragment in _SENSITIVE_KEY_FRAGMENTS)


def _redact(text: str, *, max_length: int) -> str:
    for pattern, replacement in _REDACTIONS:
        text = pattern.sub(replacement, text)
    if len(text) > max_length:
        return f"{text[:max_length]}...[truncated]"
    return text


def sanitize_for_logging(value: Any, *, max_string_length: int = 240) -> Any:
    if isinstance(value, Mapping):
        return {
            str(key): "[REDACTED]"
            if _is_sensitive_key(str(key))
            else sanitize_for_logging(item, max_string_length=max_string_length)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [sanitize_for_logging(item, max_string_length=max_string_length) for item in value]
    if isinstance(value, str):
        return _redact(value, max_length=max_string_length)
    return value


def preview_lines(text: str, *, limit: int = 5) -> dict[str, object]:
    lines = text.split("\n")
    return {
        "preview": "\n".join(lines[:limit]),
        "remaining_lines": max(len(lines) - limit, 0),
    }


class CorrelationIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = get_correlation_id()
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", get_correlation_id()),
        }
        extras = {key: value for key, value in record.__dict__.items() if key not in _RECORD_ATTRS}
        payload.update(sanitize_for_logging(extras))

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level_name: str) -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name.upper(), logging.INFO))

    # The API lifespan and the CLI may both call this; install one handler only.
    if any(isinstance(handler.formatter, JsonFormatter) for handler in root.handlers):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    handler.addFilter(CorrelationIdFilter())
    root.addHandler(handler)
