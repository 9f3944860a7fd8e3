"""Structured logging configuration for ReqForge.

JSON lines in production, readable text in development. Two contextvars
travel with every record: the request id (set by the request middleware)
and the project id (set by project-scoped services), so a single project's
edit history can be followed through the log stream.
"""

import contextvars
import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Optional


request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")
project_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("project_id", default="")


class _JsonFormatter(logging.Formatter):
    """One JSON object per record.

    ``extra`` fields passed by the caller are merged into the top-level
    object, e.g. ``logger.info("appended", extra={"number": 3})``.
    """

    _RESERVED = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys())

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        rid = request_id_var.get("")
        if rid:
            payload["request_id"] = rid
        pid = project_id_var.get("")
        if pid:
            payload["project_id"] = pid

        for key, value in record.__dict__.items():
            if key not in self._RESERVED and key not in payload:
                payload[key] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


class _TextFormatter(logging.Formatter):
    """Human-readable lines with the project id appended when known."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        pid = project_id_var.get("")
        return f"{line} [project={pid}]" if pid else line


# Provider keys end up in exception text from LiteLLM more often than one would like.
_BARE_SECRETS = [
    re.compile(r'\bsk-[a-zA-Z0-9]{20,}\b'),
    re.compile(r'\bAIza[0-9A-Za-z_\-]{20,}'),
]
# Group 1 is kept, the value after it is replaced.
_PREFIXED_SECRETS = [
    re.compile(r'(?i)(bearer\s+)[a-zA-Z0-9._\-]{20,}'),
    re.compile(r'(?i)((?:api_key|key|secret|password|token)[=:]\s*)[^\s,\'"&]{8,}'),
]

_REDACTED = "***REDACTED***"


def redact(text: str) -> str:
    """Replace anything that looks like a credential with a marker."""
    for pattern in _BARE_SECRETS:
        text = pattern.sub(_REDACTED, text)
    for pattern in _PREFIXED_SECRETS:
        text = pattern.sub(lambda m: m.group(1) + _REDACTED, text)
    return text


class _SecretFilter(logging.Filter):
    """Runs ``redact`` over the rendered message and any cached traceback."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.args:
            record.msg = record.getMessage()
            record.args = None
        record.msg = redact(str(record.msg))
        if record.exc_text:
            record.exc_text = redact(record.exc_text)
        return True


_FORMATTERS = {
    "json": _JsonFormatter,
    "text": lambda: _TextFormatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s", "%Y-%m-%d %H:%M:%S"),
}

# Libraries that are chatty at INFO.
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "LiteLLM", "httpx")


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Install one stdout handler on the root logger, replacing any others.

    ``log_format`` is ``"json"`` (default) or ``"text"``; unknown values
    fall back to text.
    """
    level = (log_level or "INFO").upper()
    fmt = (log_format or "json").lower()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(_SecretFilter())
    handler.setFormatter(_FORMATTERS.get(fmt, _FORMATTERS["text"])())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info("Logging configured", extra={"level": level, "format": fmt})
