"""
Structured JSON logging for the asset kernel (``asset_kernel.logging_config``).

Every record under the ``asset_kernel`` logger is written as one JSON line.
A line carries, in order of precedence:

* the envelope: ``ts``, ``level``, ``logger``, ``message``;
* the request context bound by the lifecycle engine for the current
  operation (``correlation_id``, ``operation``, ``variant``, ``request_id``,
  ``actor_name``);
* the ``extra`` fields of the call;
* for a logged exception, its type and message and, for kernel errors,
  the ``exc_code`` / ``exc_error_kind`` a caller sees on the failed
  ``LifecycleResult`` plus the error's own fields (``exc_request_no``,
  ``exc_expected_version``, ...).

Usage::

    configure_logging()
    logger = get_logger("services.lifecycle")
    with LogContext.bind(operation="submit", request_id=str(request_id)):
        logger.info("lifecycle_operation_started")
"""

__all__ = [
    "CONTEXT_FIELDS",
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any
from uuid import UUID

LOGGER_NAMESPACE = "asset_kernel"

# Request-scoped fields, in the order they appear on a log line.
CONTEXT_FIELDS = (
    "correlation_id",
    "operation",
    "variant",
    "request_id",
    "actor_name",
)

_EMPTY: Mapping[str, str] = MappingProxyType({})
_context: ContextVar[Mapping[str, str]] = ContextVar("asset_log_context", default=_EMPTY)


class LogContext:
    """Request-scoped log fields, held in a single context variable."""

    @staticmethod
    def _merged(fields: dict[str, str | None]) -> Mapping[str, str]:
        unknown = sorted(set(fields) - set(CONTEXT_FIELDS))
        if unknown:
            raise TypeError(f"Unknown log context field(s): {', '.join(unknown)}")
        merged = dict(_context.get())
        merged.update((k, v) for k, v in fields.items() if v is not None)
        return MappingProxyType(merged)

    @classmethod
    def set(cls, **fields: str | None) -> None:
        """Update the given fields; ``None`` leaves a field unchanged."""
        _context.set(cls._merged(fields))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        current = _context.get()
        return {name: current[name] for name in CONTEXT_FIELDS if name in current}

    @classmethod
    def clear(cls) -> None:
        _context.set(_EMPTY)

    @classmethod
    @contextmanager
    def bind(cls, **fields: str | None) -> Iterator[None]:
        """Set fields for the ``with`` block and restore the previous ones."""
        token = _context.set(cls._merged(fields))
        try:
            yield
        finally:
            _context.reset(token)


# ---------------------------------------------------------------------------
# JSON formatting
# ---------------------------------------------------------------------------

_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    kind = getattr(exc, "kind", None)
    if kind is not None:
        fields["exc_error_kind"] = kind.value
    for key, value in vars(exc).items():
        if not key.startswith("_"):
            fields.setdefault(f"exc_{key}", value)
    return fields


class StructuredFormatter(logging.Formatter):
    """Formats each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(LogContext.get_all())
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Logger ``asset_kernel.<name>``."""
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


_setup_lock = threading.Lock()


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the ``asset_kernel`` logger.

    Only the first call takes effect; later calls are no-ops until
    ``reset_logging()``.  Records do not propagate to the root logger.
    """
    root = logging.getLogger(LOGGER_NAMESPACE)
    with _setup_lock:
        if root.handlers:
            return
        target = handler or logging.StreamHandler(stream or sys.stderr)
        target.setFormatter(StructuredFormatter())
        root.addHandler(target)
        root.setLevel(level)
        root.propagate = False


def reset_logging() -> None:
    """Detach every handler and restore defaults. Tests only."""
    root = logging.getLogger(LOGGER_NAMESPACE)
    with _setup_lock:
        for existing in list(root.handlers):
            root.removeHandler(existing)
        root.setLevel(logging.NOTSET)
        root.propagate = True
