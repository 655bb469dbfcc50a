"""
Structured JSON logging for the budget kernel.

Every record is one JSON object per line.  Besides the fixed envelope
(``ts``, ``level``, ``logger``, ``message``) a record carries:

- the fields bound in ``LogContext`` for the current unit of work
  (correlation id, user, cycle label, charge being applied, actor);
- any ``extra={...}`` passed at the call site;
- for exceptions, ``exc_type``/``exc_message``/``traceback`` and, for
  ``BudgetKernelError`` subclasses, ``exc_code`` plus one ``exc_<attr>``
  field per structured attribute (``exc_user_id``, ``exc_cycle_label``...).
"""

__all__ = [
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
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Mapping
from uuid import UUID

_LOGGER_PREFIX = "budget_kernel"

# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------

CONTEXT_FIELDS: tuple[str, ...] = (
    "correlation_id",
    "user_id",
    "cycle_label",
    "charge_id",
    "actor_id",
)

_EMPTY: Mapping[str, str] = MappingProxyType({})

_context: ContextVar[Mapping[str, str]] = ContextVar("budget_log_context", default=_EMPTY)


def _checked(fields: dict[str, Any]) -> dict[str, str]:
    unknown = set(fields) - set(CONTEXT_FIELDS)
    if unknown:
        raise TypeError(f"Unknown log context field(s): {sorted(unknown)}")
    return {k: str(v) for k, v in fields.items() if v is not None}


class LogContext:
    """
    Per-thread / per-task log fields for the current unit of work.

    The orchestrator binds ``correlation_id``, ``user_id`` and
    ``cycle_label``; the charge engine binds ``charge_id`` around each
    charge.  Values are stored as strings; None means "leave unchanged".
    """

    @staticmethod
    def set(**fields: Any) -> None:
        """Merge non-None fields into the current context."""
        updates = _checked(fields)
        if updates:
            _context.set(MappingProxyType({**_context.get(), **updates}))

    @staticmethod
    def get_all() -> dict[str, str]:
        return dict(_context.get())

    @staticmethod
    def clear() -> None:
        _context.set(_EMPTY)

    @staticmethod
    def bind(**fields: Any) -> "_BoundContext":
        """
        Context manager: merge fields on entry, restore the previous
        context on exit.

        Usage::

            with LogContext.bind(user_id=user_id, cycle_label="2025-01"):
                ...
        """
        return _BoundContext(_checked(fields))


class _BoundContext:
    def __init__(self, updates: dict[str, str]):
        self._updates = updates
        self._token = None

    def __enter__(self) -> type[LogContext]:
        self._token = _context.set(MappingProxyType({**_context.get(), **self._updates}))
        return LogContext

    def __exit__(self, *exc: Any) -> None:
        _context.reset(self._token)


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_RESERVED: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (UUID, Decimal)):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    return str(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    # BudgetKernelError subclasses keep their arguments as attributes
    for name, value in vars(exc).items():
        if not name.startswith("_") and name != "code":
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context.get(),
        }

        for key, value in vars(record).items():
            if key not in _RESERVED:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """``get_logger("services.snapshot")`` -> ``budget_kernel.services.snapshot``."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach one JSON handler to the ``budget_kernel`` logger.

    Only the first call has an effect; later calls (engine init, CLI,
    tests) are no-ops.  ``level`` accepts the names used in the
    ``logging.level`` configuration key.
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    if handler is None:
        handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())

    root = logging.getLogger(_LOGGER_PREFIX)
    root.setLevel(level.upper() if isinstance(level, str) else level)
    root.propagate = False
    root.addHandler(handler)


def reset_logging() -> None:
    """Drop handlers and allow ``configure_logging`` again. Tests only."""
    global _configured
    with _lock:
        _configured = False
    root = logging.getLogger(_LOGGER_PREFIX)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
