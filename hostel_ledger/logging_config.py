"""
Structured JSON logging for the hostel ledger.

Every record under the ``hostel_ledger`` logger is written as one JSON
object per line.  ``run_command`` binds ``command`` and ``correlation_id``
through LogContext, so every line a command produces can be grouped.  A
HostelLedgerError passed via ``exc_info`` contributes its ``code`` and its
public attributes as ``exc_*`` fields.

Usage::

    logger = get_logger("services.record")
    logger.info("payment_recorded", extra={"contract_id": contract.id})
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
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from hostel_ledger.exceptions import HostelLedgerError

ROOT_LOGGER = "hostel_ledger"

_fields: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"hostel_ledger_log_{name}", default=None)
    for name in ("command", "correlation_id")
}


class LogContext:
    """Command-scoped log fields, held in contextvars."""

    @staticmethod
    def get_all() -> dict[str, str]:
        values = {name: var.get() for name, var in _fields.items()}
        return {name: value for name, value in values.items() if value is not None}

    @staticmethod
    def clear() -> None:
        for var in _fields.values():
            var.set(None)

    @staticmethod
    @contextmanager
    def bind(**values: str) -> Iterator[None]:
        """Set fields for the block and restore the previous values on exit."""
        unknown = sorted(set(values) - set(_fields))
        if unknown:
            raise TypeError(f"Unknown log context field(s): {', '.join(unknown)}")
        tokens = [(_fields[name], _fields[name].set(value)) for name, value in values.items()]
        try:
            yield
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def _to_json(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {"exc_type": type(exc).__name__, "exc_message": str(exc)}
    if isinstance(exc, HostelLedgerError):
        fields["exc_code"] = exc.code
        fields.update(
            (f"exc_{key}", value)
            for key, value in vars(exc).items()
            if not key.startswith("_")
        )
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON line per record: ts, level, logger, message, context, extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_to_json)


def get_logger(name: str) -> logging.Logger:
    """Logger ``hostel_ledger.<name>``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


_handler: logging.Handler | None = None


def configure_logging(
    *,
    level: int | str = logging.INFO,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach one JSON handler (stderr by default) to the ``hostel_ledger`` logger.

    Later calls are no-ops until reset_logging().
    """
    global _handler
    if _handler is not None:
        return
    _handler = handler or logging.StreamHandler(sys.stderr)
    _handler.setFormatter(StructuredFormatter())

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.propagate = False
    logger.addHandler(_handler)


def reset_logging() -> None:
    """Detach the handler configure_logging() added.  Other handlers stay."""
    global _handler
    logger = logging.getLogger(ROOT_LOGGER)
    if _handler is not None:
        logger.removeHandler(_handler)
        _handler = None
    logger.setLevel(logging.NOTSET)
