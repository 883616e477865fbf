"""Structured logging for CMDB lookups.

Every event goes through the ``lib_layered_cmdb`` logger, which stays silent
until the host application attaches a handler. Events are short snake_case
names (``cmdb_file_loaded``, ``cmdb_lookup_complete``) and carry their details
in ``record.context``, together with the trace identifier of the lookup that
produced them, so a handler can correlate the file reads and merges of one
``get`` call.

Contents
    - ``TRACE_ID``: context variable holding the active trace identifier.
    - ``get_logger``: the package logger.
    - ``bind_trace_id``: bind or clear the identifier by hand.
    - ``lookup_trace``: scope a generated identifier to one lookup.
    - ``log_debug`` / ``log_info`` / ``log_error``: level-specific emitters.
    - ``make_event``: ``stage``/``path`` payload builder.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Final, Iterator, Mapping

TRACE_ID: ContextVar[str | None] = ContextVar("lib_layered_cmdb_trace_id", default=None)

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_layered_cmdb")
_LOGGER.addHandler(logging.NullHandler())


def get_logger() -> logging.Logger:
    """Return the package logger; attach handlers here to see lookup events."""

    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Bind *trace_id* for subsequent events in this context; ``None`` clears it.

    >>> bind_trace_id('lookup-1')
    >>> TRACE_ID.get()
    'lookup-1'
    >>> bind_trace_id(None)
    >>> TRACE_ID.get() is None
    True
    """

    TRACE_ID.set(trace_id)


@contextmanager
def lookup_trace() -> Iterator[str]:
    """Scope a trace identifier to one lookup.

    An identifier bound by the caller is reused; otherwise a fresh one is bound
    for the duration of the block and removed afterwards.

    >>> with lookup_trace() as trace:
    ...     TRACE_ID.get() == trace
    True
    >>> TRACE_ID.get() is None
    True
    """

    current = TRACE_ID.get()
    if current is not None:
        yield current
        return
    token = TRACE_ID.set(uuid.uuid4().hex[:16])
    try:
        yield TRACE_ID.get()  # type: ignore[misc]
    finally:
        TRACE_ID.reset(token)


def log_debug(message: str, **fields: Any) -> None:
    """Emit a debug event carrying *fields* and the active trace id.

    Why
        Per-file detail (reads, cache hits, merges) is only useful while
        debugging a lookup, so it stays below the default level.
    Inputs
        message: Event name such as ``cmdb_file_loaded``.
        fields: Structured detail, usually built by :func:`make_event`.
    Side Effects
        Writes to the ``lib_layered_cmdb`` logger when DEBUG is enabled.
    """

    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    """Emit an info event; used once per lookup for ``cmdb_lookup_complete``."""

    _emit(logging.INFO, message, fields)


def log_error(message: str, **fields: Any) -> None:
    """Emit an error event just before a malformed source aborts the lookup."""

    _emit(logging.ERROR, message, fields)


def make_event(stage: str, path: str | None, payload: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Return ``{"stage": ..., "path": ..., **payload}`` for the ``log_*`` helpers.

    *stage* names the lookup step (``candidates``, ``load``, ``merge``,
    ``lookup``); *path* is the CMDB source involved, if any.

    >>> make_event('merge', 'cmdb/default.yml', {'keys': 3})
    {'stage': 'merge', 'path': 'cmdb/default.yml', 'keys': 3}
    """

    return {"stage": stage, "path": path, **(payload or {})}


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    """Attach ``trace_id`` plus *fields* as ``record.context`` and log at *level*."""

    if not _LOGGER.isEnabledFor(level):
        return
    _LOGGER.log(level, message, extra={"context": {"trace_id": TRACE_ID.get(), **fields}})
