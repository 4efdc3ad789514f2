"""Execution-scoped logging fields carried in a ``ContextVar``.

The bound mapping is immutable; every bind produces a new mapping, so a
scope restored by ``log_context`` can never see fields written inside it.
Threads and tasks each start from their own copy.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import Iterator, Mapping

_EMPTY: Mapping[str, str] = MappingProxyType({})
_FIELDS: ContextVar[Mapping[str, str]] = ContextVar("relay_log_fields", default=_EMPTY)


def get_context() -> dict[str, str]:
    """Return the currently bound fields as a plain dict."""
    return dict(_FIELDS.get())


def _with(values: Mapping[str, object]) -> Mapping[str, str]:
    merged = dict(_FIELDS.get())
    merged.update(
        (str(key), str(value)) for key, value in values.items() if value is not None
    )
    return MappingProxyType(merged)


def bind_context(**values: object) -> None:
    """Bind fields for the rest of the current context.

    Values are stored as strings; ``None`` leaves a field unbound.
    """
    if values:
        _FIELDS.set(_with(values))


def clear_context(*keys: str) -> None:
    """Drop the named fields, or every field when none are named."""
    if not keys:
        _FIELDS.set(_EMPTY)
        return
    remaining = {key: value for key, value in _FIELDS.get().items() if key not in keys}
    _FIELDS.set(MappingProxyType(remaining))


@contextmanager
def log_context(values: Mapping[str, object]) -> Iterator[None]:
    """Bind ``values`` for one block and restore the previous fields after it."""
    token = _FIELDS.set(_with(values))
    try:
        yield
    finally:
        _FIELDS.reset(token)
