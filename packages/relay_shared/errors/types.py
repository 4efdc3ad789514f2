"""Canonical shared error types for relay services.

An ``ErrorDetail`` is the transport-agnostic record of one failure. The
subscription core attaches one to every failed execution outcome instead of
raising to its caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping


class ErrorCategory(str, Enum):
    """High-level error categories shared across service boundaries."""

    VALIDATION = "validation"
    DEPENDENCY = "dependency"
    INTERNAL = "internal"


@dataclass(frozen=True)
class ErrorDetail:
    """Structured error object recorded on failed operations."""

    code: str
    message: str
    category: ErrorCategory
    retryable: bool = False
    metadata: Mapping[str, str] = field(default_factory=dict)
