"""Public logging API for relay services.

This package wraps Python's ``logging`` module with stdout emission and
structured context propagation for per-subscription fields.
"""

from .config import configure_logging, get_logger
from .context import bind_context, clear_context, get_context, log_context

__all__ = [
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_context",
    "get_logger",
    "log_context",
]
