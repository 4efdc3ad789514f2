"""ULID identifiers for subscriptions.

Identifiers are 26 Crockford Base32 characters: a 48-bit millisecond
timestamp followed by 80 random bits, so they sort by creation time.
"""

from __future__ import annotations

import secrets
import time

_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_LENGTH = 26
_TIMESTAMP_BITS = 48
_RANDOM_BITS = 80


def generate_ulid_str(*, timestamp_ms: int | None = None) -> str:
    """Return a new canonical ULID string."""
    ts_ms = time.time_ns() // 1_000_000 if timestamp_ms is None else int(timestamp_ms)
    if not 0 <= ts_ms < 1 << _TIMESTAMP_BITS:
        raise ValueError("timestamp_ms out of ULID 48-bit range")

    number = (ts_ms << _RANDOM_BITS) | secrets.randbits(_RANDOM_BITS)
    chars = []
    for _ in range(_LENGTH):
        number, digit = divmod(number, 32)
        chars.append(_ALPHABET[digit])
    return "".join(reversed(chars))


def is_ulid_str(value: str) -> bool:
    """Return whether ``value`` is a canonical ULID string."""
    if not isinstance(value, str) or len(value) != _LENGTH:
        return False
    if any(char not in _ALPHABET for char in value):
        return False
    # 26 characters hold 130 bits; the first may only carry the top 3.
    return _ALPHABET.index(value[0]) < 8
