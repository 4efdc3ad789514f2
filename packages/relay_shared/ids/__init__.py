"""Shared ULID primitives for subscription identifiers."""

from packages.relay_shared.ids.ulid import generate_ulid_str, is_ulid_str

__all__ = ["generate_ulid_str", "is_ulid_str"]
