"""Error taxonomy for query subscription execution.

Query, serialization, and transport failures are recoverable: the
subscription logs them, leaves its watermark untouched, and relies on the
next scheduled trigger to retry. Construction errors are fatal.
"""

from __future__ import annotations

# Service-specific error codes extending ``packages.relay_shared.errors.codes``.
QUERY_UNAVAILABLE = "QUERY_UNAVAILABLE"
QUERY_FAULT = "QUERY_FAULT"
SERIALIZATION_FAILED = "SERIALIZATION_FAILED"
DELIVERY_TRANSPORT_FAILED = "DELIVERY_TRANSPORT_FAILED"
INVALID_SUBSCRIPTION = "INVALID_SUBSCRIPTION"


class SubscriptionError(Exception):
    """Base error for query subscription failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class QueryUnavailableError(SubscriptionError):
    """The query engine could not be reached or did not answer."""

    def __init__(
        self, message: str, *, query_name: str, cause: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.query_name = query_name
        self.cause = cause


class QueryFaultError(SubscriptionError):
    """The query engine answered with a domain fault for this query."""

    def __init__(self, message: str, *, query_name: str, fault_code: str) -> None:
        super().__init__(message)
        self.query_name = query_name
        self.fault_code = fault_code


class SerializationError(SubscriptionError):
    """A result envelope could not be turned into a payload."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class TransportError(SubscriptionError):
    """The destination could not be reached before a status code was read."""

    def __init__(
        self, message: str, *, destination: str, cause: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.destination = destination
        self.cause = cause


class InvalidSubscriptionError(SubscriptionError):
    """Subscription inputs are malformed; the subscription cannot be built."""
