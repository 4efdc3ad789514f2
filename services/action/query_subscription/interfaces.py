"""Transport-neutral protocol interfaces consumed by the subscription core."""

from __future__ import annotations

from typing import Protocol, Sequence

from services.action.query_subscription.domain import (
    QueryDocument,
    QueryParam,
    QueryResult,
)


class QueryEngine(Protocol):
    """Executes named queries.

    Implementations raise ``QueryUnavailableError`` when the engine cannot be
    reached and ``QueryFaultError`` when it rejects the query.
    """

    def poll(self, *, query_name: str, parameters: Sequence[QueryParam]) -> QueryResult:
        """Run one named query with the given parameters."""


class ResultSerializer(Protocol):
    """Turns a response envelope into a transmittable payload.

    Implementations must be deterministic and raise ``SerializationError``
    on malformed envelope content.
    """

    def serialize(self, document: QueryDocument) -> bytes:
        """Serialize one response envelope."""


class DeliveryClient(Protocol):
    """Sends one payload to a destination and returns its status code.

    Implementations raise ``TransportError`` when no status code could be
    obtained. Any status code, including error statuses, is returned.
    """

    def deliver(self, *, destination: str, payload: bytes) -> int:
        """Deliver one payload with a single request."""
