"""Collaborator fakes and result builders for query subscription tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any, Callable, Sequence

from packages.relay_shared.logging import get_context
from services.action.query_subscription.domain import (
    EventList,
    QueryDocument,
    QueryParam,
    QueryResult,
)
from services.action.query_subscription.serializer import XmlResultSerializer

T0 = datetime(2024, 5, 1, 8, 0, tzinfo=UTC)


@dataclass
class PollCall:
    query_name: str
    parameters: list[QueryParam]
    context: dict[str, str]


@dataclass
class DeliveryCall:
    destination: str
    payload: bytes


class FakeQueryEngine:
    """Query engine fake returning queued results or raising queued errors."""

    def __init__(self) -> None:
        self.queued: list[QueryResult | Exception] = []
        self.calls: list[PollCall] = []
        self.on_poll: Callable[[], None] | None = None

    def poll(self, *, query_name: str, parameters: Sequence[QueryParam]) -> QueryResult:
        self.calls.append(
            PollCall(
                query_name=query_name,
                parameters=list(parameters),
                context=get_context(),
            )
        )
        if self.on_poll is not None:
            self.on_poll()
        outcome = self.queued.pop(0) if self.queued else QueryResult(query_name=query_name)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingSerializer:
    """Serializer spy delegating to the XML serializer unless told to fail."""

    def __init__(self) -> None:
        self.documents: list[QueryDocument] = []
        self.raise_on_serialize: Exception | None = None
        self._delegate = XmlResultSerializer()

    def serialize(self, document: QueryDocument) -> bytes:
        self.documents.append(document)
        if self.raise_on_serialize is not None:
            raise self.raise_on_serialize
        return self._delegate.serialize(document)


class RecordingDeliveryClient:
    """Delivery client fake recording payloads."""

    def __init__(self) -> None:
        self.calls: list[DeliveryCall] = []
        self.status_code = 200
        self.raise_on_deliver: Exception | None = None

    def deliver(self, *, destination: str, payload: bytes) -> int:
        self.calls.append(DeliveryCall(destination=destination, payload=payload))
        if self.raise_on_deliver is not None:
            raise self.raise_on_deliver
        return self.status_code


@dataclass
class FakeClock:
    now: datetime = field(default_factory=lambda: T0 + timedelta(hours=1))

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now


def object_events(count: int) -> tuple[dict[str, Any], ...]:
    return tuple(
        {
            "eventTime": T0 + timedelta(minutes=index),
            "epcList": [f"urn:epc:id:sgtin:0614141.107346.{index}"],
            "action": "OBSERVE",
            "bizStep": "shipping",
        }
        for index in range(count)
    )


def result_with(**categories: tuple[dict[str, Any], ...] | None) -> QueryResult:
    return QueryResult(query_name="SimpleEventQuery", event_list=EventList(**categories))

