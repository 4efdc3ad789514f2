"""Fixtures wiring a subscription to in-memory collaborator fakes."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from services.action.query_subscription.domain import QueryParam
from services.action.query_subscription.subscription import Subscription
from services.action.query_subscription.tests.fakes import (
    T0,
    FakeClock,
    FakeQueryEngine,
    RecordingDeliveryClient,
    RecordingSerializer,
)


@pytest.fixture
def query_engine() -> FakeQueryEngine:
    return FakeQueryEngine()


@pytest.fixture
def serializer() -> RecordingSerializer:
    return RecordingSerializer()


@pytest.fixture
def delivery_client() -> RecordingDeliveryClient:
    return RecordingDeliveryClient()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_subscription(
    query_engine: FakeQueryEngine,
    serializer: RecordingSerializer,
    delivery_client: RecordingDeliveryClient,
    clock: FakeClock,
) -> Callable[..., Subscription]:
    """Build a subscription with overridable constructor arguments."""

    def _make(**overrides: Any) -> Subscription:
        options: dict[str, Any] = {
            "subscription_id": "sub-1",
            "query_name": "SimpleEventQuery",
            "parameters": [QueryParam(name="EQ_bizStep", value="shipping")],
            "destination": "http://subscriber.example.test/capture",
            "report_if_empty": False,
            "initial_record_time": T0,
            "query_engine": query_engine,
            "serializer": serializer,
            "delivery_client": delivery_client,
            "clock": clock,
        }
        options.update(overrides)
        return Subscription(**options)

    return _make
