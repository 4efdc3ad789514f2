"""Tests for subscription construction and the recreate-from-storage contract."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from packages.relay_shared.ids import is_ulid_str
from services.action.query_subscription.domain import QueryParam, SubscriptionState
from services.action.query_subscription.errors import InvalidSubscriptionError
from services.action.query_subscription.subscription import (
    Subscription,
    build_parameters,
    new_subscription_id,
)
from services.action.query_subscription.tests.fakes import T0


def test_watermark_starts_at_initial_record_time(make_subscription) -> None:
    subscription = make_subscription()

    assert subscription.watermark == T0
    assert subscription.initial_record_time == T0


def test_last_time_executed_seeds_watermark(make_subscription, query_engine) -> None:
    """A recreated subscription should resume from its last execution time."""
    resumed_at = T0 + timedelta(days=2)
    subscription = make_subscription(last_time_executed=resumed_at)

    subscription.execute_query()

    assert query_engine.calls[0].parameters[-1] == QueryParam(
        name="GE_recordTime", value=resumed_at
    )


def test_from_state_round_trips_persisted_snapshot(
    make_subscription, query_engine, serializer, delivery_client, clock
) -> None:
    original = make_subscription(last_time_executed=T0 + timedelta(hours=3))
    stored = SubscriptionState.model_validate_json(original.state.model_dump_json())

    restored = Subscription.from_state(
        stored,
        query_engine=query_engine,
        serializer=serializer,
        delivery_client=delivery_client,
        clock=clock,
    )

    assert restored.state == original.state
    assert restored.watermark == T0 + timedelta(hours=3)
    assert restored.destination == original.destination
    assert restored.report_if_empty is False


@pytest.mark.parametrize(
    ("overrides", "message"),
    [
        ({"subscription_id": "  "}, "subscription_id"),
        ({"query_name": ""}, "query_name"),
        ({"subscription_id": " sub-1"}, "surrounding whitespace"),
        ({"query_name": "SimpleEventQuery\n"}, "surrounding whitespace"),
        ({"destination": "ftp://subscriber.example.test/drop"}, r"http\(s\)"),
        ({"destination": "/relative/path"}, r"http\(s\)"),
        ({"initial_record_time": datetime(2024, 5, 1, 8, 0)}, "timezone-aware"),
        ({"last_time_executed": T0 - timedelta(seconds=1)}, "precede"),
        ({"time_filter_parameter": "LT_recordTime"}, "GE_"),
        (
            {
                "parameters": [
                    QueryParam(name="EQ_bizStep", value="shipping"),
                    QueryParam(name="EQ_bizStep", value="receiving"),
                ]
            },
            "Duplicate",
        ),
        (
            {"parameters": [QueryParam(name="GE_recordTime", value=T0)]},
            "managed by the subscription",
        ),
    ],
)
def test_malformed_construction_is_fatal(make_subscription, overrides, message) -> None:
    with pytest.raises(InvalidSubscriptionError, match=message):
        make_subscription(**overrides)


def test_custom_time_filter_parameter_is_used(make_subscription, query_engine) -> None:
    subscription = make_subscription(time_filter_parameter="GE_eventTime")

    subscription.execute_query()

    assert query_engine.calls[0].parameters[-1].name == "GE_eventTime"


def test_build_parameters_pairs_parallel_arrays() -> None:
    parameters = build_parameters(["EQ_bizStep", "MATCH_epc"], ["shipping", ["urn:epc:*"]])

    assert parameters == [
        QueryParam(name="EQ_bizStep", value="shipping"),
        QueryParam(name="MATCH_epc", value=["urn:epc:*"]),
    ]


def test_build_parameters_rejects_mismatched_arrays() -> None:
    with pytest.raises(InvalidSubscriptionError, match="2 parameter names but 1 values"):
        build_parameters(["EQ_bizStep", "EQ_action"], ["shipping"])


def test_build_parameters_rejects_blank_names() -> None:
    with pytest.raises(InvalidSubscriptionError):
        build_parameters([""], ["shipping"])


def test_new_subscription_ids_are_unique_ulids() -> None:
    first = new_subscription_id()
    second = new_subscription_id()

    assert first != second
    assert is_ulid_str(first)
    assert is_ulid_str(second)
