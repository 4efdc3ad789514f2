"""Domain contracts for the query subscription service.

Event records are opaque mappings: the subscription core counts and
categorizes them but never interprets their fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field

from packages.relay_shared.errors import ErrorDetail

EventRecord = Mapping[str, Any]
QueryParamValue = str | int | float | datetime | list[str]


class QueryParam(BaseModel):
    """One named query parameter.

    The value type follows the name convention of the query language, for
    example ``GE_<field>`` carries a timestamp lower bound on ``<field>``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    value: QueryParamValue


class EventList(BaseModel):
    """Events of one poll, split into the four event categories.

    ``None`` marks a category the query engine omitted. An empty tuple marks
    a category it returned without elements. Both mean "no events".
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    aggregation_events: tuple[EventRecord, ...] | None = None
    object_events: tuple[EventRecord, ...] | None = None
    quantity_events: tuple[EventRecord, ...] | None = None
    transaction_events: tuple[EventRecord, ...] | None = None


class QueryResult(BaseModel):
    """Structured result of one query execution."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    query_name: str
    subscription_id: str | None = None
    event_list: EventList | None = None

    def with_subscription_id(self, subscription_id: str) -> QueryResult:
        """Return a copy stamped with the owning subscription id."""
        return self.model_copy(update={"subscription_id": subscription_id})


class QueryDocument(BaseModel):
    """Response envelope wrapping one result for delivery."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    creation_date: datetime
    schema_version: str = "1.0"
    query_results: QueryResult


class EventCounts(BaseModel):
    """Per-category event counts of one result, for diagnostics."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    aggregation_events: int = 0
    object_events: int = 0
    quantity_events: int = 0
    transaction_events: int = 0

    @property
    def total(self) -> int:
        return (
            self.aggregation_events
            + self.object_events
            + self.quantity_events
            + self.transaction_events
        )

    @property
    def is_empty(self) -> bool:
        return self.total == 0


class DeliveryOutcome(BaseModel):
    """Response status obtained from one delivery."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    destination: str
    status_code: int


class SubscriptionState(BaseModel):
    """Persistable snapshot of one subscription.

    This is what an external store records after every execution that
    advanced the watermark, and what ``Subscription.from_state`` consumes.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    subscription_id: str
    query_name: str
    parameters: tuple[QueryParam, ...] = ()
    destination: str
    report_if_empty: bool
    initial_record_time: datetime
    watermark: datetime


class ExecutionStatus(str, Enum):
    """Terminal status of one triggered execution."""

    DELIVERED = "delivered"
    SUPPRESSED = "suppressed"
    QUERY_FAILED = "query_failed"
    SERIALIZATION_FAILED = "serialization_failed"
    DELIVERY_FAILED = "delivery_failed"
    SKIPPED_BUSY = "skipped_busy"


@dataclass(frozen=True)
class ExecutionOutcome:
    """Structured record of one ``execute_query`` call."""

    subscription_id: str
    status: ExecutionStatus
    watermark_before: datetime
    watermark_after: datetime
    counts: EventCounts | None = None
    delivery: DeliveryOutcome | None = None
    error: ErrorDetail | None = None

    @property
    def advanced(self) -> bool:
        """Whether the watermark moved and the state should be persisted."""
        return self.watermark_after > self.watermark_before

    @property
    def succeeded(self) -> bool:
        return self.status in {ExecutionStatus.DELIVERED, ExecutionStatus.SUPPRESSED}
