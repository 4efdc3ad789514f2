"""Emptiness classification for poll results.

A category the engine omitted and a category it returned without elements
are treated identically, so whichever convention a query engine follows does
not change what subscribers see.
"""

from __future__ import annotations

from services.action.query_subscription.domain import EventCounts, QueryResult


def _size(events: tuple[object, ...] | None) -> int:
    return 0 if events is None else len(events)


def count_events(result: QueryResult) -> EventCounts:
    """Return per-category event counts of one result."""
    event_list = result.event_list
    if event_list is None:
        return EventCounts()
    return EventCounts(
        aggregation_events=_size(event_list.aggregation_events),
        object_events=_size(event_list.object_events),
        quantity_events=_size(event_list.quantity_events),
        transaction_events=_size(event_list.transaction_events),
    )


def is_empty(result: QueryResult) -> bool:
    """Return whether no category of ``result`` holds any event."""
    return count_events(result).is_empty
