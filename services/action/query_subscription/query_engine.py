"""HTTP adapter exposing a remote query endpoint as a ``QueryEngine``.

Poll requests are posted as JSON documents::

    {"queryName": "SimpleEventQuery",
     "params": [{"name": "EQ_bizStep", "value": "shipping"}, ...]}

The endpoint answers with either a result document::

    {"queryName": "...",
     "resultsBody": {"eventList": {"objectEvents": [...], ...}}}

or a fault document ``{"fault": {"code": "...", "reason": "..."}}``.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Sequence

import httpx
from pydantic import ValidationError

from packages.relay_shared.http import (
    HttpClient,
    HttpJsonDecodeError,
    HttpRequestError,
    HttpStatusError,
)
from packages.relay_shared.logging import get_logger
from services.action.query_subscription.domain import (
    EventList,
    QueryParam,
    QueryResult,
)
from services.action.query_subscription.errors import (
    QueryFaultError,
    QueryUnavailableError,
)

_LOGGER = get_logger(__name__)

MALFORMED_RESPONSE_FAULT = "MalformedResponse"

_WIRE_CATEGORIES = (
    ("aggregationEvents", "aggregation_events"),
    ("objectEvents", "object_events"),
    ("quantityEvents", "quantity_events"),
    ("transactionEvents", "transaction_events"),
)
_WIRE_NAMES = frozenset(wire_name for wire_name, _ in _WIRE_CATEGORIES)


class HttpQueryEngine:
    """Query engine adapter backed by one shared HTTP client.

    The adapter owns its client unless one is injected; the underlying
    ``httpx.Client`` is safe to share read-only across subscriptions.
    """

    def __init__(
        self,
        *,
        endpoint_url: str,
        timeout_seconds: float = 30.0,
        transport: httpx.BaseTransport | None = None,
        client: HttpClient | None = None,
    ) -> None:
        self._endpoint_url = endpoint_url
        self._owns_client = client is None
        self._client = client or HttpClient(
            timeout_seconds=timeout_seconds,
            transport=transport,
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def poll(self, *, query_name: str, parameters: Sequence[QueryParam]) -> QueryResult:
        body = {
            "queryName": query_name,
            "params": [param.model_dump(mode="json") for param in parameters],
        }
        try:
            document = self._client.post_json(self._endpoint_url, json=body)
        except HttpRequestError as exc:
            raise QueryUnavailableError(
                f"Query engine at '{self._endpoint_url}' is unreachable: {exc.message}",
                query_name=query_name,
                cause=exc,
            ) from exc
        except HttpStatusError as exc:
            if exc.retryable:
                raise QueryUnavailableError(
                    f"Query engine at '{self._endpoint_url}' is unavailable: {exc.message}",
                    query_name=query_name,
                    cause=exc,
                ) from exc
            raise QueryFaultError(
                f"Query '{query_name}' was rejected: {exc.message}",
                query_name=query_name,
                fault_code=_fault_code_from_body(exc.response_body)
                or f"HTTP_{exc.status_code}",
            ) from exc
        except HttpJsonDecodeError as exc:
            raise QueryFaultError(
                f"Query engine returned a non-JSON answer for '{query_name}'",
                query_name=query_name,
                fault_code=MALFORMED_RESPONSE_FAULT,
            ) from exc

        return _parse_result(document, query_name=query_name)


def _parse_result(document: Any, *, query_name: str) -> QueryResult:
    """Map one wire result document onto a ``QueryResult``.

    Only an absent or null ``resultsBody`` or ``eventList`` means no events.
    Any other shape the adapter does not understand is a malformed fault.
    """
    if not isinstance(document, Mapping):
        raise _malformed(query_name, "a non-object answer")

    fault = document.get("fault")
    if isinstance(fault, Mapping):
        code = str(fault.get("code") or "QueryFault")
        reason = str(fault.get("reason") or "no reason given")
        raise QueryFaultError(
            f"Query '{query_name}' failed with {code}: {reason}",
            query_name=query_name,
            fault_code=code,
        )

    results_body = document.get("resultsBody")
    if results_body is None:
        results_body = {}
    if not isinstance(results_body, Mapping):
        raise _malformed(query_name, "a non-object resultsBody")

    raw_events = results_body.get("eventList")
    if raw_events is not None and not isinstance(raw_events, Mapping):
        raise _malformed(query_name, "a non-object eventList")
    if raw_events is not None:
        unknown = sorted(str(key) for key in raw_events if key not in _WIRE_NAMES)
        if unknown:
            raise _malformed(
                query_name, f"unknown event categories {', '.join(unknown)}"
            )

    try:
        event_list = None
        if raw_events is not None:
            event_list = EventList.model_validate(
                {
                    attribute: raw_events.get(wire_name)
                    for wire_name, attribute in _WIRE_CATEGORIES
                }
            )
        return QueryResult(
            query_name=str(document.get("queryName") or query_name),
            event_list=event_list,
        )
    except ValidationError as exc:
        _LOGGER.debug("Rejected malformed result document: %s", exc)
        raise _malformed(query_name, "a malformed result") from exc


def _malformed(query_name: str, detail: str) -> QueryFaultError:
    return QueryFaultError(
        f"Query engine returned {detail} for '{query_name}'",
        query_name=query_name,
        fault_code=MALFORMED_RESPONSE_FAULT,
    )


def _fault_code_from_body(body: str) -> str | None:
    """Extract a fault code from an error response body, when present."""
    try:
        document = json.loads(body)
    except ValueError:
        return None
    if not isinstance(document, Mapping):
        return None
    fault = document.get("fault")
    if isinstance(fault, Mapping) and fault.get("code"):
        return str(fault["code"])
    return None
