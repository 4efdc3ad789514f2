"""Recurring query subscription: poll, classify, serialize, deliver.

A subscription re-runs one named query each time its scheduler triggers it,
restricted to events recorded at or after its watermark. The watermark only
moves forward after an execution completes, either with a delivery that
obtained a status code or with a deliberately suppressed empty result.
Failed executions leave it untouched so the next trigger polls the same
window again.
"""

from __future__ import annotations

import threading
from datetime import UTC, datetime
from typing import Callable, Sequence

import httpx
from pydantic import ValidationError

from packages.relay_shared.errors import (
    ErrorDetail,
    dependency_error,
    exception_to_error,
    internal_error,
)
from packages.relay_shared.ids import generate_ulid_str
from packages.relay_shared.logging import fields, get_logger, log_context
from services.action.query_subscription import errors
from services.action.query_subscription.domain import (
    DeliveryOutcome,
    EventCounts,
    ExecutionOutcome,
    ExecutionStatus,
    QueryDocument,
    QueryParam,
    QueryParamValue,
    QueryResult,
    SubscriptionState,
)
from services.action.query_subscription.emptiness import count_events
from services.action.query_subscription.errors import (
    InvalidSubscriptionError,
    QueryFaultError,
    QueryUnavailableError,
    SerializationError,
    TransportError,
)
from services.action.query_subscription.interfaces import (
    DeliveryClient,
    QueryEngine,
    ResultSerializer,
)

_LOGGER = get_logger(__name__)

TIME_FILTER_PARAMETER = "GE_recordTime"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


def new_subscription_id() -> str:
    """Assign a fresh, time-ordered subscription identifier."""
    return generate_ulid_str()


def build_parameters(
    names: Sequence[str], values: Sequence[QueryParamValue]
) -> list[QueryParam]:
    """Build query parameters from parallel name and value arrays."""
    if len(names) != len(values):
        raise InvalidSubscriptionError(
            f"Got {len(names)} parameter names but {len(values)} values"
        )
    try:
        return [QueryParam(name=name, value=value) for name, value in zip(names, values)]
    except ValidationError as exc:
        raise InvalidSubscriptionError(f"Invalid query parameter: {exc}") from exc


class Subscription:
    """One standing query whose incremental results go to a destination.

    Distinct subscriptions share no mutable state and may execute
    concurrently. A single subscription runs at most one execution at a
    time; an overlapping trigger is skipped rather than queued.
    """

    def __init__(
        self,
        *,
        subscription_id: str,
        query_name: str,
        parameters: Sequence[QueryParam],
        destination: str,
        report_if_empty: bool,
        initial_record_time: datetime,
        last_time_executed: datetime | None = None,
        query_engine: QueryEngine,
        serializer: ResultSerializer,
        delivery_client: DeliveryClient,
        time_filter_parameter: str = TIME_FILTER_PARAMETER,
        clock: Clock = utc_now,
        log_payloads: bool = False,
    ) -> None:
        self._subscription_id = _require_text(subscription_id, "subscription_id")
        self._query_name = _require_text(query_name, "query_name")
        self._destination = _require_destination(destination)
        self._time_filter_parameter = _require_time_filter(time_filter_parameter)
        self._parameters = _require_parameters(
            parameters, time_filter_parameter=self._time_filter_parameter
        )
        self._report_if_empty = bool(report_if_empty)
        self._initial_record_time = _require_aware(
            initial_record_time, "initial_record_time"
        )
        watermark = self._initial_record_time
        if last_time_executed is not None:
            watermark = _require_aware(last_time_executed, "last_time_executed")
            if watermark < self._initial_record_time:
                raise InvalidSubscriptionError(
                    "last_time_executed must not precede initial_record_time"
                )
        self._watermark = watermark

        self._query_engine = query_engine
        self._serializer = serializer
        self._delivery_client = delivery_client
        self._clock = clock
        self._log_payloads = log_payloads

        self._lock = threading.Lock()
        self._retry_document: QueryDocument | None = None

    @classmethod
    def from_state(
        cls,
        state: SubscriptionState,
        *,
        query_engine: QueryEngine,
        serializer: ResultSerializer,
        delivery_client: DeliveryClient,
        time_filter_parameter: str = TIME_FILTER_PARAMETER,
        clock: Clock = utc_now,
        log_payloads: bool = False,
    ) -> Subscription:
        """Recreate a subscription from its persisted snapshot."""
        return cls(
            subscription_id=state.subscription_id,
            query_name=state.query_name,
            parameters=state.parameters,
            destination=state.destination,
            report_if_empty=state.report_if_empty,
            initial_record_time=state.initial_record_time,
            last_time_executed=state.watermark,
            query_engine=query_engine,
            serializer=serializer,
            delivery_client=delivery_client,
            time_filter_parameter=time_filter_parameter,
            clock=clock,
            log_payloads=log_payloads,
        )

    @property
    def subscription_id(self) -> str:
        return self._subscription_id

    @property
    def query_name(self) -> str:
        return self._query_name

    @property
    def parameters(self) -> tuple[QueryParam, ...]:
        return self._parameters

    @property
    def destination(self) -> str:
        return self._destination

    @property
    def report_if_empty(self) -> bool:
        return self._report_if_empty

    @property
    def initial_record_time(self) -> datetime:
        return self._initial_record_time

    @property
    def watermark(self) -> datetime:
        return self._watermark

    @property
    def state(self) -> SubscriptionState:
        """Snapshot to persist after every execution that advanced."""
        return SubscriptionState(
            subscription_id=self._subscription_id,
            query_name=self._query_name,
            parameters=self._parameters,
            destination=self._destination,
            report_if_empty=self._report_if_empty,
            initial_record_time=self._initial_record_time,
            watermark=self._watermark,
        )

    def effective_parameters(self) -> list[QueryParam]:
        """Return base parameters plus the time filter at the watermark."""
        time_filter = QueryParam(name=self._time_filter_parameter, value=self._watermark)
        return [*self._parameters, time_filter]

    def execute_query(self) -> ExecutionOutcome:
        """Run one execution and report its outcome.

        Never raises for query, serialization, or delivery failures; those
        are logged and recorded on the returned outcome.
        """
        if not self._lock.acquire(blocking=False):
            _LOGGER.warning(
                "Subscribed query with ID '%s' is already executing; trigger skipped",
                self._subscription_id,
            )
            return ExecutionOutcome(
                subscription_id=self._subscription_id,
                status=ExecutionStatus.SKIPPED_BUSY,
                watermark_before=self._watermark,
                watermark_after=self._watermark,
            )
        try:
            with log_context(
                {
                    fields.SUBSCRIPTION_ID: self._subscription_id,
                    fields.QUERY_NAME: self._query_name,
                    fields.DESTINATION: self._destination,
                    fields.WATERMARK: self._watermark.isoformat(),
                }
            ):
                return self._execute()
        finally:
            self._lock.release()

    def _execute(self) -> ExecutionOutcome:
        watermark_before = self._watermark
        execution_time = self._now()
        parameters = self.effective_parameters()

        _LOGGER.debug(
            "Running the subscribed query with ID '%s' from %s",
            self._subscription_id,
            watermark_before.isoformat(),
        )
        try:
            result = self._query_engine.poll(
                query_name=self._query_name, parameters=parameters
            )
        except Exception as exc:  # noqa: BLE001
            return self._failed(
                ExecutionStatus.QUERY_FAILED,
                exc,
                watermark_before=watermark_before,
                counts=None,
            )

        result = result.with_subscription_id(self._subscription_id)
        counts = count_events(result)
        with log_context(
            {
                fields.AGGREGATION_EVENTS: counts.aggregation_events,
                fields.OBJECT_EVENTS: counts.object_events,
                fields.QUANTITY_EVENTS: counts.quantity_events,
                fields.TRANSACTION_EVENTS: counts.transaction_events,
            }
        ):
            _LOGGER.debug(
                "Subscribed query with ID '%s' contains %d events",
                self._subscription_id,
                counts.total,
            )

        if counts.is_empty and not self._report_if_empty:
            _LOGGER.debug("Query returned no results, nothing to report")
            self._advance(execution_time)
            return ExecutionOutcome(
                subscription_id=self._subscription_id,
                status=ExecutionStatus.SUPPRESSED,
                watermark_before=watermark_before,
                watermark_after=self._watermark,
                counts=counts,
            )

        document = QueryDocument(
            creation_date=self._creation_date_for(result, execution_time),
            query_results=result,
        )
        try:
            payload = self._serializer.serialize(document)
        except Exception as exc:  # noqa: BLE001
            self._retry_document = document
            return self._failed(
                ExecutionStatus.SERIALIZATION_FAILED,
                exc,
                watermark_before=watermark_before,
                counts=counts,
            )

        if self._log_payloads:
            _LOGGER.debug("Sending data: %s", payload.decode("utf-8", errors="replace"))
        _LOGGER.debug(
            "Sending results of subscribed query with ID '%s' to '%s'",
            self._subscription_id,
            self._destination,
        )
        try:
            status_code = self._delivery_client.deliver(
                destination=self._destination, payload=payload
            )
        except Exception as exc:  # noqa: BLE001
            self._retry_document = document
            return self._failed(
                ExecutionStatus.DELIVERY_FAILED,
                exc,
                watermark_before=watermark_before,
                counts=counts,
            )

        with log_context({fields.STATUS_CODE: status_code}):
            _LOGGER.info("Response %s", status_code)
        self._advance(execution_time)
        return ExecutionOutcome(
            subscription_id=self._subscription_id,
            status=ExecutionStatus.DELIVERED,
            watermark_before=watermark_before,
            watermark_after=self._watermark,
            counts=counts,
            delivery=DeliveryOutcome(
                destination=self._destination, status_code=status_code
            ),
        )

    def _now(self) -> datetime:
        value = self._clock()
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    def _creation_date_for(
        self, result: QueryResult, execution_time: datetime
    ) -> datetime:
        """Reuse a failed attempt's creation date only for an identical result."""
        retry = self._retry_document
        if retry is not None and retry.query_results == result:
            return retry.creation_date
        return execution_time

    def _advance(self, execution_time: datetime) -> None:
        self._retry_document = None
        if execution_time > self._watermark:
            self._watermark = execution_time

    def _failed(
        self,
        status: ExecutionStatus,
        exc: Exception,
        *,
        watermark_before: datetime,
        counts: EventCounts | None,
    ) -> ExecutionOutcome:
        error = _error_detail(exc)
        with log_context(
            {
                fields.OUTCOME: status.value,
                fields.ERROR_CODE: error.code,
                fields.ERROR_CATEGORY: error.category.value,
            }
        ):
            _LOGGER.error(
                _FAILURE_MESSAGES[status].format(
                    subscription_id=self._subscription_id,
                    destination=self._destination,
                    error=exc,
                ),
                exc_info=exc,
            )
        return ExecutionOutcome(
            subscription_id=self._subscription_id,
            status=status,
            watermark_before=watermark_before,
            watermark_after=self._watermark,
            counts=counts,
            error=error,
        )


_FAILURE_MESSAGES = {
    ExecutionStatus.QUERY_FAILED: (
        "Running the subscribed query with ID '{subscription_id}' failed: {error}"
    ),
    ExecutionStatus.SERIALIZATION_FAILED: (
        "Serializing the results of subscribed query with ID '{subscription_id}'"
        " failed: {error}"
    ),
    ExecutionStatus.DELIVERY_FAILED: (
        "An error opening a connection to '{destination}' or sending contents"
        " occurred: {error}"
    ),
}


def _error_detail(exc: Exception) -> ErrorDetail:
    """Normalize one execution failure into a shared ``ErrorDetail``."""
    metadata = {"exception_type": type(exc).__name__}
    if isinstance(exc, QueryUnavailableError):
        return dependency_error(
            exc.message, code=errors.QUERY_UNAVAILABLE, retryable=True, metadata=metadata
        )
    if isinstance(exc, QueryFaultError):
        return dependency_error(
            exc.message,
            code=errors.QUERY_FAULT,
            retryable=False,
            metadata={**metadata, "fault_code": exc.fault_code},
        )
    if isinstance(exc, SerializationError):
        return internal_error(
            exc.message, code=errors.SERIALIZATION_FAILED, metadata=metadata
        )
    if isinstance(exc, TransportError):
        return dependency_error(
            exc.message,
            code=errors.DELIVERY_TRANSPORT_FAILED,
            retryable=True,
            metadata={**metadata, "destination": exc.destination},
        )
    return exception_to_error(exc)


def _require_text(value: str, field_name: str) -> str:
    if not isinstance(value, str) or value.strip() == "":
        raise InvalidSubscriptionError(f"{field_name} must be a non-empty string")
    if value != value.strip():
        raise InvalidSubscriptionError(
            f"{field_name} must not have surrounding whitespace: {value!r}"
        )
    return value


def _require_destination(value: str) -> str:
    destination = _require_text(value, "destination")
    try:
        url = httpx.URL(destination)
    except httpx.InvalidURL as exc:
        raise InvalidSubscriptionError(f"Invalid destination URI: {exc}") from exc
    if url.scheme not in {"http", "https"} or not url.host:
        raise InvalidSubscriptionError(
            f"Destination must be an absolute http(s) URI: {destination!r}"
        )
    return destination


def _require_time_filter(value: str) -> str:
    name = _require_text(value, "time_filter_parameter")
    if not name.startswith("GE_") or name == "GE_":
        raise InvalidSubscriptionError(
            f"Time filter parameter must look like GE_<field>: {name!r}"
        )
    return name


def _require_parameters(
    parameters: Sequence[QueryParam], *, time_filter_parameter: str
) -> tuple[QueryParam, ...]:
    seen: set[str] = set()
    for parameter in parameters:
        if not isinstance(parameter, QueryParam):
            raise InvalidSubscriptionError(
                f"Query parameters must be QueryParam instances, got {type(parameter).__name__}"
            )
        if parameter.name == time_filter_parameter:
            raise InvalidSubscriptionError(
                f"Parameter {time_filter_parameter!r} is managed by the subscription"
            )
        if parameter.name in seen:
            raise InvalidSubscriptionError(f"Duplicate query parameter {parameter.name!r}")
        seen.add(parameter.name)
    return tuple(parameters)


def _require_aware(value: datetime, field_name: str) -> datetime:
    if not isinstance(value, datetime):
        raise InvalidSubscriptionError(f"{field_name} must be a datetime")
    if value.tzinfo is None or value.utcoffset() is None:
        raise InvalidSubscriptionError(f"{field_name} must be timezone-aware")
    return value
