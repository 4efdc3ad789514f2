"""Query subscription service native package exports."""

from packages.relay_shared.errors import ErrorCategory, ErrorDetail
from services.action.query_subscription.config import QuerySubscriptionSettings
from services.action.query_subscription.delivery import HttpDeliveryClient
from services.action.query_subscription.domain import (
    DeliveryOutcome,
    EventCounts,
    EventList,
    ExecutionOutcome,
    ExecutionStatus,
    QueryDocument,
    QueryParam,
    QueryResult,
    SubscriptionState,
)
from services.action.query_subscription.emptiness import count_events, is_empty
from services.action.query_subscription.errors import (
    InvalidSubscriptionError,
    QueryFaultError,
    QueryUnavailableError,
    SerializationError,
    SubscriptionError,
    TransportError,
)
from services.action.query_subscription.interfaces import (
    DeliveryClient,
    QueryEngine,
    ResultSerializer,
)
from services.action.query_subscription.query_engine import HttpQueryEngine
from services.action.query_subscription.serializer import XmlResultSerializer
from services.action.query_subscription.service import (
    build_subscription,
    configure_service_logging,
)
from services.action.query_subscription.subscription import (
    TIME_FILTER_PARAMETER,
    Subscription,
    build_parameters,
    new_subscription_id,
)

__all__ = [
    "TIME_FILTER_PARAMETER",
    "DeliveryClient",
    "DeliveryOutcome",
    "ErrorCategory",
    "ErrorDetail",
    "EventCounts",
    "EventList",
    "ExecutionOutcome",
    "ExecutionStatus",
    "HttpDeliveryClient",
    "HttpQueryEngine",
    "InvalidSubscriptionError",
    "QueryDocument",
    "QueryEngine",
    "QueryFaultError",
    "QueryParam",
    "QueryResult",
    "QuerySubscriptionSettings",
    "QueryUnavailableError",
    "ResultSerializer",
    "SerializationError",
    "Subscription",
    "SubscriptionError",
    "SubscriptionState",
    "TransportError",
    "XmlResultSerializer",
    "build_parameters",
    "build_subscription",
    "configure_service_logging",
    "count_events",
    "is_empty",
    "new_subscription_id",
]
