"""Factory wiring subscriptions to their default collaborators."""

from __future__ import annotations

import logging

from packages.relay_shared.config import RelaySettings
from packages.relay_shared.logging import configure_logging
from services.action.query_subscription.config import (
    resolve_query_subscription_settings,
)
from services.action.query_subscription.delivery import HttpDeliveryClient
from services.action.query_subscription.domain import SubscriptionState
from services.action.query_subscription.interfaces import (
    DeliveryClient,
    QueryEngine,
    ResultSerializer,
)
from services.action.query_subscription.query_engine import HttpQueryEngine
from services.action.query_subscription.serializer import XmlResultSerializer
from services.action.query_subscription.subscription import (
    Clock,
    Subscription,
    utc_now,
)


def build_subscription(
    *,
    settings: RelaySettings,
    state: SubscriptionState,
    query_engine: QueryEngine | None = None,
    serializer: ResultSerializer | None = None,
    delivery_client: DeliveryClient | None = None,
    clock: Clock = utc_now,
) -> Subscription:
    """Materialize one persisted subscription with settings-driven defaults.

    Pass a shared ``query_engine`` when many subscriptions poll the same
    endpoint; otherwise each subscription gets its own adapter.
    """
    service_settings = resolve_query_subscription_settings(settings)
    return Subscription.from_state(
        state,
        query_engine=query_engine
        or HttpQueryEngine(
            endpoint_url=service_settings.query_endpoint_url,
            timeout_seconds=service_settings.query_timeout_seconds,
        ),
        serializer=serializer or XmlResultSerializer(),
        delivery_client=delivery_client
        or HttpDeliveryClient(
            timeout_seconds=service_settings.delivery_timeout_seconds,
            content_type=service_settings.delivery_content_type,
        ),
        time_filter_parameter=service_settings.time_filter_parameter,
        clock=clock,
        log_payloads=service_settings.log_payloads,
    )


def configure_service_logging(settings: RelaySettings) -> logging.Handler:
    """Install process logging from ``settings.logging``.

    Call once at process start, before the scheduler triggers any
    subscription built with ``build_subscription``.
    """
    return configure_logging(
        level=settings.logging.level,
        json_output=settings.logging.json_output,
        service=settings.logging.service,
        environment=settings.logging.environment,
    )
