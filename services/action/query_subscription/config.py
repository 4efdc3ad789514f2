"""Pydantic settings for query subscription behavior."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from packages.relay_shared.config import RelaySettings, resolve_component_settings

SERVICE_COMPONENT_ID = "service_query_subscription"


class QuerySubscriptionSettings(BaseModel):
    """Query subscription runtime behavior settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    query_endpoint_url: str = "http://localhost:8080/epcis/query"
    query_timeout_seconds: float = Field(default=30.0, gt=0)
    delivery_timeout_seconds: float = Field(default=30.0, gt=0)
    delivery_content_type: str = "text/plain"
    time_filter_parameter: str = "GE_recordTime"
    log_payloads: bool = False

    @field_validator("time_filter_parameter", mode="before")
    @classmethod
    def _validate_time_filter_parameter(cls, value: object) -> object:
        """Require a greater-or-equal filter parameter name."""
        if isinstance(value, str):
            normalized = value.strip()
            if not normalized.startswith("GE_") or normalized == "GE_":
                raise ValueError("time_filter_parameter must look like GE_<field>")
            return normalized
        return value

    @field_validator("delivery_content_type", "query_endpoint_url", mode="before")
    @classmethod
    def _reject_blank(cls, value: object) -> object:
        if isinstance(value, str):
            normalized = value.strip()
            if normalized == "":
                raise ValueError("value must be non-empty")
            return normalized
        return value


def resolve_query_subscription_settings(
    settings: RelaySettings,
) -> QuerySubscriptionSettings:
    """Resolve settings from ``components.service.query_subscription``."""
    return resolve_component_settings(
        settings=settings,
        component_id=SERVICE_COMPONENT_ID,
        model=QuerySubscriptionSettings,
    )
