"""Canonical logging field names for structured relay logs.

Keeping names centralized prevents drift between the formatter, the
subscription core, and any downstream log processing.
"""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"

# Subscription execution fields.
SUBSCRIPTION_ID = "subscription_id"
QUERY_NAME = "query_name"
DESTINATION = "destination"
WATERMARK = "watermark"
OUTCOME = "outcome"
STATUS_CODE = "status_code"
ERROR_CATEGORY = "error_category"
ERROR_CODE = "error_code"

# Per-category event counts.
AGGREGATION_EVENTS = "aggregation_events"
OBJECT_EVENTS = "object_events"
QUANTITY_EVENTS = "quantity_events"
TRANSACTION_EVENTS = "transaction_events"

# Common service-level fields.
SERVICE = "service"
ENVIRONMENT = "environment"
