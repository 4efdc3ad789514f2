"""HTTP delivery of serialized query documents to subscriber destinations."""

from __future__ import annotations

import httpx

from packages.relay_shared.http import HttpClient, HttpRequestError
from packages.relay_shared.logging import get_logger
from services.action.query_subscription.errors import TransportError

_LOGGER = get_logger(__name__)


class HttpDeliveryClient:
    """Deliver payloads with one POST per call.

    Every call opens its own connection and closes it before returning, on
    success, on error statuses, and on transport failures alike. Redirects
    are not followed and nothing is retried here.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 30.0,
        content_type: str = "text/plain",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._timeout_seconds = timeout_seconds
        self._content_type = content_type
        self._transport = transport

    def deliver(self, *, destination: str, payload: bytes) -> int:
        headers = {
            "Content-Type": self._content_type,
            "Content-Length": str(len(payload)),
        }
        with HttpClient(
            timeout_seconds=self._timeout_seconds,
            follow_redirects=False,
            transport=self._transport,
        ) as client:
            try:
                response = client.post(
                    destination,
                    content=payload,
                    headers=headers,
                    raise_for_status=False,
                )
            except HttpRequestError as exc:
                raise TransportError(
                    f"Delivery to '{destination}' failed: {exc.message}",
                    destination=destination,
                    cause=exc.cause,
                ) from exc
            status_code = response.status_code

        if response.is_error:
            _LOGGER.warning(
                "Destination '%s' answered with error status %s", destination, status_code
            )
        return status_code
