"""Tests for HTTP delivery of query documents."""

from __future__ import annotations

from typing import Callable

import httpx
import pytest

from services.action.query_subscription.delivery import HttpDeliveryClient
from services.action.query_subscription.errors import TransportError

DESTINATION = "http://subscriber.example.test/capture"


class _TrackingTransport(httpx.MockTransport):
    """Mock transport counting requests and close calls."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        super().__init__(handler)
        self.requests: list[httpx.Request] = []
        self.closed = 0

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return super().handle_request(request)

    def close(self) -> None:
        self.closed += 1


def test_deliver_posts_payload_with_content_headers() -> None:
    transport = _TrackingTransport(lambda request: httpx.Response(200, request=request))
    client = HttpDeliveryClient(transport=transport)
    payload = "<?xml version='1.0'?><doc>é</doc>".encode("utf-8")

    status_code = client.deliver(destination=DESTINATION, payload=payload)

    assert status_code == 200
    assert len(transport.requests) == 1
    request = transport.requests[0]
    assert request.method == "POST"
    assert str(request.url) == DESTINATION
    assert request.headers["Content-Type"] == "text/plain"
    assert request.headers["Content-Length"] == str(len(payload))
    assert request.content == payload
    assert transport.closed == 1


def test_deliver_uses_configured_content_type() -> None:
    transport = _TrackingTransport(lambda request: httpx.Response(204, request=request))
    client = HttpDeliveryClient(content_type="text/xml", transport=transport)

    assert client.deliver(destination=DESTINATION, payload=b"<doc/>") == 204
    assert transport.requests[0].headers["Content-Type"] == "text/xml"


@pytest.mark.parametrize("status", [400, 404, 500, 503])
def test_deliver_returns_error_statuses_without_raising(status: int) -> None:
    transport = _TrackingTransport(
        lambda request: httpx.Response(status, text="nope", request=request)
    )
    client = HttpDeliveryClient(transport=transport)

    assert client.deliver(destination=DESTINATION, payload=b"<doc/>") == status
    assert transport.closed == 1


def test_deliver_does_not_follow_redirects() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            302,
            headers={"Location": "http://elsewhere.example.test/"},
            request=request,
        )

    transport = _TrackingTransport(handler)
    client = HttpDeliveryClient(transport=transport)

    assert client.deliver(destination=DESTINATION, payload=b"<doc/>") == 302
    assert len(transport.requests) == 1


@pytest.mark.parametrize(
    "error",
    [httpx.ConnectError, httpx.ReadTimeout, httpx.RemoteProtocolError],
)
def test_deliver_maps_transport_failures(error: type[httpx.RequestError]) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise error("boom", request=request)

    transport = _TrackingTransport(handler)
    client = HttpDeliveryClient(transport=transport)

    with pytest.raises(TransportError) as exc_info:
        client.deliver(destination=DESTINATION, payload=b"<doc/>")

    assert exc_info.value.destination == DESTINATION
    assert isinstance(exc_info.value.cause, error)
    assert transport.closed == 1


def test_each_delivery_opens_and_closes_its_own_connection() -> None:
    transport = _TrackingTransport(lambda request: httpx.Response(200, request=request))
    client = HttpDeliveryClient(transport=transport)

    for _ in range(3):
        client.deliver(destination=DESTINATION, payload=b"<doc/>")

    assert len(transport.requests) == 3
    assert transport.closed == 3
