"""Tests for the NodeInfo discovery client."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from nodeinfo import __version__
from nodeinfo.client import Client
from nodeinfo.errors import DiscoveryError, FetchError, HTTPError, ParseError
from nodeinfo.models.constants import SCHEMA_2_0, SCHEMA_2_1

from .conftest import (
    NODEINFO_20_URL,
    NODEINFO_21_URL,
    WELL_KNOWN_URL,
    RecordingTransport,
    json_response,
    links_payload,
)

TransportFactory = Callable[..., RecordingTransport]


def _raise(exc: Exception) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc

    return handler


class TestClientConfiguration:
    """Construction-time settings."""

    def test_defaults(self) -> None:
        client = Client()

        assert client.timeout == 10.0
        assert client.follow_redirects is True

    def test_custom_settings(self) -> None:
        client = Client(timeout=3, follow_redirects=False)

        assert client.timeout == 3
        assert client.follow_redirects is False

    def test_non_positive_timeout_rejected(self) -> None:
        with pytest.raises(ValueError, match="timeout must be positive"):
            Client(timeout=0)

    def test_default_headers_sent(self, mock_transport: TransportFactory) -> None:
        recorder = mock_transport(
            {WELL_KNOWN_URL: json_response(links_payload((SCHEMA_2_1, NODEINFO_21_URL)))}
        )

        Client(transport=recorder.transport).discover("example.com")

        request = recorder.requests[0]
        assert request.headers["accept"] == "application/json"
        assert request.headers["user-agent"] == f"nodeinfo-python/{__version__}"

    def test_header_override(self, mock_transport: TransportFactory) -> None:
        recorder = mock_transport(
            {WELL_KNOWN_URL: json_response(links_payload((SCHEMA_2_1, NODEINFO_21_URL)))}
        )

        Client(transport=recorder.transport, headers={"User-Agent": "crawler/1.0"}).discover(
            "example.com"
        )

        assert recorder.requests[0].headers["user-agent"] == "crawler/1.0"


class TestDiscover:
    """Client.discover."""

    @pytest.mark.parametrize(
        "domain", ["example.com", "https://example.com", "example.com/", "http://example.com"]
    )
    def test_requests_normalized_well_known_url(
        self, domain: str, mock_transport: TransportFactory
    ) -> None:
        recorder = mock_transport(
            {WELL_KNOWN_URL: json_response(links_payload((SCHEMA_2_1, NODEINFO_21_URL)))}
        )

        Client(transport=recorder.transport).discover(domain)

        assert recorder.urls == [WELL_KNOWN_URL]

    @pytest.mark.parametrize(
        "links",
        [
            ((SCHEMA_2_0, NODEINFO_20_URL), (SCHEMA_2_1, NODEINFO_21_URL)),
            ((SCHEMA_2_1, NODEINFO_21_URL), (SCHEMA_2_0, NODEINFO_20_URL)),
        ],
    )
    def test_prefers_schema_2_1(
        self, links: tuple[tuple[str, str], ...], mock_transport: TransportFactory
    ) -> None:
        recorder = mock_transport({WELL_KNOWN_URL: json_response(links_payload(*links))})

        assert Client(transport=recorder.transport).discover("example.com") == NODEINFO_21_URL

    def test_only_schema_2_0(self, mock_transport: TransportFactory) -> None:
        recorder = mock_transport(
            {WELL_KNOWN_URL: json_response(links_payload((SCHEMA_2_0, NODEINFO_20_URL)))}
        )

        assert Client(transport=recorder.transport).discover("example.com") == NODEINFO_20_URL

    def test_no_supported_schema(self, mock_transport: TransportFactory) -> None:
        recorder = mock_transport(
            {
                WELL_KNOWN_URL: json_response(
                    links_payload(("http://nodeinfo.diaspora.software/ns/schema/1.1", "https://x"))
                )
            }
        )

        with pytest.raises(DiscoveryError, match="No supported NodeInfo schema found"):
            Client(transport=recorder.transport).discover("example.com")

    def test_http_error_status(self, mock_transport: TransportFactory) -> None:
        recorder = mock_transport({})

        with pytest.raises(DiscoveryError, match="HTTP 404") as exc_info:
            Client(transport=recorder.transport).discover("example.com")

        error = exc_info.value
        assert error.details["status_code"] == 404
        assert error.response is not None
        assert isinstance(error.__cause__, HTTPError)

    def test_server_error_status(self, mock_transport: TransportFactory) -> None:
        recorder = mock_transport({WELL_KNOWN_URL: json_response({}, status_code=503)})

        with pytest.raises(DiscoveryError, match="HTTP 503"):
            Client(transport=recorder.transport).discover("example.com")

    def test_missing_links(self, mock_transport: TransportFactory) -> None:
        recorder = mock_transport({WELL_KNOWN_URL: json_response({"foo": "bar"})})

        with pytest.raises(DiscoveryError, match="No links found"):
            Client(transport=recorder.transport).discover("example.com")

    def test_links_not_array(self, mock_transport: TransportFactory) -> None:
        recorder = mock_transport({WELL_KNOWN_URL: json_response({"links": "nope"})})

        with pytest.raises(DiscoveryError, match="Links must be an array"):
            Client(transport=recorder.transport).discover("example.com")

    def test_invalid_json_is_discovery_error(self, mock_transport: TransportFactory) -> None:
        recorder = mock_transport(
            {WELL_KNOWN_URL: lambda request: httpx.Response(200, content=b"<html></html>")}
        )

        with pytest.raises(DiscoveryError, match="Invalid JSON"):
            Client(transport=recorder.transport).discover("example.com")

    def test_connect_error(self, mock_transport: TransportFactory) -> None:
        recorder = mock_transport({WELL_KNOWN_URL: _raise(httpx.ConnectError("Connection refused"))})

        with pytest.raises(DiscoveryError, match="HTTP request failed: Connection refused"):
            Client(transport=recorder.transport).discover("example.com")

    def test_timeout(self, mock_transport: TransportFactory) -> None:
        recorder = mock_transport({WELL_KNOWN_URL: _raise(httpx.ReadTimeout("timed out"))})

        with pytest.raises(DiscoveryError, match="HTTP request failed"):
            Client(transport=recorder.transport).discover("example.com")

    def test_redirect_followed(self, mock_transport: TransportFactory) -> None:
        recorder = mock_transport(
            {
                WELL_KNOWN_URL: lambda request: httpx.Response(
                    301, headers={"Location": "https://www.example.com/.well-known/nodeinfo"}
                ),
                "https://www.example.com/.well-known/nodeinfo": json_response(
                    links_payload((SCHEMA_2_1, NODEINFO_21_URL))
                ),
            }
        )

        assert Client(transport=recorder.transport).discover("example.com") == NODEINFO_21_URL
        assert len(recorder.requests) == 2

    def test_redirect_not_followed_when_disabled(self, mock_transport: TransportFactory) -> None:
        recorder = mock_transport(
            {
                WELL_KNOWN_URL: lambda request: httpx.Response(
                    301, headers={"Location": "https://www.example.com/.well-known/nodeinfo"}
                ),
            }
        )

        with pytest.raises(DiscoveryError, match="HTTP 301"):
            Client(transport=recorder.transport, follow_redirects=False).discover("example.com")


class TestFetchDocument:
    """Client.fetch_document."""

    def test_returns_document(
        self, mock_transport: TransportFactory, document_payload: dict[str, Any]
    ) -> None:
        recorder = mock_transport({NODEINFO_21_URL: json_response(document_payload)})

        doc = Client(transport=recorder.transport).fetch_document(NODEINFO_21_URL)

        assert doc.software.name == "mastodon"
        assert doc.usage.users["activeMonth"] == 500

    def test_http_error_status(self, mock_transport: TransportFactory) -> None:
        recorder = mock_transport({NODEINFO_21_URL: json_response({}, status_code=500)})

        with pytest.raises(FetchError, match="HTTP 500") as exc_info:
            Client(transport=recorder.transport).fetch_document(NODEINFO_21_URL)

        assert exc_info.value.details["status_code"] == 500

    def test_transport_error(self, mock_transport: TransportFactory) -> None:
        recorder = mock_transport({NODEINFO_21_URL: _raise(httpx.ConnectError("unreachable"))})

        with pytest.raises(FetchError, match="HTTP request failed: unreachable"):
            Client(transport=recorder.transport).fetch_document(NODEINFO_21_URL)

    def test_parse_error_is_not_wrapped(self, mock_transport: TransportFactory) -> None:
        recorder = mock_transport(
            {NODEINFO_21_URL: lambda request: httpx.Response(200, content=b"not json")}
        )

        with pytest.raises(ParseError, match="Invalid JSON"):
            Client(transport=recorder.transport).fetch_document(NODEINFO_21_URL)

    def test_invalid_document_is_parse_error(self, mock_transport: TransportFactory) -> None:
        recorder = mock_transport({NODEINFO_21_URL: json_response({"version": "2.1"})})

        with pytest.raises(ParseError, match="software.name is required"):
            Client(transport=recorder.transport).fetch_document(NODEINFO_21_URL)


class TestFetch:
    """Client.fetch composes discover and fetch_document."""

    def test_fetch(
        self,
        mock_transport: TransportFactory,
        nodeinfo_routes: dict[str, Callable[[httpx.Request], httpx.Response]],
    ) -> None:
        recorder = mock_transport(nodeinfo_routes)

        doc = Client(transport=recorder.transport).fetch("example.com")

        assert doc.software.name == "mastodon"
        assert recorder.urls == [WELL_KNOWN_URL, NODEINFO_21_URL]

    def test_discovery_failure_stays_discovery_error(
        self, mock_transport: TransportFactory
    ) -> None:
        recorder = mock_transport({})

        with pytest.raises(DiscoveryError):
            Client(transport=recorder.transport).fetch("example.com")

        assert recorder.urls == [WELL_KNOWN_URL]

    def test_fetch_failure_stays_fetch_error(self, mock_transport: TransportFactory) -> None:
        recorder = mock_transport(
            {WELL_KNOWN_URL: json_response(links_payload((SCHEMA_2_1, NODEINFO_21_URL)))}
        )

        with pytest.raises(FetchError, match="HTTP 404"):
            Client(transport=recorder.transport).fetch("example.com")

    def test_parse_failure_stays_parse_error(self, mock_transport: TransportFactory) -> None:
        recorder = mock_transport(
            {
                WELL_KNOWN_URL: json_response(links_payload((SCHEMA_2_1, NODEINFO_21_URL))),
                NODEINFO_21_URL: json_response({"invalid": "document"}),
            }
        )

        with pytest.raises(ParseError):
            Client(transport=recorder.transport).fetch("example.com")
