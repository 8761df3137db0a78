"""Shared pytest fixtures for NodeInfo tests.

HTTP is never touched: client tests route requests through
httpx.MockTransport built by the ``mock_transport`` fixture.
"""

from __future__ import annotations

import copy
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest

from nodeinfo.models.constants import SCHEMA_2_0, SCHEMA_2_1
from nodeinfo.models.document import Document, Services, Software, Usage

WELL_KNOWN_URL = "https://example.com/.well-known/nodeinfo"
NODEINFO_21_URL = "https://example.com/nodeinfo/2.1"
NODEINFO_20_URL = "https://example.com/nodeinfo/2.0"

DOCUMENT_PAYLOAD: dict[str, Any] = {
    "version": "2.1",
    "software": {
        "name": "mastodon",
        "version": "4.2.0",
        "repository": "https://github.com/mastodon/mastodon",
        "homepage": "https://joinmastodon.org",
    },
    "protocols": ["activitypub"],
    "services": {"inbound": [], "outbound": ["rss2.0"]},
    "openRegistrations": True,
    "usage": {
        "users": {"total": 1000, "activeMonth": 500, "activeHalfyear": 750},
        "localPosts": 50000,
        "localComments": 1200,
    },
    "metadata": {"nodeName": "Example Instance"},
}


@dataclass
class RecordingTransport:
    """MockTransport wrapper that records requested URLs."""

    routes: dict[str, Callable[[httpx.Request], httpx.Response]]
    requests: list[httpx.Request] = field(default_factory=list)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(str(request.url))
        if handler is None:
            return httpx.Response(status_code=404, content=b"Not Found")
        return handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    @property
    def urls(self) -> list[str]:
        return [str(request.url) for request in self.requests]


def json_response(payload: Any, status_code: int = 200) -> Callable[[httpx.Request], httpx.Response]:
    """Route handler returning ``payload`` as a JSON body."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code=status_code, json=payload)

    return handler


def links_payload(*links: tuple[str, str]) -> dict[str, list[dict[str, str]]]:
    """Build a well-known body from (rel, href) pairs."""
    return {"links": [{"rel": rel, "href": href} for rel, href in links]}


@pytest.fixture
def document_payload() -> dict[str, Any]:
    """A complete NodeInfo 2.1 wire payload (fresh copy per test)."""
    return copy.deepcopy(DOCUMENT_PAYLOAD)


@pytest.fixture
def sample_document() -> Document:
    """A fully populated Document."""
    return Document(
        software=Software(
            name="mastodon",
            version="4.2.0",
            repository="https://github.com/mastodon/mastodon",
            homepage="https://joinmastodon.org",
        ),
        protocols=["activitypub"],
        services=Services(outbound=["rss2.0"]),
        open_registrations=True,
        usage=Usage(
            users={"total": 1000, "activeMonth": 500, "activeHalfyear": 750},
            local_posts=50000,
            local_comments=1200,
        ),
        metadata={"nodeName": "Example Instance"},
    )


@pytest.fixture
def mock_transport() -> Callable[..., RecordingTransport]:
    """Factory for a RecordingTransport from a {url: handler} mapping."""

    def factory(routes: dict[str, Callable[[httpx.Request], httpx.Response]]) -> RecordingTransport:
        return RecordingTransport(routes=dict(routes))

    return factory


@pytest.fixture
def nodeinfo_routes(
    document_payload: dict[str, Any],
) -> dict[str, Callable[[httpx.Request], httpx.Response]]:
    """Routes for a server advertising both schemas and serving the 2.1 document."""
    return {
        WELL_KNOWN_URL: json_response(
            links_payload((SCHEMA_2_0, NODEINFO_20_URL), (SCHEMA_2_1, NODEINFO_21_URL))
        ),
        NODEINFO_21_URL: json_response(document_payload),
    }
