"""NodeInfo protocol implementation for federated servers.

Provides both sides of the NodeInfo exchange: a client that discovers and
fetches a remote server's metadata document, and a server-side generator
that builds a compliant document and well-known response from local
configuration.

Example:
    >>> import nodeinfo
    >>>
    >>> info = nodeinfo.create_client().fetch("mastodon.social")
    >>> info.software.name
    'mastodon'
    >>>
    >>> server = nodeinfo.create_server(
    ...     software_name="myapp",
    ...     software_version="1.0.0",
    ...     protocols=["activitypub"],
    ...     open_registrations=True,
    ... )
    >>> payload = server.to_json()
"""

from typing import Any

__version__ = "0.1.0"

from nodeinfo.client import Client
from nodeinfo.errors import (
    DiscoveryError,
    FetchError,
    HTTPError,
    NodeInfoError,
    ParseError,
    ValidationError,
)
from nodeinfo.models import Document, Services, Software, Usage
from nodeinfo.server import Server, ServerConfig, resolve


def create_client(**kwargs: Any) -> Client:
    """Create a new NodeInfo client; keyword arguments go to Client."""
    return Client(**kwargs)


def create_server(config: ServerConfig | None = None, **fields: Any) -> Server:
    """Create a new NodeInfo server from a config and/or config fields."""
    return Server(config, **fields)


__all__ = [
    "Client",
    "DiscoveryError",
    "Document",
    "FetchError",
    "HTTPError",
    "NodeInfoError",
    "ParseError",
    "Server",
    "ServerConfig",
    "Services",
    "Software",
    "Usage",
    "ValidationError",
    "__version__",
    "create_client",
    "create_server",
    "resolve",
]
