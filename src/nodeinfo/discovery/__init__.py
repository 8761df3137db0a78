"""NodeInfo Discovery Layer.

Helpers for the ``/.well-known/nodeinfo`` document (RFC 8615): lookup URL
normalization, link parsing, schema negotiation and the server-side
well-known response.

Public exports:
    wellknown: Well-known URI helpers shared by client and server
"""

from nodeinfo.discovery import wellknown

__all__ = [
    "wellknown",
]
