"""Well-known NodeInfo discovery document (RFC 8615).

Both directions of the ``/.well-known/nodeinfo`` exchange live here:
- Client side: build the lookup URL for a domain, read the ``links``
  array out of a response body, and negotiate the preferred schema
- Server side: produce the single-link response pointing at the 2.1 document

The wire shape is:

    {"links": [{"rel": "<schema-uri>", "href": "<url>"}, ...]}
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Sequence
from typing import Any

from nodeinfo.errors import DiscoveryError
from nodeinfo.models.constants import (
    DISCOVERY_SCHEME,
    NODEINFO_PATH_TEMPLATE,
    NODEINFO_VERSION,
    SCHEMA_2_1,
    SUPPORTED_SCHEMAS,
    WELL_KNOWN_PATH,
)

_SCHEME_PREFIX = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")


def normalize_url(domain: str, path: str = WELL_KNOWN_PATH) -> str:
    """Build an https URL for ``path`` on ``domain``.

    Any leading scheme is dropped and one trailing slash is removed before
    the https scheme and the path are added. No other scheme is produced.

    Example:
        >>> normalize_url("http://example.com/")
        'https://example.com/.well-known/nodeinfo'
    """
    host = _SCHEME_PREFIX.sub("", domain, count=1)
    host = host.removesuffix("/")
    return f"{DISCOVERY_SCHEME}://{host}{path}"


def parse_links(body: str | bytes) -> list[Any]:
    """Extract the ``links`` array from a well-known response body.

    Raises:
        DiscoveryError: If the body is not JSON, has no links, or links is
            not an array.
    """
    try:
        data = json.loads(body)
    except ValueError as e:
        raise DiscoveryError(f"Invalid JSON in well-known document: {e}") from e

    links = data.get("links") if isinstance(data, dict) else None
    if links is None:
        raise DiscoveryError("No links found in well-known document")
    if not isinstance(links, list):
        raise DiscoveryError("Links must be an array")
    return links


def select_nodeinfo_href(
    links: Sequence[Any], schemas: Iterable[str] = SUPPORTED_SCHEMAS
) -> str:
    """Return the href of the first link matching the most preferred schema.

    Schemas are tried in order; within a schema the first link whose rel
    matches exactly is used, provided it carries an href. Array order of
    the links never outranks schema preference.

    Raises:
        DiscoveryError: If no link matches any supported schema.
    """
    for schema in schemas:
        link = next(
            (item for item in links if isinstance(item, dict) and item.get("rel") == schema),
            None,
        )
        if link is not None and link.get("href") is not None:
            return str(link["href"])

    raise DiscoveryError("No supported NodeInfo schema found")


def build_well_known(base_url: str) -> dict[str, list[dict[str, str]]]:
    """Return the well-known response pointing at ``{base_url}/nodeinfo/2.1``."""
    return {
        "links": [
            {
                "rel": SCHEMA_2_1,
                "href": f"{base_url}{NODEINFO_PATH_TEMPLATE.format(version=NODEINFO_VERSION)}",
            }
        ]
    }
