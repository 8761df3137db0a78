"""Constants for the NodeInfo protocol.

This module defines protocol-wide constants used across the codebase.
"""

# Document schema version produced by the server side
NODEINFO_VERSION = "2.1"

SCHEMA_2_1 = "http://nodeinfo.diaspora.software/ns/schema/2.1"
SCHEMA_2_0 = "http://nodeinfo.diaspora.software/ns/schema/2.0"

SUPPORTED_SCHEMAS: tuple[str, ...] = (SCHEMA_2_1, SCHEMA_2_0)
"""Schema identifiers the client understands, most preferred first."""

WELL_KNOWN_PATH = "/.well-known/nodeinfo"
"""Standard discovery path (RFC 8615)."""

NODEINFO_PATH_TEMPLATE = "/nodeinfo/{version}"
"""Path of the document relative to the server's base URL."""

DISCOVERY_SCHEME = "https"

# Client defaults
DEFAULT_TIMEOUT = 10.0
DEFAULT_FOLLOW_REDIRECTS = True

CONTENT_TYPE_JSON = "application/json"
