"""NodeInfo Models.

This module provides the Pydantic models for the NodeInfo document
and the protocol constants shared by the client and the server.
"""

# Base models
from nodeinfo.models.base import NodeInfoBaseModel

# Constants
from nodeinfo.models.constants import (
    NODEINFO_VERSION,
    SCHEMA_2_0,
    SCHEMA_2_1,
    SUPPORTED_SCHEMAS,
    WELL_KNOWN_PATH,
)

# Document entities
from nodeinfo.models.document import (
    Document,
    Services,
    Software,
    Usage,
    canonicalize_keys,
)

__all__ = [
    "Document",
    "NODEINFO_VERSION",
    "NodeInfoBaseModel",
    "SCHEMA_2_0",
    "SCHEMA_2_1",
    "SUPPORTED_SCHEMAS",
    "Services",
    "Software",
    "Usage",
    "WELL_KNOWN_PATH",
    "canonicalize_keys",
]
