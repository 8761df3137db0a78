"""NodeInfo document model.

This module defines the canonical NodeInfo payload and its parts:
- Software: name, version and optional repository/homepage of the server software
- Services: third-party services the server can receive from or publish to
- Usage: user counts and local post/comment statistics
- Document: the complete, immutable NodeInfo document

Parsing is a two-stage transform: canonicalize_keys() turns every mapping
key into a plain string, then Document.parse() extracts typed fields from
the canonical mapping. Sub-objects that are missing from the input are
default-constructed; the invariant checks run once, when the Document is
built. A built Document is deeply immutable: sequences are stored as tuples
and mappings as read-only views, and to_dict() hands back fresh lists and
dicts.

Example:
    >>> doc = Document.parse('{"version": "2.1", "software": {"name": "app", '
    ...                      '"version": "1.0"}, "protocols": ["activitypub"], '
    ...                      '"openRegistrations": false}')
    >>> doc.software.name
    'app'
    >>> doc.protocols
    ('activitypub',)
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any

from pydantic import Field, StrictBool, StrictInt, field_validator, model_validator

from nodeinfo.errors import NodeInfoError, ParseError, ValidationError
from nodeinfo.models.base import NodeInfoBaseModel
from nodeinfo.models.constants import NODEINFO_VERSION

# Fields that fall back to their default when explicitly passed as None
_DEFAULT_WHEN_NONE = frozenset({"services", "usage", "metadata"})


def canonicalize_keys(value: Any) -> Any:
    """Recursively convert every mapping key to its canonical string form.

    Enum keys use their value; any other key uses str(). Lists and tuples
    are descended into and returned as lists.

    Example:
        >>> canonicalize_keys({1: {"a": [{2: "x"}]}})
        {'1': {'a': [{'2': 'x'}]}}
    """
    if isinstance(value, Mapping):
        return {_canonical_key(k): canonicalize_keys(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [canonicalize_keys(item) for item in value]
    return value


def _canonical_key(key: Any) -> str:
    if isinstance(key, Enum):
        return str(key.value)
    return str(key)


def _get(obj: Any, name: str) -> Any:
    """Read a field from either a model instance or a plain mapping."""
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _freeze(value: Any) -> Any:
    """Return a read-only copy: mappings become MappingProxyType, sequences tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


def _thaw(value: Any) -> Any:
    """Inverse of _freeze: fresh dicts and lists for serialization."""
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_thaw(item) for item in value]
    return value


class Software(NodeInfoBaseModel):
    """Metadata about the server software.

    name and version are required for a valid Document; the check happens
    when the Document is built so that parse can report it uniformly.
    """

    name: str | None = Field(default=None, description="Canonical software name")
    version: str | None = Field(default=None, description="Software version")
    repository: str | None = Field(default=None, description="Source code repository URL")
    homepage: str | None = Field(default=None, description="Software homepage URL")

    def to_dict(self) -> dict[str, str]:
        """Return the wire mapping, omitting absent optional fields."""
        return self.model_dump(exclude_none=True)


class Services(NodeInfoBaseModel):
    """Third-party sites the server can retrieve from or publish to."""

    inbound: tuple[str, ...] = Field(default_factory=tuple)
    outbound: tuple[str, ...] = Field(default_factory=tuple)

    def to_dict(self) -> dict[str, list[str]]:
        """Return the wire mapping; both lists are always present."""
        return {
            "inbound": list(self.inbound),
            "outbound": list(self.outbound),
        }


class Usage(NodeInfoBaseModel):
    """Usage statistics for the server.

    Attributes:
        users: Mapping with optional keys total, activeMonth, activeHalfyear
        local_posts: Number of local posts (wire name localPosts)
        local_comments: Number of local comments (wire name localComments)
    """

    users: Mapping[str, StrictInt] = Field(default_factory=dict)
    local_posts: StrictInt | None = Field(default=None, alias="localPosts")
    local_comments: StrictInt | None = Field(default=None, alias="localComments")

    @field_validator("users")
    @classmethod
    def _freeze_users(cls, value: Mapping[str, int]) -> Mapping[str, int]:
        return MappingProxyType(dict(value))

    def to_dict(self) -> dict[str, Any]:
        """Return the wire mapping; users is always present, counters only when set."""
        result: dict[str, Any] = {"users": dict(self.users)}
        if self.local_posts is not None:
            result["localPosts"] = self.local_posts
        if self.local_comments is not None:
            result["localComments"] = self.local_comments
        return result


class Document(NodeInfoBaseModel):
    """A NodeInfo document.

    Constructing a Document runs the invariant checks in a fixed order and
    raises ValidationError for the first violation found.

    Attributes:
        version: Schema version of the document (default "2.1")
        software: Server software metadata (required)
        protocols: Protocols supported on this server (required, may be empty)
        services: Third-party services
        open_registrations: Whether new users may sign up (wire name openRegistrations)
        usage: Usage statistics
        metadata: Free-form server metadata

    Example:
        >>> doc = Document(
        ...     software=Software(name="app", version="1.0"),
        ...     protocols=["activitypub"],
        ... )
        >>> doc.version
        '2.1'
    """

    version: str = Field(default=NODEINFO_VERSION, description="NodeInfo schema version")
    software: Software
    protocols: tuple[str, ...]
    services: Services = Field(default_factory=Services)
    open_registrations: StrictBool = Field(default=False, alias="openRegistrations")
    usage: Usage = Field(default_factory=Usage)
    metadata: Mapping[str, Any] = Field(default_factory=dict)

    @field_validator("metadata")
    @classmethod
    def _freeze_metadata(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return _freeze(value)

    @model_validator(mode="before")
    @classmethod
    def _check_invariants(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = {
            key: value
            for key, value in data.items()
            if not (key in _DEFAULT_WHEN_NONE and value is None)
        }

        version = data.get("version", NODEINFO_VERSION)
        if version is None or version == "":
            raise ValidationError("version is required", field="version")
        if not isinstance(version, str):
            raise ValidationError("version must be a string", field="version")

        software = data.get("software")
        if software is None:
            raise ValidationError("software is required", field="software")
        if not isinstance(software, (Software, Mapping)):
            raise ValidationError("software must be an object", field="software")
        if not _get(software, "name"):
            raise ValidationError("software.name is required", field="software.name")
        if not _get(software, "version"):
            raise ValidationError("software.version is required", field="software.version")

        protocols = data.get("protocols")
        if protocols is None:
            raise ValidationError("protocols is required", field="protocols")
        if not isinstance(protocols, (list, tuple)):
            raise ValidationError("protocols must be a list", field="protocols")

        open_registrations = data.get("open_registrations", data.get("openRegistrations", False))
        if not isinstance(open_registrations, bool):
            raise ValidationError(
                "openRegistrations must be a boolean", field="openRegistrations"
            )

        return data

    @classmethod
    def parse(cls, data: str | bytes | Mapping[Any, Any]) -> Document:
        """Parse a NodeInfo document from JSON text or an already-decoded mapping.

        Args:
            data: JSON string/bytes, or a mapping keyed by strings, enums or
                any mix of key types.

        Returns:
            The validated Document.

        Raises:
            ParseError: If the input is not valid JSON, is not an object, or
                the extracted fields fail validation. The validation message
                is kept in the error text.
        """
        if isinstance(data, (str, bytes, bytearray)):
            try:
                raw = json.loads(data)
            except ValueError as e:
                raise ParseError(f"Invalid JSON: {e}") from e
        else:
            raw = data

        if not isinstance(raw, Mapping):
            raise ParseError(
                "Failed to parse NodeInfo document: expected a JSON object, "
                f"got {type(raw).__name__}"
            )

        canonical = canonicalize_keys(raw)
        try:
            return cls(
                version=canonical.get("version"),
                software=_parse_software(canonical.get("software")),
                protocols=canonical.get("protocols"),
                services=_parse_services(canonical.get("services")),
                open_registrations=canonical.get("openRegistrations"),
                usage=_parse_usage(canonical.get("usage")),
                metadata=_parse_metadata(canonical.get("metadata")),
            )
        except NodeInfoError as e:
            raise ParseError(
                f"Failed to parse NodeInfo document: {e.message}",
                details={"cause": e.to_dict()},
            ) from e

    def to_dict(self) -> dict[str, Any]:
        """Return the canonical wire mapping with the published key casing."""
        return {
            "version": self.version,
            "software": self.software.to_dict(),
            "protocols": list(self.protocols),
            "services": self.services.to_dict(),
            "openRegistrations": self.open_registrations,
            "usage": self.usage.to_dict(),
            "metadata": _thaw(self.metadata),
        }

    def to_json(self) -> str:
        """Serialize the document to compact JSON text."""
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)


def _parse_software(data: Any) -> Any:
    if data is None:
        return Software()
    if not isinstance(data, Mapping):
        return data
    return Software(
        name=data.get("name"),
        version=data.get("version"),
        repository=data.get("repository"),
        homepage=data.get("homepage"),
    )


def _parse_services(data: Any) -> Any:
    if data is None:
        return Services()
    if not isinstance(data, Mapping):
        return data
    return Services(
        inbound=data.get("inbound") or [],
        outbound=data.get("outbound") or [],
    )


def _parse_usage(data: Any) -> Any:
    if data is None:
        return Usage()
    if not isinstance(data, Mapping):
        return data
    return Usage(
        users=data.get("users") or {},
        local_posts=data.get("localPosts"),
        local_comments=data.get("localComments"),
    )


def _parse_metadata(data: Any) -> Any:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        return data
    return dict(data)
