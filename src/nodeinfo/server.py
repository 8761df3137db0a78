"""NodeInfo document generation for the serving side.

A Server turns a ServerConfig into NodeInfo documents and well-known
responses. Usage statistics may be given either as literal values or as
zero-argument callables; callables are resolved on every document build
so each response reflects current state.

Example:
    >>> from nodeinfo.server import Server, ServerConfig
    >>>
    >>> server = Server(ServerConfig(
    ...     software_name="myapp",
    ...     software_version="1.0.0",
    ...     protocols=["activitypub"],
    ...     usage_users=lambda: 42,
    ... ))
    >>> server.to_dict()["usage"]["users"]
    {'total': 42}
    >>> server.well_known("https://example.com")["links"][0]["href"]
    'https://example.com/nodeinfo/2.1'
"""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar, Union

from nodeinfo.discovery.wellknown import build_well_known
from nodeinfo.errors import ValidationError
from nodeinfo.models.constants import NODEINFO_VERSION
from nodeinfo.models.document import Document, Services, Software, Usage
from nodeinfo.observability import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Deferred = Union[T, Callable[[], T]]
"""A literal value or a zero-argument callable producing it."""

# Keys of a mapping-style usage_users value and their top-level fallbacks
_USER_COUNT_FALLBACKS: tuple[tuple[str, str | None], ...] = (
    ("total", None),
    ("activeMonth", "usage_users_active_month"),
    ("activeHalfyear", "usage_users_active_halfyear"),
)


def resolve(value: Deferred[T]) -> T:
    """Return ``value()`` for a callable, otherwise ``value`` itself."""
    if callable(value):
        return value()
    return value


@dataclass
class ServerConfig:
    """Configuration for a NodeInfo server.

    Every usage_* field accepts either a literal or a zero-argument
    callable. usage_users may also be a mapping with any of the keys
    total, activeMonth and activeHalfyear, whose values may themselves
    be callables.

    Attributes:
        software_name: Canonical software name (required)
        software_version: Software version (required)
        software_repository: Source repository URL
        software_homepage: Software homepage URL
        base_url: Public base URL used by well_known() when none is passed
        protocols: Supported protocols (required list)
        services_inbound: Inbound service identifiers
        services_outbound: Outbound service identifiers
        open_registrations: Whether registrations are open
        metadata: Free-form metadata copied into every document
    """

    software_name: str | None = None
    software_version: str | None = None
    software_repository: str | None = None
    software_homepage: str | None = None
    base_url: str | None = None
    protocols: list[str] | None = None
    services_inbound: list[str] = field(default_factory=list)
    services_outbound: list[str] = field(default_factory=list)
    open_registrations: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)
    usage_users: Deferred[Any] = field(default_factory=dict)
    usage_users_active_month: Deferred[int | None] = None
    usage_users_active_halfyear: Deferred[int | None] = None
    usage_local_posts: Deferred[int | None] = None
    usage_local_comments: Deferred[int | None] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ServerConfig:
        """Build a config from a plain mapping (e.g. a decoded JSON file).

        Raises:
            ValidationError: If the mapping has keys that are not config fields.
        """
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValidationError(
                f"Unknown server config field(s): {', '.join(unknown)}",
                field=unknown[0],
            )
        return cls(**dict(data))

    def users_hash(self) -> dict[str, int]:
        """Resolve the users section of the usage statistics.

        A mapping-style usage_users entry always wins over the top-level
        usage_users_active_* field of the same name; the top-level field is
        only consulted when the mapping lacks the key. A scalar usage_users
        is the total. Entries that resolve to None are left out.
        """
        users = resolve(self.usage_users)
        result: dict[str, Any] = {}

        if isinstance(users, Mapping):
            for key, fallback in _USER_COUNT_FALLBACKS:
                value = users.get(key)
                if value is None and fallback is not None:
                    value = getattr(self, fallback)
                result[key] = resolve(value)
        else:
            result["total"] = users
            result["activeMonth"] = resolve(self.usage_users_active_month)
            result["activeHalfyear"] = resolve(self.usage_users_active_halfyear)

        return {key: value for key, value in result.items() if value is not None}


class Server:
    """Generates NodeInfo documents and well-known responses.

    The configuration is validated once, at construction, and copied so
    later field assignments on the caller's ServerConfig are not observed.

    Example:
        >>> server = Server(software_name="myapp", software_version="1.0.0",
        ...                 protocols=["activitypub"])
        >>> server.to_dict()["software"]
        {'name': 'myapp', 'version': '1.0.0'}
    """

    def __init__(self, config: ServerConfig | None = None, **fields: Any) -> None:
        """Initialize the server.

        Args:
            config: Server configuration. Defaults to an empty ServerConfig.
            **fields: ServerConfig fields overriding those of ``config``.

        Raises:
            ValidationError: If a required field is missing or protocols is
                not a list.
            TypeError: If a keyword is not a ServerConfig field.
        """
        base = config if config is not None else ServerConfig()
        self._config = dataclasses.replace(base, **fields)
        self._validate_config()

    @property
    def config(self) -> ServerConfig:
        """The validated configuration."""
        return self._config

    def configure(self, **fields: Any) -> Server:
        """Return a new Server with the given config fields replaced."""
        return Server(self._config, **fields)

    def _validate_config(self) -> None:
        config = self._config
        if not config.software_name:
            raise ValidationError("software_name is required", field="software_name")
        if not config.software_version:
            raise ValidationError("software_version is required", field="software_version")
        if config.protocols is None:
            raise ValidationError("protocols is required", field="protocols")
        if not isinstance(config.protocols, (list, tuple)):
            raise ValidationError("protocols must be a list", field="protocols")

    def well_known(self, base_url: str | None = None) -> dict[str, list[dict[str, str]]]:
        """Return the well-known response for ``base_url`` or the configured base_url.

        Raises:
            ValueError: If no base URL is given or configured.
        """
        url = base_url or self._config.base_url
        if not url:
            raise ValueError("base_url is required")
        return build_well_known(url)

    def well_known_json(self, base_url: str | None = None) -> str:
        """Return the well-known response as JSON text."""
        return json.dumps(self.well_known(base_url), separators=(",", ":"))

    def document(self) -> Document:
        """Build a NodeInfo document, resolving usage statistics afresh."""
        config = self._config
        document = Document(
            version=NODEINFO_VERSION,
            software=self._build_software(),
            protocols=list(config.protocols or []),
            services=self._build_services(),
            open_registrations=config.open_registrations,
            usage=self._build_usage(),
            metadata=config.metadata,
        )
        logger.debug(
            "nodeinfo.server.document_built",
            software=config.software_name,
            users=document.usage.users,
        )
        return document

    def to_dict(self) -> dict[str, Any]:
        """Build a document and return its wire mapping."""
        return self.document().to_dict()

    def to_json(self) -> str:
        """Build a document and return it as JSON text."""
        return self.document().to_json()

    def _build_software(self) -> Software:
        config = self._config
        return Software(
            name=config.software_name,
            version=config.software_version,
            repository=config.software_repository,
            homepage=config.software_homepage,
        )

    def _build_services(self) -> Services:
        return Services(
            inbound=list(self._config.services_inbound or []),
            outbound=list(self._config.services_outbound or []),
        )

    def _build_usage(self) -> Usage:
        config = self._config
        usage: dict[str, Any] = {"users": config.users_hash()}
        if config.usage_local_posts is not None:
            usage["local_posts"] = resolve(config.usage_local_posts)
        if config.usage_local_comments is not None:
            usage["local_comments"] = resolve(config.usage_local_comments)
        return Usage(**usage)
