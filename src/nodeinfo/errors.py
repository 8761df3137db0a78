"""NodeInfo Error Taxonomy.

This module defines the error hierarchy for the NodeInfo client and
document generator. Every error carries a code following the
``nodeinfo:<area>/<reason>`` pattern, a human-readable message and an
optional details dict, so callers can tell discovery-phase failures
apart from fetch-phase and parse-phase failures.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import httpx


class NodeInfoError(Exception):
    """Base exception for all NodeInfo errors.

    Attributes:
        code: Error code following the nodeinfo:... pattern
        message: Human-readable error message
        details: Optional additional error context
    """

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize to ``{code, message, details}`` dict."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class HTTPError(NodeInfoError):
    """Raised when an HTTP exchange fails at the transport or status level.

    Wraps either a non-success response or an httpx transport failure
    (connection refused, timeout, ...). The client converts it into a
    DiscoveryError or FetchError depending on the phase it occurred in.

    Attributes:
        response: The HTTP response, when one was received
        cause: The original transport exception, if any
    """

    def __init__(
        self,
        message: str,
        response: httpx.Response | None = None,
        cause: Exception | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details_dict: dict[str, Any] = dict(details or {})
        if response is not None:
            details_dict.setdefault("status_code", response.status_code)
        super().__init__(
            code="nodeinfo:transport/http_error",
            message=message,
            details=details_dict,
        )
        self.response = response
        self.cause = cause

    @property
    def status_code(self) -> int | None:
        """HTTP status code of the wrapped response, if any."""
        return self.response.status_code if self.response is not None else None


class DiscoveryError(NodeInfoError):
    """Raised when the well-known lookup fails.

    Covers bad HTTP status, malformed discovery body, missing or invalid
    ``links`` and the absence of any supported schema.
    """

    def __init__(
        self,
        reason: str,
        response: httpx.Response | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="nodeinfo:discovery/failed",
            message=f"NodeInfo discovery failed: {reason}",
            details=details or {},
        )
        self.reason = reason
        self.response = response


class FetchError(NodeInfoError):
    """Raised when retrieving the NodeInfo document over HTTP fails.

    Distinct from ParseError: the document was never received.
    """

    def __init__(
        self,
        reason: str,
        response: httpx.Response | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="nodeinfo:fetch/failed",
            message=f"NodeInfo fetch failed: {reason}",
            details=details or {},
        )
        self.reason = reason
        self.response = response


class ParseError(NodeInfoError):
    """Raised when a document body is not valid JSON or fails validation."""

    def __init__(self, reason: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="nodeinfo:document/parse_error",
            message=reason,
            details=details or {},
        )
        self.reason = reason


class ValidationError(NodeInfoError):
    """Raised when a document or server configuration violates an invariant.

    Attributes:
        field: Name of the offending field, when known
    """

    def __init__(
        self, message: str, field: str | None = None, details: dict[str, Any] | None = None
    ) -> None:
        details_dict: dict[str, Any] = dict(details or {})
        if field is not None:
            details_dict.setdefault("field", field)
        super().__init__(
            code="nodeinfo:document/invalid",
            message=message,
            details=details_dict,
        )
        self.field = field
