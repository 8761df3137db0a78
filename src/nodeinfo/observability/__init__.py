"""Observability helpers for NodeInfo (structured logging)."""

from nodeinfo.observability.logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
