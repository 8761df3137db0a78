"""Structured logging for NodeInfo.

Library modules get their loggers from get_logger(), which binds a
structlog BoundLogger directly to the stdlib logger of the same name. No
handler, level or structlog global is touched on import: records flow
into whatever stdlib logging setup the host application has, and the
``nodeinfo`` logger carries only a NullHandler. All core events are
emitted at DEBUG.

configure_logging() is the opt-in renderer used by the nodeinfo CLI and
the example scripts. It replaces the root handlers with a single stderr
handler using structlog's ProcessorFormatter.

Environment Variables:
    NODEINFO_LOG_FORMAT: "json" for JSON lines, "console" for human-readable output
    NODEINFO_LOG_LEVEL: Minimum level (DEBUG, INFO, WARNING, ERROR)
    NODEINFO_SERVICE_NAME: Service name added to every rendered event

Example:
    >>> from nodeinfo.observability.logging import configure_logging, get_logger
    >>>
    >>> configure_logging(log_format="json", log_level="DEBUG")
    >>> logger = get_logger("nodeinfo.client")
    >>> logger.debug("nodeinfo.client.discover", url="https://example.com/.well-known/nodeinfo")
"""

import logging
import os
import sys

import structlog
from structlog.typing import Processor

LOGGER_NAMESPACE = "nodeinfo"

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "console"
DEFAULT_SERVICE_NAME = "nodeinfo"

ENV_LOG_FORMAT = "NODEINFO_LOG_FORMAT"
ENV_LOG_LEVEL = "NODEINFO_LOG_LEVEL"
ENV_SERVICE_NAME = "NODEINFO_SERVICE_NAME"

logging.getLogger(LOGGER_NAMESPACE).addHandler(logging.NullHandler())

# Event-dict processors applied before a record reaches stdlib logging;
# filter_by_level drops events the stdlib logger would discard anyway.
_EVENT_PROCESSORS: list[Processor] = [
    structlog.stdlib.filter_by_level,
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
]

_renderer_installed = False


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structured logger bound to the stdlib logger ``name``.

    Args:
        name: Logger name (typically __name__ of the module)
    """
    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=_EVENT_PROCESSORS,
        wrapper_class=structlog.stdlib.BoundLogger,
    )


def _build_renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=sys.stderr.isatty(),
        exception_formatter=structlog.dev.plain_traceback,
    )


def configure_logging(
    log_format: str | None = None,
    log_level: str | None = None,
    service_name: str | None = None,
    force: bool = False,
) -> None:
    """Render log events to stderr.

    Intended for applications and the CLI; the library never calls it.
    stdout is left alone so command output stays machine-readable.

    Args:
        log_format: "json" or "console". Defaults to NODEINFO_LOG_FORMAT or "console"
        log_level: Minimum level. Defaults to NODEINFO_LOG_LEVEL or "INFO"
        service_name: Value of the ``service`` key. Defaults to NODEINFO_SERVICE_NAME
        force: Reinstall the handler even if configure_logging already ran
    """
    global _renderer_installed

    if _renderer_installed and not force:
        return

    log_format = (log_format or os.environ.get(ENV_LOG_FORMAT, DEFAULT_LOG_FORMAT)).lower()
    log_level = (log_level or os.environ.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL)).upper()
    service_name = service_name or os.environ.get(ENV_SERVICE_NAME, DEFAULT_SERVICE_NAME)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=[
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
            ],
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _build_renderer(log_format),
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))

    structlog.contextvars.bind_contextvars(service=service_name)

    _renderer_installed = True
