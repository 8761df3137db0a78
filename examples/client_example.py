"""Client example for NodeInfo.

Discovers and fetches the NodeInfo document of a remote server and logs a
short summary of it.

Run:
    python examples/client_example.py mastodon.social
"""

import sys

from nodeinfo import NodeInfoError, create_client
from nodeinfo.models.document import Document
from nodeinfo.observability import configure_logging, get_logger

DEFAULT_DOMAIN = "mastodon.social"

logger = get_logger(__name__)


def describe(document: Document) -> dict[str, object]:
    """Extract the fields worth reporting from a document.

    Args:
        document: Fetched NodeInfo document.

    Returns:
        Flat mapping suitable for structured logging.
    """
    return {
        "software": document.software.name,
        "software_version": document.software.version,
        "protocols": document.protocols,
        "open_registrations": document.open_registrations,
        "users_total": document.usage.users.get("total"),
        "local_posts": document.usage.local_posts,
    }


def fetch_summary(domain: str) -> dict[str, object]:
    """Discover and fetch the NodeInfo document of ``domain``.

    Args:
        domain: Host to query; a scheme prefix or trailing slash is accepted.

    Returns:
        Summary produced by describe().
    """
    client = create_client(timeout=5.0)
    url = client.discover(domain)
    logger.info("nodeinfo.example.discovered", domain=domain, url=url)
    return describe(client.fetch_document(url))


def main() -> int:
    configure_logging(log_level="INFO")
    domain = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_DOMAIN
    try:
        summary = fetch_summary(domain)
    except NodeInfoError as exc:
        logger.error("nodeinfo.example.failed", domain=domain, **exc.to_dict())
        return 1
    logger.info("nodeinfo.example.fetched", domain=domain, **summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
