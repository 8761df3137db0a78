"""Server example for NodeInfo.

Builds the documents a federated server publishes: the well-known
discovery response and the NodeInfo 2.1 document. Usage statistics are
supplied as callables so every build reflects current counts.

Run:
    python examples/server_example.py
"""

import itertools

from nodeinfo import Server, create_server

DEFAULT_BASE_URL = "https://myapp.example"

# Stand-in for a database query; every call returns a higher post count
_post_counter = itertools.count(1000)


def count_local_posts() -> int:
    return next(_post_counter)


def build_server(base_url: str = DEFAULT_BASE_URL) -> Server:
    """Build the NodeInfo server for the example application.

    Args:
        base_url: Public URL the application is served from.

    Returns:
        Configured Server.
    """
    return create_server(
        software_name="myapp",
        software_version="1.0.0",
        software_repository="https://github.com/example/myapp",
        software_homepage=base_url,
        base_url=base_url,
        protocols=["activitypub"],
        services_outbound=["rss2.0"],
        open_registrations=True,
        usage_users={"total": lambda: 120, "activeMonth": lambda: 45},
        usage_users_active_halfyear=lambda: 80,
        usage_local_posts=count_local_posts,
        metadata={"nodeName": "My App"},
    )


def main() -> None:
    server = build_server()
    # Served at /.well-known/nodeinfo
    print(server.well_known_json())
    # Served at /nodeinfo/2.1
    print(server.to_json())


if __name__ == "__main__":
    main()
