"""Command-line interface for NodeInfo.

This module provides CLI commands to discover and fetch NodeInfo from
remote servers, validate local documents, and generate documents and
well-known responses from a JSON server configuration.

Example:
    >>> # From terminal:
    >>> # nodeinfo --version
    >>> # nodeinfo discover mastodon.social
    >>> # nodeinfo fetch mastodon.social [--json]
    >>> # nodeinfo validate nodeinfo.json
    >>> # nodeinfo generate server.json
    >>> # nodeinfo well-known server.json --base-url https://example.com
"""

import json
from pathlib import Path
from typing import Annotated, Any, NoReturn, Optional

import typer

from nodeinfo import __version__
from nodeinfo.client import Client
from nodeinfo.errors import NodeInfoError
from nodeinfo.models.constants import DEFAULT_TIMEOUT
from nodeinfo.models.document import Document
from nodeinfo.observability import configure_logging
from nodeinfo.server import Server, ServerConfig

app = typer.Typer(help="NodeInfo discovery and generation CLI.")

# Exit code for protocol-level failures (discovery, fetch, parse, validation)
EXIT_FAILURE = 1

USER_COUNT_LABELS = (
    ("total", "Total Users"),
    ("activeMonth", "Active This Month"),
    ("activeHalfyear", "Active Last 6 Months"),
)


def _version_callback(value: bool) -> None:
    """Print the version and exit when requested."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


VERSION_OPTION = typer.Option(
    False,
    "--version",
    help="Show nodeinfo version and exit.",
    callback=_version_callback,
    is_eager=True,
)

# Module-level singleton options to avoid B008 linting errors
TIMEOUT_OPTION = typer.Option(
    DEFAULT_TIMEOUT,
    "--timeout",
    min=0.1,
    help="HTTP timeout in seconds.",
)
FOLLOW_REDIRECTS_OPTION = typer.Option(
    True,
    "--follow-redirects/--no-follow-redirects",
    help="Follow HTTP redirects.",
)


@app.callback()
def cli(
    version: bool = VERSION_OPTION,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log HTTP requests to stderr."),
) -> None:
    """NodeInfo CLI entrypoint."""
    if verbose:
        configure_logging(log_level="DEBUG", force=True)


def _fail(error: NodeInfoError) -> NoReturn:
    """Report a protocol error on stderr and exit with EXIT_FAILURE."""
    typer.echo(f"Error: {error.message}", err=True)
    raise typer.Exit(code=EXIT_FAILURE)


def _load_json_file(path: Path) -> Any:
    if not path.is_file():
        raise typer.BadParameter(f"File not found: {path}")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"Invalid JSON in {path}: {exc}") from exc


def _load_server(config_file: Path) -> Server:
    data = _load_json_file(config_file)
    if not isinstance(data, dict):
        raise typer.BadParameter(f"Server config must be a JSON object: {config_file}")
    try:
        return Server(ServerConfig.from_dict(data))
    except NodeInfoError as exc:
        raise typer.BadParameter(f"Invalid server config: {exc.message}") from exc


def _summary_lines(document: Document) -> list[str]:
    """Render a human-readable summary of a document."""
    software = document.software
    lines = [
        "Software:",
        f"  Name: {software.name}",
        f"  Version: {software.version}",
    ]
    if software.repository:
        lines.append(f"  Repository: {software.repository}")
    if software.homepage:
        lines.append(f"  Homepage: {software.homepage}")

    lines.append("Protocols:")
    lines.extend(f"  - {protocol}" for protocol in document.protocols)

    services = document.services
    if services.inbound or services.outbound:
        lines.append("Services:")
        if services.inbound:
            lines.append("  Inbound:")
            lines.extend(f"    - {name}" for name in services.inbound)
        if services.outbound:
            lines.append("  Outbound:")
            lines.extend(f"    - {name}" for name in services.outbound)

    lines.append(f"Registrations: {'Open' if document.open_registrations else 'Closed'}")

    usage = document.usage
    counters = [
        (label, usage.users[key]) for key, label in USER_COUNT_LABELS if key in usage.users
    ]
    if usage.local_posts is not None:
        counters.append(("Local Posts", usage.local_posts))
    if usage.local_comments is not None:
        counters.append(("Local Comments", usage.local_comments))
    if counters:
        lines.append("Usage Statistics:")
        lines.extend(f"  {label}: {value}" for label, value in counters)

    metadata = document.to_dict()["metadata"]
    if metadata:
        lines.append("Metadata:")
        lines.extend(f"  {key}: {value}" for key, value in metadata.items())

    return lines


@app.command("discover")
def discover(
    domain: Annotated[str, typer.Argument(help="Domain to query, e.g. mastodon.social.")],
    timeout: float = TIMEOUT_OPTION,
    follow_redirects: bool = FOLLOW_REDIRECTS_OPTION,
) -> None:
    """Print the NodeInfo document URL advertised by DOMAIN."""
    client = Client(timeout=timeout, follow_redirects=follow_redirects)
    try:
        url = client.discover(domain)
    except NodeInfoError as exc:
        _fail(exc)
    typer.echo(url)


@app.command("fetch")
def fetch(
    domain: Annotated[str, typer.Argument(help="Domain to query, e.g. mastodon.social.")],
    as_json: Annotated[
        bool, typer.Option("--json", help="Print the raw document as JSON.")
    ] = False,
    timeout: float = TIMEOUT_OPTION,
    follow_redirects: bool = FOLLOW_REDIRECTS_OPTION,
) -> None:
    """Discover and fetch the NodeInfo document of DOMAIN."""
    client = Client(timeout=timeout, follow_redirects=follow_redirects)
    try:
        document = client.fetch(domain)
    except NodeInfoError as exc:
        _fail(exc)

    if as_json:
        typer.echo(json.dumps(document.to_dict(), indent=2))
    else:
        typer.echo("\n".join(_summary_lines(document)))


@app.command("validate")
def validate(
    document_file: Annotated[Path, typer.Argument(help="Path to a NodeInfo JSON document.")],
) -> None:
    """Check that a local file is a valid NodeInfo document."""
    if not document_file.is_file():
        raise typer.BadParameter(f"File not found: {document_file}")
    try:
        document = Document.parse(document_file.read_bytes())
    except NodeInfoError as exc:
        _fail(exc)
    typer.echo(f"valid: {document.software.name} {document.software.version}")


@app.command("generate")
def generate(
    config_file: Annotated[Path, typer.Argument(help="Path to a JSON server config.")],
    out: Annotated[
        Optional[Path],
        typer.Option("--out", "-o", help="Output path for the document (default: stdout)."),
    ] = None,
) -> None:
    """Build a NodeInfo document from a JSON server config."""
    server = _load_server(config_file)
    try:
        output = json.dumps(server.to_dict(), indent=2)
    except NodeInfoError as exc:
        _fail(exc)

    if out is not None:
        out.write_text(output, encoding="utf-8")
        typer.echo(f"NodeInfo document written to {out}")
    else:
        typer.echo(output)


@app.command("well-known")
def well_known(
    config_file: Annotated[Path, typer.Argument(help="Path to a JSON server config.")],
    base_url: Annotated[
        Optional[str],
        typer.Option("--base-url", help="Public base URL (default: base_url from the config)."),
    ] = None,
) -> None:
    """Print the /.well-known/nodeinfo response for a JSON server config."""
    server = _load_server(config_file)
    try:
        response = server.well_known(base_url)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(json.dumps(response, indent=2))


def main() -> None:
    """Run the NodeInfo CLI."""
    app()


if __name__ == "__main__":
    main()
