"""
Manager Commands.

One function per manager text operation. Each builds its endpoint path and
query parameters, sends the request through ManagerClient and prints the
response. Every function returns the exit status of the operation.

Exit status:
    0  the server answered with a 2xx status (the body may still say FAIL)
    1  transport error, non-2xx status, or a local error before sending
"""

from collections.abc import Callable, Iterable
from pathlib import Path

import httpx

from tomcatctl.cli.client import ManagerClient, ManagerResponse
from tomcatctl.cli.formatter import format_contexts, format_table, passthrough
from tomcatctl.cli.output import echo_error_body, echo_response, print_error
from tomcatctl.core.logging import get_logger, log_with_source

logger = get_logger(__name__)

VERSION_SEPARATOR = "##"
ARCHIVE_SUFFIX = ".war"

CONTEXT_ACTIONS = ("start", "stop", "reload", "undeploy")


def split_context_id(identifier: str) -> tuple[str, str]:
    """
    Split a context identifier into its path and version.

    Args:
        identifier: Context path, optionally suffixed with ##version

    Returns:
        (path, version); version is "" when the identifier has no ## segment
    """
    path, _, version = identifier.partition(VERSION_SEPARATOR)
    return path, version


def derive_context_path(archive: str | Path) -> str:
    """Context path for an archive deployed without an explicit path: /<basename without .war>."""
    name = Path(archive).name
    if name.lower().endswith(ARCHIVE_SUFFIX):
        name = name[: -len(ARCHIVE_SUFFIX)]
    return "/" + name


def _context_params(identifier: str) -> dict[str, str]:
    path, version = split_context_id(identifier)
    return {"path": path, "version": version}


def _send(
    request: Callable[[], ManagerResponse],
    render: Callable[[str], str] = passthrough,
) -> int:
    """Issue one request and print its outcome. Transport errors end this request only."""
    try:
        response = request()
    except httpx.HTTPError as e:
        print_error(f"Request failed: {e}")
        return 1

    if not response.transport_ok:
        print_error(f"HTTP {response.status_code} {response.reason}")
        echo_error_body(response.text)
        return 1

    if not response.ok:
        log_with_source(logger, "http", "info", "Manager reported failure", response=response.text.partition("\n")[0])
    echo_response(render(response.text))
    return 0


def run_context_command(client: ManagerClient, action: str, identifiers: Iterable[str]) -> int:
    """
    Run start, stop, reload or undeploy for each context identifier in turn.

    Args:
        client: Manager client
        action: One of CONTEXT_ACTIONS
        identifiers: Context identifiers, processed sequentially

    Returns:
        Exit status of the last identifier processed
    """
    if action not in CONTEXT_ACTIONS:
        raise ValueError(f"Unknown context action: {action}")

    status = 0
    for identifier in identifiers:
        params = _context_params(identifier)
        logger.info("Context command", action=action, **params)
        status = _send(lambda: client.get(f"/{action}", params=params))
    return status


def deploy(client: ManagerClient, archive: Path, context_path: str | None = None) -> int:
    """
    Upload a web application archive.

    Args:
        client: Manager client
        archive: Local archive file sent as the request body
        context_path: Target context identifier. Derived from the archive name if None.

    Returns:
        Exit status
    """
    if not archive.is_file():
        print_error(f"Archive not found: {archive}")
        return 1

    params = _context_params(context_path or derive_context_path(archive))
    if not params["version"]:
        del params["version"]

    logger.info("Deploying archive", archive=str(archive), **params)
    return _send(lambda: client.put("/deploy", params=params, upload=archive))


def expire(client: ManagerClient, identifier: str, idle: int | None = None) -> int:
    """
    Show session idle statistics, or expire sessions idle for at least `idle` minutes.

    The idle parameter is left out of the query entirely when not given.
    """
    params = _context_params(identifier)
    if idle is not None:
        params["idle"] = str(idle)
    return _send(lambda: client.get("/expire", params=params))


def resources(client: ManagerClient) -> int:
    """List global JNDI resources."""
    return _send(lambda: client.get("/resources"))


def serverinfo(client: ManagerClient) -> int:
    """Show server, JVM and OS information."""
    return _send(lambda: client.get("/serverinfo"))


def list_applications(client: ManagerClient) -> int:
    """Print deployed applications as a table."""
    return _send(lambda: client.get("/list"), render=format_table)


def list_contexts(client: ManagerClient) -> list[str]:
    """
    Fetch the deployed context paths from the live server.

    Always issues a fresh request; callers rely on this to see applications
    deployed or undeployed since the last call.

    Raises:
        httpx.HTTPError: On transport failure
    """
    response = client.get("/list")
    if not response.transport_ok:
        return []
    return format_contexts(response.text).split()
