"""
Integration Test Fixtures.

A stateful in-memory stand-in for the manager text interface: deployments,
start/stop and undeploy change what later list requests return. Commands
run through the real dispatcher and HTTP client against it.
"""

from functools import partial

import httpx
import pytest

from tomcatctl.cli.app import dispatch
from tomcatctl.cli.client import ManagerClient
from tomcatctl.cli.session import CliSession
from tomcatctl.core.config import Config


# =============================================================================
# Fake server
# =============================================================================


class FakeTomcat:
    """
    Keeps a table of deployed applications and answers manager requests.

    Usage:
        tomcat.apps["/shop"] = "running"
        tomcat.uploads["/shop"]  # bytes received by deploy
    """

    def __init__(self) -> None:
        self.apps: dict[str, str] = {"/manager": "running"}
        self.uploads: dict[str, bytes] = {}
        self.sessions: dict[str, int] = {}

    def handler(self, request: httpx.Request) -> httpx.Response:
        endpoint = request.url.path.removeprefix("/manager/text")
        path = request.url.params.get("path", "")
        action = getattr(self, f"_{endpoint.lstrip('/')}", None)
        if action is None:
            return httpx.Response(404, text="Not Found")
        return httpx.Response(200, text=action(request, path) + "\n")

    def _list(self, request: httpx.Request, path: str) -> str:
        lines = ["OK - Listed applications for virtual host [localhost]"]
        for context, status in self.apps.items():
            lines.append(f"{context}:{status}:{self.sessions.get(context, 0)}:{context.lstrip('/') or 'ROOT'}")
        return "\n".join(lines)

    def _deploy(self, request: httpx.Request, path: str) -> str:
        if path in self.apps:
            return f"FAIL - Application already exists at path [{path}]"
        self.apps[path] = "running"
        self.uploads[path] = request.content
        return f"OK - Deployed application at context path [{path}]"

    def _undeploy(self, request: httpx.Request, path: str) -> str:
        if path not in self.apps:
            return f"FAIL - No context exists named [{path}]"
        del self.apps[path]
        return f"OK - Undeployed application at context path [{path}]"

    def _set_status(self, path: str, status: str, verb: str) -> str:
        if path not in self.apps:
            return f"FAIL - No context exists named [{path}]"
        self.apps[path] = status
        return f"OK - {verb} application at context path [{path}]"

    def _start(self, request: httpx.Request, path: str) -> str:
        return self._set_status(path, "running", "Started")

    def _stop(self, request: httpx.Request, path: str) -> str:
        return self._set_status(path, "stopped", "Stopped")

    def _reload(self, request: httpx.Request, path: str) -> str:
        return self._set_status(path, "running", "Reloaded")

    def _expire(self, request: httpx.Request, path: str) -> str:
        if path not in self.apps:
            return f"FAIL - No context exists named [{path}]"
        idle = request.url.params.get("idle")
        lines = [f"OK - Session information for application at context path [{path}]"]
        if idle is not None:
            expired = self.sessions.pop(path, 0)
            lines.append(f"{expired} sessions were expired")
        return "\n".join(lines)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def tomcat() -> FakeTomcat:
    return FakeTomcat()


@pytest.fixture
def live_session(manager_settings, server_settings, tomcat):
    """Session whose client talks to the stateful fake server."""
    client = ManagerClient(manager_settings, transport=httpx.MockTransport(tomcat.handler))
    session = CliSession(config=Config(manager=manager_settings, server=server_settings), client=client)
    yield session
    session.close()


@pytest.fixture
def run(live_session):
    """Run one command line against the live session; returns its exit status."""
    return partial(dispatch, live_session)
