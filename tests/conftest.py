"""
Shared Test Fixtures.

A fake manager endpoint served through httpx.MockTransport, a fake server
installation under tmp_path, and the session objects built from them.
"""

import stat
from pathlib import Path

import httpx
import pytest

from tomcatctl.cli.client import ManagerClient
from tomcatctl.cli.session import CliSession
from tomcatctl.core.config import Config, ManagerSettings, ServerSettings
from tomcatctl.core.logging import setup_logging

MANAGER_URL = "http://tomcat.test:8080/manager/text"

LIST_RESPONSE = (
    "OK - Listed applications for virtual host [localhost]\n"
    "/manager:running:0:manager\n"
    "/examples:running:3:examples\n"
    "/docs:stopped:0:docs\n"
)

CONTROL_SCRIPT = """#!/bin/sh
echo "$@" >> "$CATALINA_HOME/calls.log"
exit ${FAKE_EXIT:-0}
"""


# =============================================================================
# Fake manager endpoint
# =============================================================================


class FakeManager:
    """
    Records requests and answers them like the manager text interface.

    Usage:
        fake.responses["/list"] = LIST_RESPONSE
        fake.transport_errors.add(("/stop", "/broken"))
        fake.status_code = 401
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responses: dict[str, str] = {"/list": LIST_RESPONSE}
        self.transport_errors: set[tuple[str, str | None]] = set()
        self.status_code = 200

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        endpoint = self.endpoint(request)
        if (endpoint, request.url.params.get("path")) in self.transport_errors:
            raise httpx.ConnectError("Connection refused", request=request)
        if self.status_code != 200:
            return httpx.Response(self.status_code, text="<html>Unauthorized</html>")
        body = self.responses.get(endpoint, f"OK - {endpoint[1:]} completed\n")
        return httpx.Response(200, text=body)

    @staticmethod
    def endpoint(request: httpx.Request) -> str:
        return request.url.path.removeprefix("/manager/text")

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def params(self, index: int = -1) -> dict[str, str]:
        return dict(self.requests[index].url.params)

    def endpoints(self) -> list[str]:
        return [self.endpoint(r) for r in self.requests]


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def quiet_logging():
    """Configure structlog for every test so nothing is printed to stdout."""
    setup_logging(level="WARNING")


@pytest.fixture
def fake_manager() -> FakeManager:
    return FakeManager()


@pytest.fixture
def manager_settings() -> ManagerSettings:
    return ManagerSettings(url=MANAGER_URL, username="admin", password="secret", timeout=5.0)


@pytest.fixture
def client(manager_settings, fake_manager):
    """ManagerClient wired to the fake manager."""
    with ManagerClient(manager_settings, transport=httpx.MockTransport(fake_manager.handler)) as c:
        yield c


@pytest.fixture
def server_home(tmp_path) -> Path:
    """
    A fake server installation.

    bin/catalina.sh appends its arguments to calls.log and exits with $FAKE_EXIT.
    logs/ holds two log files.
    """
    home = tmp_path / "tomcat"
    (home / "bin").mkdir(parents=True)
    script = home / "bin" / "catalina.sh"
    script.write_text(CONTROL_SCRIPT)
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    logs = home / "logs"
    logs.mkdir()
    (logs / "catalina.out").write_text("INFO: Server startup\n")
    (logs / "localhost_access_log.txt").write_text("127.0.0.1 GET /\n")
    return home


@pytest.fixture
def server_settings(server_home) -> ServerSettings:
    return ServerSettings(home=server_home)


@pytest.fixture
def session(manager_settings, server_settings, client) -> CliSession:
    return CliSession(config=Config(manager=manager_settings, server=server_settings), client=client)


@pytest.fixture
def list_response() -> str:
    return LIST_RESPONSE
