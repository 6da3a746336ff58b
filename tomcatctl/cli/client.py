"""
HTTP Client for the Manager Text Interface.

Provides a synchronous HTTP client for the server's manager/text endpoint.
All requests carry HTTP basic authentication built from the configured
credentials.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx

from tomcatctl import __version__
from tomcatctl.core.config import ManagerSettings
from tomcatctl.core.logging import get_logger, log_with_source

logger = get_logger(__name__)

UPLOAD_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class ManagerResponse:
    """Raw response from the manager endpoint."""

    status_code: int
    reason: str
    text: str

    @property
    def transport_ok(self) -> bool:
        """True when the HTTP exchange itself succeeded (2xx)."""
        return 200 <= self.status_code < 300

    @property
    def ok(self) -> bool:
        """True when the manager reported success on its first line."""
        return self.transport_ok and self.text.startswith("OK")


def _iter_file(path: Path, chunk_size: int = UPLOAD_CHUNK_SIZE) -> Iterator[bytes]:
    with open(path, "rb") as f:
        while chunk := f.read(chunk_size):
            yield chunk


class ManagerClient:
    """
    HTTP client for manager text API communication.

    Features:
    - Base URL, credentials and timeout from ManagerSettings
    - HTTP basic authentication on every request
    - Structured logging of requests/responses
    - No retries: transport errors propagate as httpx.HTTPError

    Usage:
        client = ManagerClient(config.manager)
        response = client.get("/list")
        response = client.get("/start", params={"path": "/app", "version": ""})
        response = client.put("/deploy", params={"path": "/app"}, upload=Path("app.war"))
    """

    def __init__(
        self,
        settings: ManagerSettings,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize the manager client.

        Args:
            settings: Manager URL, credentials and timeout.
            transport: Optional httpx transport, used to substitute the network in tests.
        """
        self.settings = settings
        self.base_url = settings.url.rstrip("/")
        self._transport = transport
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                base_url=self.base_url,
                auth=httpx.BasicAuth(self.settings.username, self.settings.password),
                timeout=self.settings.timeout,
                headers={"User-Agent": f"tomcatctl/{__version__}"},
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> "ManagerClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def request(
        self,
        method: str,
        path: str,
        params: Mapping[str, str] | None = None,
        upload: Path | None = None,
    ) -> ManagerResponse:
        """
        Make an HTTP request to the manager endpoint.

        Args:
            method: HTTP method (GET or PUT)
            path: Endpoint path relative to the manager URL (e.g., /list)
            params: Query parameters, encoded in the given order
            upload: Local file streamed as the request body

        Returns:
            ManagerResponse with the full body text

        Raises:
            httpx.HTTPError: On transport failure
        """
        client = self._get_client()

        kwargs: dict[str, Any] = {"params": dict(params or {})}
        if upload is not None:
            kwargs["content"] = _iter_file(upload)
            kwargs["headers"] = {
                "Content-Type": "application/octet-stream",
                "Content-Length": str(upload.stat().st_size),
            }

        log_with_source(logger, "http", "debug", "Manager request", method=method, path=path)

        try:
            response = client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            log_with_source(
                logger,
                "http",
                "error",
                "Manager request failed",
                method=method,
                path=path,
                error=str(e),
            )
            raise

        log_with_source(
            logger,
            "http",
            "debug",
            "Manager response",
            method=method,
            path=path,
            status_code=response.status_code,
        )

        return ManagerResponse(
            status_code=response.status_code,
            reason=response.reason_phrase,
            text=response.text,
        )

    def get(self, path: str, params: Mapping[str, str] | None = None) -> ManagerResponse:
        """Make a GET request."""
        return self.request("GET", path, params=params)

    def put(
        self,
        path: str,
        params: Mapping[str, str] | None = None,
        upload: Path | None = None,
    ) -> ManagerResponse:
        """Make a PUT request."""
        return self.request("PUT", path, params=params, upload=upload)
