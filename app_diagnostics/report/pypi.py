"""Package index client used by the update-available insight.

Implements the one endpoint needed:
- /pypi/<distribution>/json - Latest release metadata
"""

import logging
from typing import Optional, Dict, Any

import httpx
from pydantic import BaseModel, Field

from app_diagnostics import __version__
from app_diagnostics.utils.errors import InsightLookupError

logger = logging.getLogger(__name__)

DEFAULT_INDEX_URL = "https://pypi.org"

DEFAULT_CONNECT_TIMEOUT = 5.0
DEFAULT_REQUEST_TIMEOUT = 10.0


class PackageInfo(BaseModel):
    """The ``info`` block of a package index JSON response."""

    name: str = Field(..., description="Distribution name")
    version: str = Field(..., description="Latest released version")
    summary: Optional[str] = Field(None, description="One line summary")


class PackageMetadata(BaseModel):
    """Response from GET /pypi/<distribution>/json."""

    info: PackageInfo
    releases: Optional[Dict[str, Any]] = None


class PackageIndexClient:
    """Async client for a PyPI-compatible JSON API.

    Usage:
        async with PackageIndexClient() as index:
            metadata = await index.get_package("app-diagnostics")
            print(metadata.info.version)
    """

    def __init__(
        self,
        base_url: str = DEFAULT_INDEX_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the index client.

        Args:
            base_url: Base URL of the package index
            timeout: Request timeout in seconds
            transport: Optional transport, e.g. ``httpx.MockTransport`` in tests
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "PackageIndexClient":
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=DEFAULT_CONNECT_TIMEOUT),
            headers={
                "User-Agent": f"app-diagnostics/{__version__}",
                "Accept": "application/json",
            },
            transport=self.transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        """Explicitly close the client (for non-context-manager usage)."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if not self._client:
            raise RuntimeError("Client not initialized. Use 'async with' context.")
        return self._client

    async def get_package(self, distribution: str) -> PackageMetadata:
        """Fetch release metadata for a distribution.

        Raises:
            InsightLookupError: On transport errors, non-200 responses or
                malformed payloads
        """
        path = f"/pypi/{distribution}/json"
        url = f"{self.base_url}{path}"

        try:
            response = await self.client.get(path)
        except httpx.TimeoutException as e:
            raise InsightLookupError(f"Request timeout: GET {url}", url=url) from e
        except httpx.RequestError as e:
            raise InsightLookupError(f"Request error: {e}", url=url) from e

        if response.status_code != 200:
            raise InsightLookupError(
                f"Package lookup failed for {distribution}: HTTP {response.status_code}",
                url=url,
                status_code=response.status_code,
            )

        try:
            return PackageMetadata(**response.json())
        except (ValueError, TypeError) as e:
            raise InsightLookupError(
                f"Malformed package metadata for {distribution}: {e}",
                url=url,
                status_code=response.status_code,
            ) from e
