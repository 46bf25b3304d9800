"""Tests for the package index client."""

import httpx
import pytest

from app_diagnostics.report.pypi import PackageIndexClient
from app_diagnostics.utils.errors import InsightLookupError


def transport(status_code=200, payload=None, requests=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return httpx.Response(status_code, json=payload if payload is not None else {})

    return httpx.MockTransport(handler)


class TestPackageIndexClient:
    """Tests for PackageIndexClient."""

    @pytest.mark.asyncio
    async def test_get_package(self):
        requests = []
        payload = {"info": {"name": "demo", "version": "2.0.0", "summary": "Demo app"}}

        async with PackageIndexClient(transport=transport(payload=payload, requests=requests)) as index:
            metadata = await index.get_package("demo")

        assert metadata.info.version == "2.0.0"
        assert metadata.info.summary == "Demo app"
        assert requests[0].url.path == "/pypi/demo/json"
        assert requests[0].headers["User-Agent"].startswith("app-diagnostics/")

    @pytest.mark.asyncio
    async def test_not_found(self):
        async with PackageIndexClient(transport=transport(status_code=404)) as index:
            with pytest.raises(InsightLookupError) as exc_info:
                await index.get_package("missing")

        assert exc_info.value.status_code == 404
        assert exc_info.value.url.endswith("/pypi/missing/json")

    @pytest.mark.asyncio
    async def test_malformed_payload(self):
        async with PackageIndexClient(transport=transport(payload={"unexpected": True})) as index:
            with pytest.raises(InsightLookupError, match="Malformed"):
                await index.get_package("demo")

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with PackageIndexClient(transport=httpx.MockTransport(handler)) as index:
            with pytest.raises(InsightLookupError, match="Request error"):
                await index.get_package("demo")

    def test_client_requires_context(self):
        with pytest.raises(RuntimeError):
            PackageIndexClient().client
