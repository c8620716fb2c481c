"""Testes para o fetcher HTTP padrão."""

import httpx
import pytest

from swr_cache.presets import HttpFetcher


def json_transport(requests: list[httpx.Request], status_code: int = 200) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status_code, json={"path": request.url.path})

    return httpx.MockTransport(handler)


class TestHttpFetcher:
    """Testes para HttpFetcher."""

    @pytest.mark.asyncio
    async def test_get_returns_json(self) -> None:
        """Deve fazer GET e decodificar o JSON."""
        requests: list[httpx.Request] = []
        async with HttpFetcher(base_url="https://api.test", transport=json_transport(requests)) as fetcher:
            result = await fetcher("/users/1")

        assert result == {"path": "/users/1"}
        assert requests[0].method == "GET"
        assert str(requests[0].url) == "https://api.test/users/1"

    @pytest.mark.asyncio
    async def test_extra_args_become_query_params(self) -> None:
        """Argumentos extras da chave devem ir na query string."""
        requests: list[httpx.Request] = []
        async with HttpFetcher(base_url="https://api.test", transport=json_transport(requests)) as fetcher:
            await fetcher("/items", 2, "recent")

        assert requests[0].url.params.get_list("args") == ["2", "recent"]

    @pytest.mark.asyncio
    async def test_error_status_raises(self) -> None:
        """Resposta não 2xx deve gerar HTTPStatusError."""
        requests: list[httpx.Request] = []
        async with HttpFetcher(base_url="https://api.test", transport=json_transport(requests, 500)) as fetcher:
            with pytest.raises(httpx.HTTPStatusError):
                await fetcher("/broken")

    @pytest.mark.asyncio
    async def test_headers_are_sent(self) -> None:
        """Headers configurados devem ser enviados."""
        requests: list[httpx.Request] = []
        fetcher = HttpFetcher(
            base_url="https://api.test",
            headers={"Authorization": "Bearer token"},
            transport=json_transport(requests),
        )

        await fetcher("/me")
        await fetcher.aclose()

        assert requests[0].headers["Authorization"] == "Bearer token"

    @pytest.mark.asyncio
    async def test_client_is_reused(self) -> None:
        """Cliente deve ser criado uma vez e reaproveitado."""
        requests: list[httpx.Request] = []
        fetcher = HttpFetcher(base_url="https://api.test", transport=json_transport(requests))

        first = await fetcher._get_client()
        second = await fetcher._get_client()
        await fetcher.aclose()

        assert first is second
        assert fetcher._client is None

    @pytest.mark.asyncio
    async def test_base_url_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Sem base_url, deve usar SWR_BASE_URL."""
        monkeypatch.setenv("SWR_BASE_URL", "https://env.test")
        requests: list[httpx.Request] = []

        async with HttpFetcher(transport=json_transport(requests)) as fetcher:
            await fetcher("/ping")

        assert requests[0].url.host == "env.test"
