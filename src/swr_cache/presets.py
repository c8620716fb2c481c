"""Fetcher HTTP padrão e probes de ambiente."""

import asyncio
import logging
import os
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


def always_online() -> bool:
    """Probe de conectividade padrão (fora do navegador, sempre online)."""
    return True


def always_visible() -> bool:
    """Probe de visibilidade padrão (fora do navegador, sempre visível)."""
    return True


class HttpFetcher:
    """Fetcher que faz GET na URL e decodifica a resposta JSON.

    Usa httpx com cliente assíncrono criado sob demanda. A URL pode ser
    absoluta ou relativa a ``base_url`` (default: variável de ambiente
    ``SWR_BASE_URL``).

    Example:
        ```python
        fetcher = HttpFetcher(base_url="https://api.example.com")
        sub = engine.subscribe("/users/1", fetcher)
        ...
        await fetcher.aclose()
        ```
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Inicializa o fetcher.

        Args:
            base_url: URL base para URLs relativas
            timeout: Timeout das requisições em segundos
            headers: Headers enviados em todas as requisições
            transport: Transport httpx customizado (ex.: ``httpx.MockTransport``)
        """
        self._base_url = base_url if base_url is not None else os.getenv("SWR_BASE_URL", "")
        self._timeout = timeout
        self._headers = headers or {}
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        # asyncio.Lock é criado lazy para evitar "no current event loop"
        # quando a classe é instanciada antes de um event loop existir
        self._client_lock: asyncio.Lock | None = None

    def _get_lock(self) -> asyncio.Lock:
        if self._client_lock is None:
            self._client_lock = asyncio.Lock()
        return self._client_lock

    async def _get_client(self) -> httpx.AsyncClient:
        """Obtém ou cria cliente HTTP assíncrono (double-checked locking)."""
        if self._client is None:
            async with self._get_lock():
                if self._client is None:
                    self._client = httpx.AsyncClient(
                        base_url=self._base_url,
                        timeout=self._timeout,
                        headers=self._headers,
                        transport=self._transport,
                    )
        return self._client

    async def __call__(self, url: str, *args: Any) -> Any:
        """Busca a URL e retorna o JSON decodificado.

        Argumentos extras da chave são enviados como query string ``args``.

        Raises:
            httpx.HTTPStatusError: Se a resposta não for 2xx
            httpx.HTTPError: Em falhas de transporte
        """
        client = await self._get_client()
        params = [("args", str(arg)) for arg in args]
        response = await client.get(url, params=params or None)
        response.raise_for_status()
        logger.debug(f"GET {url} -> {response.status_code}")
        return response.json()

    async def aclose(self) -> None:
        """Fecha o cliente HTTP."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpFetcher":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()
