"""Protocols para extensibilidade da biblioteca.

Define interfaces que permitem implementações customizadas de:
- CacheStore: Cache de dados (memória, storage persistente, etc.)
- Fetcher: Função que busca o recurso
- EngineMetrics: Coleta de métricas
"""

from collections.abc import Awaitable
from typing import Any, Protocol


class CacheEntryLike(Protocol):
    """Entrada devolvida por um CacheStore."""

    value: Any
    created_at: float
    expires_at: float


class CacheStore(Protocol):
    """Protocol para caches de dados.

    Qualquer implementação que honre o contrato get/set/delete/ttl pode
    substituir o cache em memória padrão, por exemplo um cache apoiado em
    storage persistente.

    Example:
        ```python
        class MyCache(ExpiringCache):
            def _store(self, serialized, entry):
                db.put(serialized, entry)
        ```
    """

    def get(self, key: Any) -> CacheEntryLike | None:
        """Busca entrada não expirada.

        Args:
            key: Chave do recurso

        Returns:
            Entrada ou None se ausente/expirada
        """
        ...

    def set(self, key: Any, value: Any, ttl: float | None = None) -> Any:
        """Armazena valor.

        Args:
            key: Chave do recurso
            value: Valor a armazenar
            ttl: TTL em segundos (0 = para sempre)
        """
        ...

    def delete(self, key: Any) -> None:
        """Remove entrada."""
        ...

    def now(self) -> float:
        """Instante atual no relógio do cache (base de ``created_at``)."""
        ...


class Fetcher(Protocol):
    """Protocol para fetchers.

    Recebe os argumentos originais da chave (não o hash) e devolve o
    valor ou um awaitable.

    Example:
        ```python
        async def fetch_user(user_id: int) -> dict:
            return await api.get(f"/users/{user_id}")
        ```
    """

    def __call__(self, *args: Any) -> Any | Awaitable[Any]: ...


class EngineMetrics(Protocol):
    """Protocol para coleta de métricas do engine.

    Implemente este protocol para integrar com sistemas
    de monitoramento customizados.

    Example:
        ```python
        class PrometheusMetrics:
            def record_fetch(self, key: str, latency: float) -> None:
                swr_fetches_total.labels(key=key).inc()
                swr_latency.observe(latency)
        ```
    """

    def record_hit(self, key: str) -> None:
        """Registra revalidação servida do cache (stale ou não)."""
        ...

    def record_miss(self, key: str) -> None:
        """Registra revalidação sem dado em cache."""
        ...

    def record_fetch(self, key: str, latency: float) -> None:
        """Registra fetch concluído.

        Args:
            key: Chave do recurso
            latency: Duração do fetch em segundos
        """
        ...

    def record_dedupe(self, key: str) -> None:
        """Registra fetch evitado por deduplicação."""
        ...

    def record_retry(self, key: str, attempt: int) -> None:
        """Registra retry agendado."""
        ...

    def record_error(self, key: str, error: BaseException) -> None:
        """Registra erro (fetcher, compare, etc.)."""
        ...
