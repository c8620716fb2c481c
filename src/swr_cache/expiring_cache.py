"""Cache em memória com expiração por TTL."""

import heapq
import itertools
import logging
import math
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from .keys import serialize_key

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """Entrada do cache.

    Attributes:
        value: Valor armazenado
        created_at: Instante da escrita (relógio do cache)
        expires_at: Instante de expiração; ``math.inf`` nunca expira
    """

    value: T
    created_at: float
    expires_at: float = math.inf

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class ExpiringCache(Generic[T]):
    """Mapeamento chave serializada -> CacheEntry com TTL.

    ``ttl`` em segundos. ``ttl == 0`` (ou ``None`` sem TTL padrão) significa
    cache para sempre, nunca "não cachear".

    A expiração é preguiçosa: ``get`` remove entradas vencidas e um heap de
    instantes de expiração é varrido por ``purge_expired`` (chamado em cada
    ``set`` e periodicamente pelo sweeper do engine). A varredura confere a
    entrada atual antes de remover, então uma chave regravada depois de
    agendada não é removida por engano.

    Subclasses podem trocar o armazenamento sobrescrevendo ``_load``,
    ``_store``, ``_remove`` e ``_keys``.

    Example:
        ```python
        cache = ExpiringCache()
        cache.set("user:1", {"name": "Ana"}, ttl=60)
        entry = cache.get("user:1")
        ```
    """

    def __init__(self, ttl: float = 0, clock: Callable[[], float] = time.monotonic) -> None:
        """Inicializa o cache.

        Args:
            ttl: TTL padrão em segundos quando ``set`` não informa um (0 = para sempre)
            clock: Relógio monotônico, injetável para testes
        """
        self._ttl = ttl
        self._clock = clock
        self._items: dict[str, CacheEntry[T]] = {}
        self._expiry_heap: list[tuple[float, int, str]] = []
        self._counter = itertools.count()

    @property
    def ttl(self) -> float:
        """TTL padrão em segundos."""
        return self._ttl

    def now(self) -> float:
        """Instante atual segundo o relógio do cache."""
        return self._clock()

    def get(self, key: Any) -> CacheEntry[T] | None:
        """Busca entrada, removendo-a se expirada.

        Args:
            key: Chave (bruta ou já serializada)

        Returns:
            CacheEntry ou None se ausente/expirada
        """
        serialized = serialize_key(key)
        if not serialized:
            return None

        entry = self._load(serialized)
        if entry is None:
            return None

        if entry.is_expired(self.now()):
            logger.debug(f"Entrada expirada removida: {serialized}")
            self._remove(serialized)
            return None

        return entry

    def set(self, key: Any, value: T, ttl: float | None = None) -> CacheEntry[T] | None:
        """Armazena valor.

        Args:
            key: Chave (bruta ou já serializada)
            value: Valor a armazenar
            ttl: TTL em segundos; None usa o TTL padrão, 0 = para sempre

        Returns:
            A entrada gravada, ou None se a chave for inativa
        """
        serialized = serialize_key(key)
        if not serialized:
            return None

        time_to_live = ttl or self._ttl
        now = self.now()
        entry = CacheEntry(
            value=value,
            created_at=now,
            expires_at=now + time_to_live if time_to_live > 0 else math.inf,
        )

        self.purge_expired(now)
        self._store(serialized, entry)
        if time_to_live > 0:
            heapq.heappush(self._expiry_heap, (entry.expires_at, next(self._counter), serialized))
        return entry

    def delete(self, key: Any) -> None:
        """Remove entrada imediatamente."""
        serialized = serialize_key(key)
        if serialized:
            self._remove(serialized)

    def purge_expired(self, now: float | None = None) -> int:
        """Remove as entradas cujo instante de expiração já passou.

        Args:
            now: Instante de referência (default: relógio do cache)

        Returns:
            Número de entradas removidas
        """
        if now is None:
            now = self.now()

        removed = 0
        while self._expiry_heap and self._expiry_heap[0][0] <= now:
            _, _, serialized = heapq.heappop(self._expiry_heap)
            current = self._load(serialized)
            # A chave pode ter sido regravada com outra expiração
            if current is not None and current.is_expired(now):
                self._remove(serialized)
                removed += 1

        if removed:
            logger.debug(f"Sweep removeu {removed} entradas expiradas")
        return removed

    def clear(self) -> None:
        """Remove todas as entradas."""
        for serialized in list(self._keys()):
            self._remove(serialized)
        self._expiry_heap.clear()

    def keys(self) -> list[str]:
        """Chaves serializadas armazenadas (inclui expiradas ainda não varridas)."""
        return list(self._keys())

    def __contains__(self, key: Any) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self.keys())

    # ========== Armazenamento ==========

    def _load(self, serialized: str) -> CacheEntry[T] | None:
        return self._items.get(serialized)

    def _store(self, serialized: str, entry: CacheEntry[T]) -> None:
        self._items[serialized] = entry

    def _remove(self, serialized: str) -> None:
        self._items.pop(serialized, None)

    def _keys(self) -> Iterator[str]:
        return iter(self._items)
