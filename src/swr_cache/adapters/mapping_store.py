"""Cache apoiado em um mapeamento de bytes (dict, shelve, dbm, ...)."""

import contextlib
import logging
import time
from collections.abc import Callable, Iterator, MutableMapping
from typing import Any

from ..exceptions import SWRSerializationError
from ..expiring_cache import CacheEntry, ExpiringCache
from ..serializer import MsgPackSerializer, Serializer

logger = logging.getLogger(__name__)


class MappingStoreCache(ExpiringCache[Any]):
    """ExpiringCache que persiste as entradas em um ``MutableMapping[str, bytes]``.

    Cada entrada é serializada (MsgPack por padrão) como
    ``[value, created_at, expires_at]`` sob a chave serializada, com um
    namespace opcional. Payloads corrompidos são descartados e tratados
    como miss.

    O relógio padrão é ``time.time`` porque os instantes gravados precisam
    sobreviver ao processo.

    Example:
        ```python
        import dbm

        with dbm.open("swr-cache.db", "c") as db:
            cache = MappingStoreCache(db, namespace="swr")
            engine = SWREngine(cache=cache)
        ```
    """

    def __init__(
        self,
        store: MutableMapping[str, bytes] | None = None,
        serializer: Serializer | None = None,
        namespace: str = "swr",
        ttl: float = 0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Inicializa o cache.

        Args:
            store: Mapeamento de destino (default: dict em memória)
            serializer: Serializer das entradas (default: MsgPackSerializer)
            namespace: Prefixo das chaves no mapeamento
            ttl: TTL padrão em segundos (0 = para sempre)
            clock: Relógio de parede
        """
        super().__init__(ttl=ttl, clock=clock)
        self._store_map: MutableMapping[str, bytes] = store if store is not None else {}
        self._serializer = serializer or MsgPackSerializer()
        self._namespace = namespace

    def _storage_key(self, serialized: str) -> str:
        return f"{self._namespace}:{serialized}" if self._namespace else serialized

    def _load(self, serialized: str) -> CacheEntry[Any] | None:
        raw = self._store_map.get(self._storage_key(serialized))
        if raw is None:
            return None
        try:
            value, created_at, expires_at = self._serializer.deserialize(bytes(raw))
        except (SWRSerializationError, ValueError, TypeError) as e:
            logger.warning(f"Entrada corrompida descartada para chave {serialized}: {e}")
            self._remove(serialized)
            return None
        return CacheEntry(value=value, created_at=created_at, expires_at=expires_at)

    def _store(self, serialized: str, entry: CacheEntry[Any]) -> None:
        payload = self._serializer.serialize([entry.value, entry.created_at, entry.expires_at])
        self._store_map[self._storage_key(serialized)] = payload

    def _remove(self, serialized: str) -> None:
        with contextlib.suppress(KeyError):
            del self._store_map[self._storage_key(serialized)]

    def _keys(self) -> Iterator[str]:
        prefix = self._storage_key("")
        for storage_key in list(self._store_map.keys()):
            if isinstance(storage_key, bytes):
                storage_key = storage_key.decode("utf-8")
            if storage_key.startswith(prefix):
                yield storage_key[len(prefix) :]
