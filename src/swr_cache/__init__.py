"""swr-cache: engine stale-while-revalidate para Python assíncrono.

Devolve imediatamente o melhor valor conhecido para uma chave, revalida em
segundo plano segundo a política configurada, deduplica fetches
concorrentes da mesma chave e publica o resultado para todos os
consumidores que acompanham a chave.

Uso básico:
    ```python
    from swr_cache import SWREngine

    async def fetch_user(user_id: int) -> dict:
        return await api.get_user(user_id)

    async with SWREngine() as engine:
        async with engine.subscribe(["user", 1], fetch_user) as sub:
            print(sub.data, sub.error, sub.is_validating)

        # Atualização otimista, vista por todos os consumidores da chave
        await engine.mutate(["user", 1], {"id": 1, "name": "Ana"})
    ```

Com o engine padrão do processo:
    ```python
    from swr_cache import HttpFetcher, mutate, use_swr

    sub = await use_swr("/api/config", HttpFetcher(), refresh_interval=30)
    await mutate("/api/config", {"feature": True})
    ```
"""

__version__ = "0.1.0"

# Engine e API principal
from .config import SWRConfig
from .dedupe import PendingOperation, PromiseDedupeRegistry
from .engine import SWREngine, get_default_engine, mutate, set_default_engine, use_swr
from .envelope import ResponseEnvelope

# Exceções
from .exceptions import SWRError, SWRSerializationError, ValidationError

# Caches
from .adapters import MappingStoreCache
from .expiring_cache import CacheEntry, ExpiringCache

# Chaves
from .keys import ResolvedKey, resolve_key, serialize_key

# Métricas
from .metrics import EngineStats, InMemoryMetrics, KeyStats, NoOpMetrics, OpenTelemetryMetrics

# Fetcher HTTP e probes
from .presets import HttpFetcher, always_online, always_visible

# Protocols (para extensibilidade)
from .protocols import CacheStore, EngineMetrics, Fetcher
from .retry import RetryScheduler

# Serialização
from .serializer import MsgPackSerializer, Serializer
from .subscribers import StateSlot, SubscriberRegistry
from .subscription import Subscription

__all__ = [
    # Engine e API principal
    "SWREngine",
    "SWRConfig",
    "Subscription",
    "ResponseEnvelope",
    "mutate",
    "use_swr",
    "get_default_engine",
    "set_default_engine",
    # Componentes
    "ExpiringCache",
    "CacheEntry",
    "MappingStoreCache",
    "PromiseDedupeRegistry",
    "PendingOperation",
    "SubscriberRegistry",
    "StateSlot",
    "RetryScheduler",
    # Chaves
    "ResolvedKey",
    "resolve_key",
    "serialize_key",
    # Fetcher HTTP e probes
    "HttpFetcher",
    "always_online",
    "always_visible",
    # Serialização
    "MsgPackSerializer",
    "Serializer",
    # Métricas
    "EngineStats",
    "KeyStats",
    "NoOpMetrics",
    "InMemoryMetrics",
    "OpenTelemetryMetrics",
    # Exceções
    "SWRError",
    "SWRSerializationError",
    "ValidationError",
    # Protocols
    "CacheStore",
    "EngineMetrics",
    "Fetcher",
]
