"""Engine stale-while-revalidate: caches compartilhados e caminho de escrita."""

import asyncio
import inspect
import logging
import time
from collections.abc import Callable, Coroutine
from typing import Any

from .config import SWRConfig, resolve_config
from .constants import DEFAULT_SWEEP_INTERVAL
from .dedupe import PromiseDedupeRegistry
from .envelope import ResponseEnvelope
from .exceptions import SWRError
from .expiring_cache import ExpiringCache
from .keys import resolve_key
from .metrics import NoOpMetrics, SafeMetrics
from .protocols import CacheStore, EngineMetrics, Fetcher
from .retry import RetryScheduler
from .subscribers import SubscriberRegistry
from .subscription import Subscription

logger = logging.getLogger(__name__)


class SWREngine:
    """Contexto explícito com os caches do engine.

    Cada engine tem seu próprio cache de dados, registro de fetches em
    andamento, registro de assinantes e scheduler de retry, o que permite
    vários engines independentes no mesmo processo (ex.: um por teste).

    Example:
        ```python
        async with SWREngine(SWRConfig(dedupe_interval=1.0)) as engine:
            async with engine.subscribe("/users/1", fetch_user) as sub:
                print(sub.data)

            await engine.mutate("/users/1", {"id": 1, "name": "Ana"})
        ```
    """

    def __init__(
        self,
        config: SWRConfig | None = None,
        cache: CacheStore | None = None,
        metrics: EngineMetrics | None = None,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL,
    ) -> None:
        """Inicializa o engine.

        Args:
            config: Configuração padrão das assinaturas e do ``mutate``
            cache: Cache de dados (default: ``config.cache`` ou ExpiringCache em memória)
            metrics: Coletor de métricas (default: NoOpMetrics)
            clock: Relógio monotônico dos caches internos
            sweep_interval: Intervalo do sweeper de expiração em segundos
        """
        self._config = config or SWRConfig()
        if cache is None:
            cache = self._config.cache if self._config.cache is not None else ExpiringCache(clock=clock)
        self._cache: CacheStore = cache
        self._promises = PromiseDedupeRegistry(clock=clock)
        self._subscribers = SubscriberRegistry(clock=clock)
        self._metrics = SafeMetrics(metrics or NoOpMetrics())
        self._retry = RetryScheduler(spawn=self.spawn, metrics=self._metrics)
        self._sweep_interval = sweep_interval
        self._sweeper: asyncio.Task[Any] | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._active: set[Subscription] = set()

    @property
    def config(self) -> SWRConfig:
        return self._config

    @property
    def cache(self) -> CacheStore:
        """Cache de dados padrão."""
        return self._cache

    @property
    def promises(self) -> PromiseDedupeRegistry:
        return self._promises

    @property
    def subscribers(self) -> SubscriberRegistry:
        return self._subscribers

    @property
    def retry(self) -> RetryScheduler:
        return self._retry

    @property
    def metrics(self) -> SafeMetrics:
        return self._metrics

    @property
    def active_subscriptions(self) -> list[Subscription]:
        return list(self._active)

    # ========== Escrita ==========

    async def mutate(
        self,
        key: Any,
        value: Any,
        cache: CacheStore | None = None,
        ttl: float | None = None,
        config: SWRConfig | None = None,
    ) -> ResponseEnvelope:
        """Injeta um valor (ou awaitable) no cache e publica para os assinantes.

        Awaitables são aguardados; exceções viram ``error``. O cache só é
        gravado quando ``data`` não é None, então um erro nunca apaga o
        último dado bom. Quando ``compare`` considera o dado igual ao
        anterior, o objeto anterior é mantido.

        Args:
            key: Chave do recurso
            value: Valor ou awaitable
            cache: Cache de dados alvo (default: o do engine)
            ttl: TTL em segundos (default: ``config.ttl``; 0 = para sempre)
            config: Configuração usada para ``compare`` e ``ttl``

        Returns:
            ResponseEnvelope com o resultado
        """
        config = config or self._config
        data: Any = None
        error: BaseException | None = None

        if inspect.isawaitable(value):
            try:
                data = await value
            except Exception as e:
                error = e
        else:
            data = value

        serialized = resolve_key(key).serialized
        if not serialized:
            return ResponseEnvelope(data=data, error=error, is_validating=False)

        target = cache if cache is not None else self._cache
        if data is not None:
            data = self._reconcile(serialized, target, data, config)
            try:
                target.set(
                    serialized,
                    ResponseEnvelope(data=data, error=error, is_validating=False),
                    ttl if ttl is not None else config.ttl,
                )
                logger.debug(f"Cache set para chave: {serialized}")
            except SWRError as e:
                # Falha do cache fica restrita à chave: o fan-out continua
                logger.warning(f"Erro ao gravar cache para chave {serialized}: {e}")
                self._metrics.record_error(serialized, e)

        envelope = ResponseEnvelope(data=data, error=error, is_validating=False)
        updated = self._subscribers.publish(serialized, data, error)
        logger.debug(f"Fan-out para {updated} slots da chave: {serialized}")
        return envelope

    def _reconcile(self, key: str, cache: CacheStore, data: Any, config: SWRConfig) -> Any:
        """Mantém o dado anterior quando ``compare`` o considera igual ao novo."""
        entry = cache.get(key)
        previous = entry.value.data if entry is not None else None
        if previous is None:
            return data

        try:
            if config.values_equal(previous, data):
                return previous
        except Exception as e:
            # Falha aberta: trata como alterado
            logger.warning(f"Erro em compare para chave {key}: {e}")
            self._metrics.record_error(key, e)
        return data

    # ========== Assinaturas ==========

    def subscribe(
        self,
        key: Any,
        fetcher: Fetcher | None = None,
        config: SWRConfig | None = None,
        **overrides: Any,
    ) -> Subscription:
        """Cria uma assinatura (ainda inativa) para a chave.

        Args:
            key: Chave do recurso (str, lista de argumentos, callable ou None)
            fetcher: Função que busca o recurso; None = só lê o cache
            config: Configuração base (default: a do engine)
            **overrides: Opções de ``SWRConfig``

        Returns:
            Subscription; use ``await sub.activate()`` ou ``async with``
        """
        return Subscription(self, key, fetcher, resolve_config(config or self._config, **overrides))

    def _attach(self, subscription: Subscription) -> None:
        self._active.add(subscription)

    def _detach(self, subscription: Subscription) -> None:
        self._active.discard(subscription)

    async def notify_focus(self) -> None:
        """Propaga sinal de foco/visibilidade para todas as assinaturas ativas."""
        await asyncio.gather(*(sub.on_focus() for sub in list(self._active)))

    # ========== Tasks de fundo ==========

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> "asyncio.Task[Any]":
        """Cria task de fundo mantida pelo engine até terminar."""
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: "asyncio.Task[Any]") -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Erro em task de fundo do engine: {error!r}")

    def start(self) -> None:
        """Inicia o sweeper de expiração (requer event loop rodando)."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = self.spawn(self._sweep())

    async def _sweep(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            for cache in (self._cache, self._promises, self._subscribers):
                purge = getattr(cache, "purge_expired", None)
                if purge is not None:
                    purge()

    async def aclose(self) -> None:
        """Desativa assinaturas e cancela tasks de fundo."""
        for subscription in list(self._active):
            await subscription.deactivate()

        # Fetches primeiro: os commits aguardando são liberados por eles
        cancelled = self._promises.cancel_all()
        if cancelled:
            logger.debug(f"{cancelled} fetches em andamento cancelados")

        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._sweeper = None

    async def __aenter__(self) -> "SWREngine":
        self.start()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()


# Engine padrão do processo, criado sob demanda
_default_engine: SWREngine | None = None


def get_default_engine() -> SWREngine:
    """Obtém ou cria o engine padrão do processo."""
    global _default_engine
    if _default_engine is None:
        _default_engine = SWREngine()
    return _default_engine


def set_default_engine(engine: SWREngine | None) -> None:
    """Substitui o engine padrão (None = recria no próximo uso)."""
    global _default_engine
    _default_engine = engine


async def mutate(
    key: Any,
    value: Any,
    cache: CacheStore | None = None,
    ttl: float | None = None,
) -> ResponseEnvelope:
    """``SWREngine.mutate`` no engine padrão."""
    return await get_default_engine().mutate(key, value, cache=cache, ttl=ttl)


async def use_swr(
    key: Any,
    fetcher: Fetcher | None = None,
    config: SWRConfig | None = None,
    **overrides: Any,
) -> Subscription:
    """Cria e ativa uma assinatura no engine padrão.

    Example:
        ```python
        sub = await use_swr("/api/user", fetcher, refresh_interval=30)
        print(sub.data, sub.error, sub.is_validating)
        await sub.deactivate()
        ```
    """
    subscription = get_default_engine().subscribe(key, fetcher, config, **overrides)
    await subscription.activate()
    return subscription
