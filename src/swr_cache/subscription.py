"""Assinatura de um consumidor: coordenação da revalidação por chave."""

import asyncio
import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from .config import SWRConfig
from .envelope import ResponseEnvelope
from .keys import INACTIVE, ResolvedKey, resolve_key
from .protocols import CacheStore
from .subscribers import StateSlot

if TYPE_CHECKING:
    from .engine import SWREngine

logger = logging.getLogger(__name__)


class Subscription:
    """Um consumidor ligado a uma chave.

    Expõe o ``StateSlot`` do consumidor e a fronteira com a camada de
    binding: ``activate``/``deactivate`` (montagem/desmontagem),
    ``set_key`` (observação da chave), ``on_focus`` (sinais de foco e
    visibilidade) e ``mutate`` (revalidação forçada).

    Cada gatilho (ativação, troca de chave, polling, foco, retry, mutate)
    reentra em ``revalidate``:

    1. Resolve a chave; chave inativa encerra sem buscar.
    2. Publica no slot o envelope em cache, mesmo stale.
    3. Não busca sem fetcher, com app oculto (exceto no primeiro fetch) ou
       com ``force_revalidate=False``.
    4. Não busca se a entrada foi criada há menos de ``dedupe_interval``,
       salvo revalidação forçada.
    5. Com dado stale e ``revalidate_debounce``, adia o fetch.
    6. Busca através do registro de fetches em andamento.
    7. Grava via ``engine.mutate`` (fan-out filtrado pela chave atual) e,
       em caso de erro, agenda retry.
    8. Libera a entrada do fetch em andamento.

    Example:
        ```python
        async with engine.subscribe(["/users", 1], fetch_user) as sub:
            sub.slot.add_listener(lambda slot: render(slot.data))
            await sub.set_key(["/users", 2])
        ```
    """

    def __init__(
        self,
        engine: "SWREngine",
        key: Any,
        fetcher: Callable[..., Any] | None,
        config: SWRConfig,
    ) -> None:
        self._engine = engine
        self._key_source = key
        self._fetcher = fetcher
        self._config = config
        self._slot = StateSlot()
        self._resolved: ResolvedKey = INACTIVE
        self._handle: int | None = None
        self._active = False
        self._poll_task: asyncio.Task[Any] | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    # ========== Estado ==========

    @property
    def slot(self) -> StateSlot:
        return self._slot

    @property
    def data(self) -> Any:
        return self._slot.data

    @property
    def error(self) -> BaseException | None:
        return self._slot.error

    @property
    def is_validating(self) -> bool:
        return self._slot.is_validating

    @property
    def key(self) -> str | None:
        """Chave serializada atual (None se inativa)."""
        return self._slot.key

    @property
    def config(self) -> SWRConfig:
        return self._config

    @property
    def active(self) -> bool:
        return self._active

    @property
    def cache(self) -> CacheStore:
        return self._config.cache if self._config.cache is not None else self._engine.cache

    # ========== Ciclo de vida ==========

    async def activate(self) -> None:
        """Monta o consumidor: registra o slot, inicia polling e revalida."""
        if self._active:
            return

        self._active = True
        self._engine._attach(self)
        self._bind_key(resolve_key(self._key_source))

        if self._config.refresh_interval:
            self._poll_task = self._engine.spawn(self._poll())

        if self._resolved.is_active:
            await self.revalidate()

    async def deactivate(self) -> None:
        """Desmonta o consumidor.

        Para o polling, cancela debounces e retries pendentes e remove o
        slot do registro. Fetches em andamento continuam e gravam no cache
        de dados compartilhado.
        """
        if not self._active:
            return

        self._active = False
        self._engine._detach(self)
        tasks = [task for task in (self._poll_task, *self._tasks) if task is not None and not task.done()]
        for task in tasks:
            task.cancel()
        self._poll_task = None
        self._tasks.clear()
        self._unregister()
        logger.debug(f"Assinatura desativada: {self._resolved.serialized}")

    async def set_key(self, key: Any) -> None:
        """Troca a chave acompanhada e revalida se ativo."""
        self._key_source = key
        self._bind_key(resolve_key(key))
        if self._active and self._resolved.is_active:
            await self.revalidate()

    async def on_focus(self) -> None:
        """Sinal de foco ou mudança de visibilidade."""
        if self._active and self._config.revalidate_on_focus:
            await self.revalidate(should_retry_on_error=False)

    async def mutate(self, fetcher: Callable[..., Any] | None = None) -> None:
        """Revalidação forçada, opcionalmente com outro fetcher."""
        await self.revalidate(fetcher, force_revalidate=True)

    async def __aenter__(self) -> "Subscription":
        await self.activate()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.deactivate()

    # ========== Registro ==========

    def _bind_key(self, resolved: ResolvedKey) -> None:
        self._unregister()
        self._resolved = resolved
        self._slot.key = resolved.serialized or None
        self._slot.update(is_validating=resolved.is_active)
        self._register()

    def _register(self) -> None:
        if not self._active or not self._resolved.is_active:
            return
        subscribers = self._engine.subscribers
        key = self._resolved.serialized
        if self._handle is None or not subscribers.has_handle(key, self._handle):
            self._handle = subscribers.add(key, self._slot, self._config.ttl)

    def _unregister(self) -> None:
        if self._handle is not None:
            self._engine.subscribers.remove(self._resolved.serialized, self._handle)
            self._handle = None

    def _track(self, task: "asyncio.Task[Any] | None") -> None:
        if task is not None:
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    # ========== Revalidação ==========

    async def revalidate(
        self,
        fetcher: Callable[..., Any] | None = None,
        *,
        force_revalidate: bool | None = None,
        should_retry_on_error: bool | None = None,
        error_retry_count: int | None = None,
    ) -> None:
        """Revalida a chave atual.

        Args:
            fetcher: Fetcher desta chamada (default: o da assinatura)
            force_revalidate: True ignora a janela de deduplicação;
                False desliga o fetch desta chamada
            should_retry_on_error: False desliga retry para esta chamada
            error_retry_count: Número da tentativa (usado pelos retries)
        """
        slot = self._slot
        is_first_fetch = slot.data is None

        if callable(self._key_source):
            resolved = resolve_key(self._key_source)
            if resolved != self._resolved:
                self._bind_key(resolved)

        resolved = self._resolved
        if not resolved.is_active:
            slot.update(is_validating=False)
            return

        key = resolved.serialized
        self._register()
        metrics = self._engine.metrics
        cache = self.cache
        entry = cache.get(key)
        cached: ResponseEnvelope | None = entry.value if entry is not None else None

        if cached is not None:
            metrics.record_hit(key)
            changes: dict[str, Any] = {"error": cached.error, "is_validating": True}
            if cached.data is not None:
                changes["data"] = cached.data
            slot.update(**changes)
        else:
            metrics.record_miss(key)
            slot.update(is_validating=True)

        fetch = fetcher or self._fetcher
        if (
            fetch is None
            or (not self._config.is_visible() and not is_first_fetch)
            or force_revalidate is False
        ):
            slot.update(is_validating=False)
            return

        if entry is not None and not force_revalidate:
            if cache.now() - entry.created_at < self._config.dedupe_interval:
                logger.debug(f"Dado recente em cache, fetch ignorado: {key}")
                metrics.record_dedupe(key)
                slot.update(is_validating=False)
                return

        if cached is not None and self._config.revalidate_debounce:
            self._track(
                self._engine.spawn(self._debounced(resolved, fetch, should_retry_on_error, error_retry_count))
            )
            return

        await self._trigger(resolved, fetch, should_retry_on_error, error_retry_count)

    async def _debounced(
        self,
        resolved: ResolvedKey,
        fetch: Callable[..., Any],
        should_retry_on_error: bool | None,
        error_retry_count: int | None,
    ) -> None:
        await asyncio.sleep(self._config.revalidate_debounce)
        if not self._active:
            return
        await self._trigger(resolved, fetch, should_retry_on_error, error_retry_count)

    async def _trigger(
        self,
        resolved: ResolvedKey,
        fetch: Callable[..., Any],
        should_retry_on_error: bool | None,
        error_retry_count: int | None,
    ) -> None:
        # O commit roda em task do engine: cancelar esta revalidação não o cancela
        commit = self._engine.spawn(self._fetch_and_commit(resolved, fetch))
        envelope = await asyncio.shield(commit)

        key = resolved.serialized
        if self._slot.key != key:
            return
        self._slot.update(is_validating=False)

        if envelope.error is None:
            return

        retry_enabled = (
            self._active
            and self._config.should_retry_on_error
            and should_retry_on_error is not False
        )
        if retry_enabled:
            self._track(
                self._engine.retry.schedule_retry(
                    self._retry_revalidate,
                    error_retry_count or 1,
                    self._config,
                    key,
                )
            )

    async def _fetch_and_commit(self, resolved: ResolvedKey, fetch: Callable[..., Any]) -> ResponseEnvelope:
        key = resolved.serialized
        promises = self._engine.promises
        metrics = self._engine.metrics

        start_time = time.perf_counter()
        future, started = promises.start(key, fetch, resolved.args, self._config.dedupe_interval)
        if not started:
            metrics.record_dedupe(key)

        try:
            envelope = await self._engine.mutate(
                key,
                asyncio.shield(future),
                cache=self.cache,
                ttl=self._config.ttl,
                config=self._config,
            )
        finally:
            promises.release(key, future)

        if envelope.error is not None:
            logger.debug(f"Fetch falhou para {key}: {envelope.error!r}")
            metrics.record_error(key, envelope.error)
        elif started:
            metrics.record_fetch(key, time.perf_counter() - start_time)
        return envelope

    async def _retry_revalidate(self, **kwargs: Any) -> None:
        if self._active:
            await self.revalidate(**kwargs)

    async def _poll(self) -> None:
        interval = self._config.refresh_interval
        while self._active:
            await asyncio.sleep(interval)
            if not self._active:
                break
            # Com erro, o polling espera o retry resolver
            if self._slot.error is None and self._config.is_online():
                await self.revalidate()

    def __repr__(self) -> str:
        return f"Subscription(key={self.key!r}, active={self._active})"
