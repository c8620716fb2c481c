"""Deduplicação de fetches em andamento (thundering herd protection)."""

import asyncio
import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .expiring_cache import ExpiringCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingOperation:
    """Fetch em andamento compartilhado por todas as revalidações da chave."""

    future: "asyncio.Future[Any]"
    started_at: float


class PromiseDedupeRegistry(ExpiringCache[PendingOperation]):
    """Registro de fetches em andamento, por chave.

    Quando várias revalidações concorrentes pedem a mesma chave dentro da
    janela de deduplicação, apenas um fetch é executado e todas aguardam
    o mesmo future.

    As entradas vivem no máximo ``dedupe_interval`` segundos; quem iniciou
    o fetch libera a entrada depois de gravar o resultado (``release``).

    Exemplo:
        ```python
        registry = PromiseDedupeRegistry()

        async def fetch_user(user_id):
            await asyncio.sleep(1)
            return {"id": user_id}

        # Apenas o primeiro start dispara o fetcher
        future, started = registry.start("user:1", fetch_user, ("user:1",), 2.0)
        same, started_again = registry.start("user:1", fetch_user, ("user:1",), 2.0)
        assert same is future and not started_again
        ```
    """

    def start(
        self,
        key: str,
        fetcher: Callable[..., Any],
        args: tuple[Any, ...],
        dedupe_interval: float,
    ) -> "tuple[asyncio.Future[Any], bool]":
        """Obtém o fetch em andamento ou inicia um novo.

        Args:
            key: Chave serializada
            fetcher: Função que busca o recurso (sync ou async)
            args: Argumentos originais da chave
            dedupe_interval: Janela de deduplicação em segundos

        Returns:
            Tupla (future, started), onde started indica se esta chamada
            disparou o fetcher
        """
        pending = self.get(key)
        if pending is not None:
            operation = pending.value
            logger.debug(f"Aguardando fetch existente para: {key} (iniciado há {self.age(operation):.3f}s)")
            return operation.future, False

        logger.debug(f"Iniciando fetch para: {key}")
        future = _invoke(fetcher, args)
        # Janela 0 usa o TTL padrão (para sempre): a entrada vive até o release
        self.set(key, PendingOperation(future=future, started_at=self.now()), dedupe_interval)
        return future, True

    def age(self, operation: PendingOperation) -> float:
        """Segundos desde o início do fetch, no relógio do registro."""
        return self.now() - operation.started_at

    def release(self, key: str, future: "asyncio.Future[Any]") -> bool:
        """Remove a entrada da chave se ainda for o mesmo fetch.

        Chamado depois que o resultado foi gravado, para que o próximo
        tick possa buscar de novo. Um fetch mais novo registrado na mesma
        chave é preservado.

        Returns:
            True se a entrada foi removida
        """
        pending = self._load(key)
        if pending is None or pending.value.future is not future:
            return False
        self.delete(key)
        return True

    def is_pending(self, key: str) -> bool:
        """Verifica se há fetch em andamento para a chave."""
        pending = self.get(key)
        return pending is not None and not pending.value.future.done()

    def pending_count(self) -> int:
        """Retorna número de fetches em andamento."""
        return sum(1 for key in self.keys() if self.is_pending(key))

    def cancel_all(self) -> int:
        """Cancela fetches em andamento e limpa o registro.

        Returns:
            Número de fetches cancelados
        """
        count = 0
        for key in self.keys():
            pending = self._load(key)
            if pending is not None and not pending.value.future.done():
                pending.value.future.cancel()
                count += 1
        self.clear()
        return count


def _invoke(fetcher: Callable[..., Any], args: tuple[Any, ...]) -> "asyncio.Future[Any]":
    """Chama o fetcher e adapta o resultado (valor, awaitable ou exceção) em future."""
    loop = asyncio.get_running_loop()
    try:
        result = fetcher(*args)
    except Exception as e:
        future = loop.create_future()
        future.set_exception(e)
        return future

    if inspect.isawaitable(result):
        return asyncio.ensure_future(result)

    future = loop.create_future()
    future.set_result(result)
    return future
