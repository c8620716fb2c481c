"""Retry com backoff linear após revalidação com erro."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any

from .config import SWRConfig
from .metrics import NoOpMetrics

logger = logging.getLogger(__name__)

RevalidateFn = Callable[..., Awaitable[Any]]
Spawn = Callable[[Coroutine[Any, Any, Any]], "asyncio.Task[Any]"]


class RetryScheduler:
    """Agenda retries limitados com atraso crescente.

    Atraso = ``min(attempt, error_retry_count) * error_retry_interval``
    (linear, não exponencial). Para ``error_retry_interval = I`` e
    ``error_retry_count = N`` a sequência é ``I, 2I, ..., NI``; depois
    disso os retries param até uma nova revalidação manual.
    """

    def __init__(self, spawn: Spawn | None = None, metrics: Any = None) -> None:
        """Inicializa o scheduler.

        Args:
            spawn: Cria a task de fundo (default: ``asyncio.ensure_future``)
            metrics: Coletor de métricas
        """
        self._spawn = spawn or asyncio.ensure_future
        self._metrics = metrics or NoOpMetrics()

    @staticmethod
    def compute_delay(attempt: int, config: SWRConfig) -> float:
        """Atraso em segundos para a tentativa ``attempt`` (a partir de 1)."""
        return min(attempt, config.error_retry_count) * config.error_retry_interval

    def should_retry(self, attempt: int, config: SWRConfig) -> bool:
        if not config.should_retry_on_error:
            return False
        if not config.is_visible():
            return False
        return attempt <= config.error_retry_count

    def schedule_retry(
        self,
        revalidate_fn: RevalidateFn,
        attempt: int,
        config: SWRConfig,
        key: str = "",
    ) -> "asyncio.Task[Any] | None":
        """Agenda nova revalidação forçada.

        Args:
            revalidate_fn: Revalidação do consumidor; recebe
                ``error_retry_count=attempt + 1`` e ``force_revalidate=True``
            attempt: Número da tentativa que acabou de falhar (a partir de 1)
            config: Política de retry
            key: Chave, para logs e métricas

        Returns:
            Task agendada ou None se o retry não se aplica
        """
        if not self.should_retry(attempt, config):
            logger.debug(f"Retry não agendado para {key} (tentativa {attempt})")
            return None

        delay = self.compute_delay(attempt, config)
        logger.debug(f"Retry {attempt} agendado para {key} em {delay:.3f}s")
        self._metrics.record_retry(key, attempt)
        return self._spawn(self._run(revalidate_fn, attempt, delay))

    async def _run(self, revalidate_fn: RevalidateFn, attempt: int, delay: float) -> None:
        await asyncio.sleep(delay)
        await revalidate_fn(error_retry_count=attempt + 1, force_revalidate=True)
