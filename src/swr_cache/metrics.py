"""Métricas do engine usando OpenTelemetry."""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from threading import Lock
from typing import Any

from opentelemetry import metrics as otel_metrics

logger = logging.getLogger(__name__)


class NoOpMetrics:
    """Coletor de métricas que não faz nada (default)."""

    def record_hit(self, key: str) -> None:
        pass

    def record_miss(self, key: str) -> None:
        pass

    def record_fetch(self, key: str, latency: float) -> None:
        pass

    def record_dedupe(self, key: str) -> None:
        pass

    def record_retry(self, key: str, attempt: int) -> None:
        pass

    def record_error(self, key: str, error: BaseException) -> None:
        pass


@dataclass
class KeyStats:
    """Estatísticas para uma chave específica."""

    hits: int = 0
    misses: int = 0
    fetches: int = 0
    dedupes: int = 0
    retries: int = 0
    errors: int = 0
    total_fetch_latency: float = 0.0

    @property
    def total_revalidations(self) -> int:
        return self.hits + self.misses

    @property
    def hit_ratio(self) -> float:
        total = self.total_revalidations
        return self.hits / total if total > 0 else 0.0

    @property
    def avg_fetch_latency_ms(self) -> float:
        return (self.total_fetch_latency / self.fetches * 1000) if self.fetches > 0 else 0.0


@dataclass
class EngineStats:
    """Estatísticas agregadas do engine."""

    hits: int = 0
    misses: int = 0
    fetches: int = 0
    dedupes: int = 0
    retries: int = 0
    errors: int = 0
    fetch_latencies: list[float] = field(default_factory=list)

    @property
    def total_revalidations(self) -> int:
        return self.hits + self.misses

    @property
    def hit_ratio(self) -> float:
        total = self.total_revalidations
        return self.hits / total if total > 0 else 0.0

    @property
    def avg_fetch_latency_ms(self) -> float:
        if not self.fetch_latencies:
            return 0.0
        return sum(self.fetch_latencies) / len(self.fetch_latencies) * 1000


class OpenTelemetryMetrics:
    """Coletor de métricas usando OpenTelemetry.

    Métricas exportadas:
    - swr.hits (counter): Revalidações servidas do cache
    - swr.misses (counter): Revalidações sem dado em cache
    - swr.fetches (counter): Fetches concluídos
    - swr.dedupes (counter): Fetches evitados por deduplicação
    - swr.retries (counter): Retries agendados
    - swr.errors (counter): Erros
    - swr.fetch.latency (histogram): Duração dos fetches em segundos

    Example:
        ```python
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry import metrics

        metrics.set_meter_provider(MeterProvider())

        engine = SWREngine(metrics=OpenTelemetryMetrics())
        ```
    """

    def __init__(self, meter_name: str = "swr_cache") -> None:
        """Inicializa métricas OpenTelemetry.

        Args:
            meter_name: Nome do meter para agrupar métricas
        """
        meter = otel_metrics.get_meter(meter_name)

        # Counters
        self._hits_counter = meter.create_counter("swr.hits", description="Revalidações servidas do cache", unit="1")
        self._misses_counter = meter.create_counter("swr.misses", description="Revalidações sem cache", unit="1")
        self._fetches_counter = meter.create_counter("swr.fetches", description="Fetches concluídos", unit="1")
        self._dedupes_counter = meter.create_counter(
            "swr.dedupes",
            description="Fetches evitados por deduplicação",
            unit="1",
        )
        self._retries_counter = meter.create_counter("swr.retries", description="Retries agendados", unit="1")
        self._errors_counter = meter.create_counter("swr.errors", description="Erros de revalidação", unit="1")

        # Histograms
        self._latency_histogram = meter.create_histogram(
            "swr.fetch.latency",
            description="Duração dos fetches",
            unit="s",
        )

    def record_hit(self, key: str) -> None:
        self._hits_counter.add(1, {"key": key})

    def record_miss(self, key: str) -> None:
        self._misses_counter.add(1, {"key": key})

    def record_fetch(self, key: str, latency: float) -> None:
        self._fetches_counter.add(1, {"key": key})
        self._latency_histogram.record(latency, {"key": key})

    def record_dedupe(self, key: str) -> None:
        self._dedupes_counter.add(1, {"key": key})

    def record_retry(self, key: str, attempt: int) -> None:
        self._retries_counter.add(1, {"key": key, "attempt": attempt})

    def record_error(self, key: str, error: BaseException) -> None:
        self._errors_counter.add(1, {"key": key, "error_type": type(error).__name__})


class InMemoryMetrics:
    """Coletor de métricas em memória com estatísticas por chave.

    Útil para desenvolvimento, testes e análise detalhada.

    Attributes:
        max_samples: Máximo de amostras de latência mantidas
    """

    def __init__(self, max_samples: int = 1000) -> None:
        self._max_samples = max_samples
        self._lock = Lock()
        self._overall = EngineStats()
        self._by_key: dict[str, KeyStats] = defaultdict(KeyStats)

    def record_hit(self, key: str) -> None:
        with self._lock:
            self._overall.hits += 1
            self._by_key[key].hits += 1

    def record_miss(self, key: str) -> None:
        with self._lock:
            self._overall.misses += 1
            self._by_key[key].misses += 1

    def record_fetch(self, key: str, latency: float) -> None:
        with self._lock:
            self._overall.fetches += 1
            self._overall.fetch_latencies.append(latency)
            self._trim_samples(self._overall.fetch_latencies)

            self._by_key[key].fetches += 1
            self._by_key[key].total_fetch_latency += latency

    def record_dedupe(self, key: str) -> None:
        with self._lock:
            self._overall.dedupes += 1
            self._by_key[key].dedupes += 1

    def record_retry(self, key: str, attempt: int) -> None:
        with self._lock:
            self._overall.retries += 1
            self._by_key[key].retries += 1

    def record_error(self, key: str, error: BaseException) -> None:
        with self._lock:
            self._overall.errors += 1
            self._by_key[key].errors += 1

    def _trim_samples(self, samples: list[Any]) -> None:
        """Remove amostras antigas se exceder limite."""
        if len(samples) > self._max_samples:
            del samples[: len(samples) - self._max_samples]

    def get_stats(self) -> EngineStats:
        """Retorna estatísticas agregadas."""
        with self._lock:
            return EngineStats(
                hits=self._overall.hits,
                misses=self._overall.misses,
                fetches=self._overall.fetches,
                dedupes=self._overall.dedupes,
                retries=self._overall.retries,
                errors=self._overall.errors,
                fetch_latencies=self._overall.fetch_latencies.copy(),
            )

    def get_key_stats(self, key: str) -> KeyStats | None:
        """Retorna estatísticas de uma chave específica."""
        with self._lock:
            if key not in self._by_key:
                return None
            stats = self._by_key[key]
            return KeyStats(**vars(stats))

    def get_top_keys(self, by: str = "fetches", limit: int = 10) -> list[tuple[str, int]]:
        """Retorna as chaves mais ativas.

        Args:
            by: Critério de ordenação (hits, misses, fetches, dedupes, retries, errors)
            limit: Número máximo de chaves a retornar
        """
        with self._lock:
            items = [(key, getattr(stats, by)) for key, stats in self._by_key.items()]
            items.sort(key=lambda x: x[1], reverse=True)
            return items[:limit]

    def reset(self) -> None:
        """Reseta todas as estatísticas."""
        with self._lock:
            self._overall = EngineStats()
            self._by_key.clear()


class SafeMetrics:
    """Envolve um coletor para que falhas nele nunca quebrem o engine."""

    def __init__(self, inner: Any) -> None:
        self._inner = inner

    @property
    def inner(self) -> Any:
        return self._inner

    def __getattr__(self, name: str) -> Any:
        method = getattr(self._inner, name)

        def call(*args: Any) -> None:
            try:
                method(*args)
            except Exception as e:
                logger.warning(f"Erro no coletor de métricas em {name}: {e}")

        return call
