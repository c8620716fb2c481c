"""
Configuração do engine.

Estrutura explícita com valores padrão, validada uma única vez na entrada
da chamada. Precedência dos valores numéricos:

1. Parâmetro explícito (maior precedência)
2. Variável de ambiente
3. Valor padrão (menor precedência)
"""

import os
from collections.abc import Callable
from dataclasses import dataclass, field, fields, replace
from typing import Any

from .constants import (
    DEFAULT_DEDUPE_INTERVAL,
    DEFAULT_ERROR_RETRY_COUNT,
    DEFAULT_ERROR_RETRY_INTERVAL,
    DEFAULT_REFRESH_INTERVAL,
    DEFAULT_REVALIDATE_DEBOUNCE,
    DEFAULT_TTL,
    ENV_DEDUPE_INTERVAL,
    ENV_ERROR_RETRY_COUNT,
    ENV_ERROR_RETRY_INTERVAL,
    ENV_TTL,
    ERROR_ENV_INVALID,
    ERROR_UNKNOWN_OPTION,
)
from .exceptions import ValidationError
from .presets import always_online, always_visible
from .protocols import CacheStore
from .validators import validate_config_parameters


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError as e:
        raise ValidationError(ERROR_ENV_INVALID.format(name=name, value=value)) from e


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ValidationError(ERROR_ENV_INVALID.format(name=name, value=value)) from e


@dataclass(frozen=True)
class SWRConfig:
    """Políticas de revalidação.

    Todas as durações em segundos.

    Attributes:
        refresh_interval: Intervalo de polling enquanto ativo (0 = sem polling)
        ttl: TTL da entrada no cache de dados (0 = para sempre)
        dedupe_interval: Janela em que fetches da mesma chave são colapsados
        revalidate_on_focus: Revalida em sinais de foco/visibilidade
        revalidate_debounce: Atraso do fetch quando há dado stale (0 = sem debounce)
        should_retry_on_error: Agenda retries após erro
        error_retry_interval: Intervalo base do backoff linear
        error_retry_count: Máximo de retries automáticos
        compare: Igualdade customizada (default: ``==``)
        is_online: Probe de conectividade
        is_visible: Probe de visibilidade do documento/app
        cache: Cache de dados alternativo (default: o do engine)
    """

    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    ttl: float = field(default_factory=lambda: _env_float(ENV_TTL, DEFAULT_TTL))
    dedupe_interval: float = field(default_factory=lambda: _env_float(ENV_DEDUPE_INTERVAL, DEFAULT_DEDUPE_INTERVAL))
    revalidate_on_focus: bool = True
    revalidate_debounce: float = DEFAULT_REVALIDATE_DEBOUNCE
    should_retry_on_error: bool = True
    error_retry_interval: float = field(
        default_factory=lambda: _env_float(ENV_ERROR_RETRY_INTERVAL, DEFAULT_ERROR_RETRY_INTERVAL)
    )
    error_retry_count: int = field(default_factory=lambda: _env_int(ENV_ERROR_RETRY_COUNT, DEFAULT_ERROR_RETRY_COUNT))
    compare: Callable[[Any, Any], bool] | None = None
    is_online: Callable[[], bool] = always_online
    is_visible: Callable[[], bool] = always_visible
    cache: CacheStore | None = None

    def __post_init__(self) -> None:
        validate_config_parameters({f.name: getattr(self, f.name) for f in fields(self)})

    def merge(self, **overrides: Any) -> "SWRConfig":
        """Cria nova configuração com os valores informados.

        Valores None são ignorados, o que permite repassar parâmetros
        opcionais diretamente.

        Raises:
            ValidationError: Se alguma opção for desconhecida ou inválida
        """
        known = {f.name for f in fields(self)}
        for name in overrides:
            if name not in known:
                raise ValidationError(ERROR_UNKNOWN_OPTION.format(name=name))

        changes = {name: value for name, value in overrides.items() if value is not None}
        if not changes:
            return self
        return replace(self, **changes)

    def values_equal(self, old: Any, new: Any) -> bool:
        """Compara dados usando ``compare`` ou ``==``."""
        if self.compare is not None:
            return bool(self.compare(old, new))
        return bool(old == new)


def resolve_config(config: SWRConfig | None = None, **overrides: Any) -> SWRConfig:
    """Resolve configuração final de uma chamada.

    Args:
        config: Configuração base (default: ``SWRConfig()``)
        **overrides: Opções explícitas

    Returns:
        Configuração validada
    """
    return (config or SWRConfig()).merge(**overrides)
