"""Serialização determinística de chaves de recurso."""

import hashlib
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .constants import ARGS_KEY_PREFIX

logger = logging.getLogger(__name__)

# Chave vazia = recurso inativo (nunca busca, nunca acerta o cache)
INACTIVE_KEY = ""


@dataclass(frozen=True)
class ResolvedKey:
    """Chave resolvida.

    Attributes:
        serialized: Identidade estável usada pelos caches
        args: Argumentos originais (não hasheados) repassados ao fetcher
    """

    serialized: str
    args: tuple[Any, ...] = ()

    @property
    def is_active(self) -> bool:
        return bool(self.serialized)


INACTIVE = ResolvedKey(INACTIVE_KEY)


def resolve_key(key: Any) -> ResolvedKey:
    """Resolve uma chave heterogênea.

    Aceita:
    - str: usada como está
    - None / "": chave inativa
    - list / tuple: lista de argumentos, hasheada; os elementos originais
      são preservados em ``args``
    - callable sem argumentos: avaliado agora; se lançar exceção a
      dependência ainda não está pronta e a chave fica inativa
    - qualquer outro valor: ``str(value)``

    Args:
        key: Chave a resolver

    Returns:
        ResolvedKey com a chave serializada e os argumentos do fetcher
    """
    if callable(key):
        key = _call_key_function(key)

    if key is None or key == "":
        return INACTIVE

    if isinstance(key, (list, tuple)):
        if not key:
            return INACTIVE
        return ResolvedKey(f"{ARGS_KEY_PREFIX}:{hash_arguments(key)}", tuple(key))

    return ResolvedKey(str(key), (key,))


def serialize_key(key: Any) -> str:
    """Serializa uma chave para a string usada pelos caches."""
    return resolve_key(key).serialized


def _call_key_function(key_func: Callable[[], Any]) -> Any:
    """Avalia chave computada; falha significa dependência não pronta."""
    try:
        return key_func()
    except Exception as e:
        logger.debug(f"Chave computada indisponível: {e!r}")
        return None


def hash_arguments(args: list[Any] | tuple[Any, ...]) -> str:
    """Calcula hash SHA256 da lista de argumentos.

    O hash cobre valor e forma: ``["a", {"x": 1}]`` e ``["a", "{'x': 1}"]``
    produzem hashes diferentes.
    """
    serialized = json.dumps(_normalize(list(args)), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(serialized.encode()).hexdigest()[:16]


def _normalize(obj: Any) -> Any:
    """Normaliza objeto para JSON preservando o tipo."""
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, bytes):
        return {"__bytes__": obj.hex()}
    if isinstance(obj, (list, tuple)):
        return [_normalize(item) for item in obj]
    if isinstance(obj, dict):
        return {"__dict__": sorted(([_normalize(k), _normalize(v)] for k, v in obj.items()), key=repr)}
    if isinstance(obj, (set, frozenset)):
        # Ordena pela representação para suportar tipos mistos
        return {"__set__": sorted((_normalize(item) for item in obj), key=repr)}
    # Para outros tipos, usa tipo + representação
    return {"__object__": f"{type(obj).__module__}.{type(obj).__qualname__}", "repr": repr(obj)}
