"""Registro de assinantes por chave e fan-out de resultados."""

import itertools
import logging
from collections.abc import Callable
from typing import Any

from .constants import SUBSCRIBER_GRACE_PERIOD
from .expiring_cache import ExpiringCache

logger = logging.getLogger(__name__)

SlotListener = Callable[["StateSlot"], None]

_UNSET = object()


class StateSlot:
    """Estado visível de um consumidor.

    Pertence ao consumidor; o registro só guarda uma referência para
    publicar atualizações. A camada de binding reativo observa mudanças
    via ``add_listener``.

    Attributes:
        data: Último dado conhecido (None = ainda sem dado)
        error: Último erro de revalidação (None = sem erro)
        is_validating: Há revalidação em andamento
        key: Chave serializada que o consumidor acompanha agora
    """

    __slots__ = ("data", "error", "is_validating", "key", "_listeners")

    def __init__(self) -> None:
        self.data: Any = None
        self.error: BaseException | None = None
        self.is_validating = True
        self.key: str | None = None
        self._listeners: list[SlotListener] = []

    def add_listener(self, listener: SlotListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SlotListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def update(self, data: Any = _UNSET, error: Any = _UNSET, is_validating: Any = _UNSET) -> bool:
        """Atualiza campos e notifica listeners se algo mudou.

        Campos omitidos não são alterados.

        Returns:
            True se algum campo mudou
        """
        changed = False
        if data is not _UNSET and data is not self.data:
            self.data = data
            changed = True
        if error is not _UNSET and error is not self.error:
            self.error = error
            changed = True
        if is_validating is not _UNSET and is_validating != self.is_validating:
            self.is_validating = is_validating
            changed = True

        if changed:
            self._notify()
        return changed

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                # Listener com erro não pode quebrar o fan-out
                logger.warning(f"Erro em listener do slot {self.key!r}: {e}")

    def __repr__(self) -> str:
        return (
            f"StateSlot(key={self.key!r}, data={self.data!r}, "
            f"error={self.error!r}, is_validating={self.is_validating})"
        )


class SubscriberRegistry(ExpiringCache[dict[int, StateSlot]]):
    """Slots vivos por chave, endereçados por handles estáveis.

    Cada ``add`` devolve um handle inteiro; a desmontagem remove o handle
    em vez de filtrar uma lista compartilhada. A entrada de cada chave vive
    ``SUBSCRIBER_GRACE_PERIOD`` segundos além do TTL dos dados, para não
    sumir no instante em que um novo consumidor monta.
    """

    def __init__(self, grace_period: float = SUBSCRIBER_GRACE_PERIOD, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._grace_period = grace_period
        self._handles = itertools.count(1)

    def add(self, key: str, slot: StateSlot, ttl: float = 0) -> int:
        """Registra slot na chave.

        Args:
            key: Chave serializada
            slot: Slot do consumidor
            ttl: TTL dos dados da chave (0 = para sempre)

        Returns:
            Handle para ``remove``
        """
        handle = next(self._handles)
        entry = self.get(key)
        if entry is not None:
            entry.value[handle] = slot
        else:
            self.set(key, {handle: slot}, ttl + self._grace_period if ttl > 0 else 0)
        logger.debug(f"Slot {handle} registrado em: {key}")
        return handle

    def remove(self, key: str, handle: int) -> bool:
        """Remove slot pelo handle.

        Returns:
            True se o handle estava registrado na chave
        """
        entry = self.get(key)
        if entry is None or handle not in entry.value:
            return False
        del entry.value[handle]
        if not entry.value:
            self.delete(key)
        logger.debug(f"Slot {handle} removido de: {key}")
        return True

    def has_handle(self, key: str, handle: int) -> bool:
        entry = self.get(key)
        return entry is not None and handle in entry.value

    def slots_for(self, key: str) -> list[StateSlot]:
        """Slots registrados na chave (cópia)."""
        entry = self.get(key)
        return list(entry.value.values()) if entry is not None else []

    def publish(self, key: str, data: Any, error: BaseException | None) -> int:
        """Publica resultado para os slots da chave.

        Só atualiza slots cuja chave atual ainda é ``key``: um fetch antigo
        não pode sobrescrever um slot que já acompanha outra chave. ``data``
        None não apaga o dado anterior do slot.

        Returns:
            Número de slots atualizados
        """
        slots = [slot for slot in self.slots_for(key) if slot.key == key]
        for slot in slots:
            if data is not None:
                slot.update(data=data, error=error, is_validating=False)
            else:
                slot.update(error=error, is_validating=False)
        return len(slots)
