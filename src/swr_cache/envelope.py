"""Envelope de resposta guardado no cache de dados."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ResponseEnvelope:
    """Último resultado conhecido de uma chave.

    Attributes:
        data: Dado (None = indefinido)
        error: Erro da última revalidação (None = sem erro)
        is_validating: Há revalidação em andamento
    """

    data: Any = None
    error: BaseException | None = None
    is_validating: bool = False
