"""Exceções do swr-cache."""


class SWRError(Exception):
    """Erro base do engine."""

    def __init__(self, message: str, key: str | None = None) -> None:
        self.key = key
        super().__init__(message)


class SWRSerializationError(SWRError):
    """Erro de serialização/deserialização de entradas do cache."""

    pass


class ValidationError(SWRError, ValueError):
    """Parâmetro de configuração inválido."""

    pass
