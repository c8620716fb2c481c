"""Serialização de entradas de cache usando MsgPack."""

from typing import Any, Protocol

import msgpack

from .envelope import ResponseEnvelope
from .exceptions import SWRError, SWRSerializationError

# ExtType do envelope de resposta
ENVELOPE_EXT_CODE = 1


class Serializer(Protocol):
    """Protocol para serializers customizados."""

    def serialize(self, data: Any) -> bytes:
        """Serializa dados Python para bytes."""
        ...

    def deserialize(self, data: bytes) -> Any:
        """Deserializa bytes para dados Python."""
        ...


class MsgPackSerializer:
    """Serializer usando MessagePack.

    Além dos tipos nativos (None, bool, int, float, str, bytes, list,
    dict), codifica ``ResponseEnvelope`` como ExtType. O erro do envelope
    é gravado como texto e volta como ``SWRError``, já que exceções não
    são serializáveis de forma portável.
    """

    def serialize(self, data: Any) -> bytes:
        """Serializa dados Python para bytes MsgPack.

        Raises:
            SWRSerializationError: Se falhar ao serializar
        """
        try:
            result = msgpack.packb(data, use_bin_type=True, default=self._encode_ext)
            if result is None:
                raise SWRSerializationError("msgpack.packb retornou None")
            return result
        except (TypeError, ValueError, OverflowError) as e:
            raise SWRSerializationError(f"Falha ao serializar dados: {e}") from e

    def deserialize(self, data: bytes) -> Any:
        """Deserializa bytes MsgPack para dados Python.

        Raises:
            SWRSerializationError: Se falhar ao deserializar
        """
        try:
            return msgpack.unpackb(data, raw=False, strict_map_key=False, ext_hook=self._decode_ext)
        except (msgpack.UnpackException, ValueError, TypeError) as e:
            raise SWRSerializationError(f"Falha ao deserializar dados: {e}") from e

    def _encode_ext(self, obj: Any) -> Any:
        if isinstance(obj, ResponseEnvelope):
            error = None if obj.error is None else f"{type(obj.error).__name__}: {obj.error}"
            payload = msgpack.packb(
                [obj.data, error, obj.is_validating],
                use_bin_type=True,
                default=self._encode_ext,
            )
            return msgpack.ExtType(ENVELOPE_EXT_CODE, payload)
        raise TypeError(f"Tipo não serializável: {type(obj).__name__}")

    def _decode_ext(self, code: int, payload: bytes) -> Any:
        if code != ENVELOPE_EXT_CODE:
            return msgpack.ExtType(code, payload)
        data, error, is_validating = msgpack.unpackb(
            payload,
            raw=False,
            strict_map_key=False,
            ext_hook=self._decode_ext,
        )
        return ResponseEnvelope(
            data=data,
            error=SWRError(error) if error is not None else None,
            is_validating=is_validating,
        )
