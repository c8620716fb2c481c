"""Testes para o cache apoiado em mapeamento."""

import math

from swr_cache.adapters import MappingStoreCache
from swr_cache.envelope import ResponseEnvelope
from swr_cache.serializer import MsgPackSerializer


class TestMappingStoreCache:
    """Testes para MappingStoreCache."""

    def test_set_persists_serialized_entry(self, clock) -> None:
        """set deve gravar bytes no mapeamento com namespace."""
        store: dict[str, bytes] = {}
        cache = MappingStoreCache(store, clock=clock)

        cache.set("/api/user", {"name": "ana"}, ttl=60)

        assert list(store) == ["swr:/api/user"]
        value, created_at, expires_at = MsgPackSerializer().deserialize(store["swr:/api/user"])
        assert value == {"name": "ana"}
        assert (created_at, expires_at) == (1000.0, 1060.0)

    def test_get_reads_from_store(self, clock) -> None:
        """Outra instância sobre o mesmo mapeamento deve ler a entrada."""
        store: dict[str, bytes] = {}
        MappingStoreCache(store, clock=clock).set("k", [1, 2, 3])

        entry = MappingStoreCache(store, clock=clock).get("k")

        assert entry is not None
        assert entry.value == [1, 2, 3]
        assert entry.expires_at == math.inf

    def test_expired_entry_is_removed(self, clock) -> None:
        """Entrada vencida deve ser removida do mapeamento."""
        store: dict[str, bytes] = {}
        cache = MappingStoreCache(store, clock=clock)
        cache.set("k", 1, ttl=10)

        clock.advance(11)

        assert cache.get("k") is None
        assert store == {}

    def test_corrupt_payload_is_discarded(self, clock) -> None:
        """Payload corrompido deve ser tratado como miss e removido."""
        store = {"swr:k": b"\xc1"}
        cache = MappingStoreCache(store, clock=clock)

        assert cache.get("k") is None
        assert "swr:k" not in store

    def test_wrong_shape_payload_is_discarded(self, clock) -> None:
        """Payload válido mas com formato inesperado deve ser descartado."""
        store = {"swr:k": MsgPackSerializer().serialize("x")}
        cache = MappingStoreCache(store, clock=clock)

        assert cache.get("k") is None
        assert store == {}

    def test_keys_respect_namespace(self, clock) -> None:
        """keys deve listar apenas chaves do namespace."""
        store = {"other:x": b""}
        cache = MappingStoreCache(store, namespace="swr", clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)

        assert sorted(cache.keys()) == ["a", "b"]
        assert len(cache) == 2

    def test_bytes_keys_are_decoded(self, clock) -> None:
        """Mapeamentos com chaves bytes (dbm) devem ser suportados."""
        store = {b"swr:a": MsgPackSerializer().serialize([1, 1000.0, math.inf])}
        cache = MappingStoreCache(store, clock=clock)  # type: ignore[arg-type]

        assert cache.keys() == ["a"]

    def test_delete_missing_key(self, clock) -> None:
        """delete de chave inexistente não deve falhar."""
        cache = MappingStoreCache({}, clock=clock)

        cache.delete("nope")

    def test_stores_envelopes(self, clock) -> None:
        """Envelopes de resposta devem ser persistidos."""
        cache = MappingStoreCache(clock=clock)
        cache.set("k", ResponseEnvelope(data={"v": 1}))

        assert cache.get("k").value == ResponseEnvelope(data={"v": 1})

    def test_purge_expired(self, clock) -> None:
        """Varredura deve limpar o mapeamento."""
        store: dict[str, bytes] = {}
        cache = MappingStoreCache(store, clock=clock)
        cache.set("a", 1, ttl=1)
        cache.set("b", 2)

        clock.advance(5)

        assert cache.purge_expired() == 1
        assert list(store) == ["swr:b"]

    def test_exported_from_package(self) -> None:
        """MappingStoreCache deve ser importável do pacote principal."""
        import swr_cache

        assert swr_cache.MappingStoreCache is MappingStoreCache
        assert "MappingStoreCache" in swr_cache.__all__
