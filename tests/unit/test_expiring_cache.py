"""Testes para o cache com expiração."""

import math

from swr_cache.expiring_cache import CacheEntry, ExpiringCache


class TestExpiringCache:
    """Testes para ExpiringCache."""

    def test_get_before_ttl_returns_value(self, clock) -> None:
        """get antes do TTL deve retornar o valor."""
        cache = ExpiringCache(clock=clock)
        cache.set("a", 1, ttl=100)

        clock.advance(50)
        entry = cache.get("a")

        assert entry is not None
        assert entry.value == 1

    def test_get_after_ttl_returns_none(self, clock) -> None:
        """get depois do TTL deve retornar None e remover a entrada."""
        cache = ExpiringCache(clock=clock)
        cache.set("a", 1, ttl=100)

        clock.advance(150)

        assert cache.get("a") is None
        assert "a" not in cache.keys()

    def test_get_exactly_at_expiry_returns_none(self, clock) -> None:
        """Entrada expira quando now >= expires_at."""
        cache = ExpiringCache(clock=clock)
        cache.set("a", 1, ttl=10)

        clock.advance(10)

        assert cache.get("a") is None

    def test_ttl_zero_means_forever(self, clock) -> None:
        """TTL 0 deve significar cache para sempre, não 'não cachear'."""
        cache = ExpiringCache(clock=clock)
        entry = cache.set("a", 1, ttl=0)

        clock.advance(10**9)

        assert entry is not None
        assert entry.expires_at == math.inf
        assert cache.get("a").value == 1

    def test_default_ttl_is_used(self, clock) -> None:
        """TTL padrão do cache deve ser usado quando set não informa."""
        cache = ExpiringCache(ttl=5, clock=clock)
        cache.set("a", 1)

        clock.advance(6)

        assert cache.get("a") is None

    def test_entry_timestamps(self, clock) -> None:
        """Entrada deve registrar created_at e expires_at."""
        cache = ExpiringCache(clock=clock)
        entry = cache.set("a", "v", ttl=30)

        assert entry == CacheEntry(value="v", created_at=1000.0, expires_at=1030.0)
        assert entry.expires_at >= entry.created_at

    def test_delete(self, clock) -> None:
        """delete deve remover imediatamente."""
        cache = ExpiringCache(clock=clock)
        cache.set("a", 1)

        cache.delete("a")

        assert cache.get("a") is None

    def test_inactive_key_is_never_cached(self, clock) -> None:
        """Chave inativa nunca deve ser gravada nem encontrada."""
        cache = ExpiringCache(clock=clock)

        assert cache.set(None, 1) is None
        assert cache.set("", 1) is None
        assert cache.get("") is None
        assert len(cache) == 0

    def test_raw_list_key_is_serialized(self, clock) -> None:
        """Chaves brutas devem ser serializadas antes do acesso."""
        cache = ExpiringCache(clock=clock)
        cache.set(["/api/user", 1], "ana")

        assert cache.get(("/api/user", 1)).value == "ana"
        assert ["/api/user", 1] in cache

    def test_later_set_overwrites(self, clock) -> None:
        """set posterior deve sobrescrever o anterior."""
        cache = ExpiringCache(clock=clock)
        cache.set("a", 1)
        cache.set("a", 2)

        assert cache.get("a").value == 2

    def test_clear(self, clock) -> None:
        """clear deve remover todas as entradas."""
        cache = ExpiringCache(clock=clock)
        cache.set("a", 1, ttl=10)
        cache.set("b", 2)

        cache.clear()

        assert len(cache) == 0


class TestPurgeExpired:
    """Testes para a varredura de expiração."""

    def test_purge_removes_expired_entries(self, clock) -> None:
        """Varredura deve remover entradas vencidas sem precisar de get."""
        cache = ExpiringCache(clock=clock)
        cache.set("a", 1, ttl=10)
        cache.set("b", 2, ttl=100)
        cache.set("c", 3)

        clock.advance(50)
        removed = cache.purge_expired()

        assert removed == 1
        assert sorted(cache.keys()) == ["b", "c"]

    def test_purge_rechecks_rewritten_entry(self, clock) -> None:
        """Varredura não deve remover chave regravada com nova expiração."""
        cache = ExpiringCache(clock=clock)
        cache.set("a", 1, ttl=10)
        clock.advance(5)
        cache.set("a", 2, ttl=100)

        clock.advance(10)
        removed = cache.purge_expired()

        assert removed == 0
        assert cache.get("a").value == 2

    def test_purge_rechecks_entry_rewritten_forever(self, clock) -> None:
        """Chave regravada com TTL 0 nunca deve ser varrida."""
        cache = ExpiringCache(clock=clock)
        cache.set("a", 1, ttl=10)
        cache.set("a", 2, ttl=0)

        clock.advance(20)

        assert cache.purge_expired() == 0
        assert cache.get("a").value == 2

    def test_set_purges_opportunistically(self, clock) -> None:
        """set deve varrer entradas já vencidas."""
        cache = ExpiringCache(clock=clock)
        cache.set("a", 1, ttl=1)
        clock.advance(2)

        cache.set("b", 2)

        assert cache.keys() == ["b"]
