"""Testes para a serialização de chaves."""

import pytest

from swr_cache.keys import INACTIVE, ResolvedKey, hash_arguments, resolve_key, serialize_key


class TestSerializeKey:
    """Testes para serialize_key."""

    def test_string_key_is_used_as_is(self) -> None:
        """Chave string deve ser usada sem alteração."""
        assert serialize_key("/api/users") == "/api/users"

    @pytest.mark.parametrize("key", [None, "", [], ()])
    def test_empty_keys_are_inactive(self, key: object) -> None:
        """None, string vazia e lista vazia devem ser inativas."""
        assert serialize_key(key) == ""
        assert not resolve_key(key).is_active

    def test_scalar_key_uses_str(self) -> None:
        """Escalares devem ser convertidos com str()."""
        assert serialize_key(42) == "42"

    def test_function_key_is_evaluated(self) -> None:
        """Chave callable deve ser avaliada."""
        assert serialize_key(lambda: "/api/user") == "/api/user"

    def test_function_key_that_raises_is_inactive(self) -> None:
        """Chave callable que lança exceção significa dependência não pronta."""
        user = None

        def key() -> str:
            return f"/api/projects?owner={user['id']}"  # type: ignore[index]

        assert serialize_key(key) == ""

    def test_function_key_returning_none_is_inactive(self) -> None:
        """Chave callable que retorna None deve ser inativa."""
        assert resolve_key(lambda: None) is INACTIVE

    def test_function_key_returning_list_is_hashed(self) -> None:
        """Chave callable pode retornar lista de argumentos."""
        assert serialize_key(lambda: ["/api/user", 1]) == serialize_key(["/api/user", 1])


class TestArgumentListKeys:
    """Testes para chaves com lista de argumentos."""

    def test_same_args_produce_same_key(self) -> None:
        """Mesmos argumentos devem produzir mesma chave."""
        assert serialize_key(["/api/user", 1, {"a": 1}]) == serialize_key(["/api/user", 1, {"a": 1}])

    def test_different_args_produce_different_keys(self) -> None:
        """Argumentos diferentes devem produzir chaves diferentes."""
        assert serialize_key(["/api/user", 1]) != serialize_key(["/api/user", 2])

    def test_shape_is_part_of_the_hash(self) -> None:
        """Objeto e sua representação em string devem gerar chaves diferentes."""
        assert serialize_key(["a", {"x": 1}]) != serialize_key(["a", str({"x": 1})])
        assert serialize_key(["a", 1]) != serialize_key(["a", "1"])

    def test_dict_order_does_not_affect_key(self) -> None:
        """Ordem das chaves do dicionário não deve afetar a chave."""
        assert serialize_key(["q", {"a": 1, "b": 2}]) == serialize_key(["q", {"b": 2, "a": 1}])

    def test_tuple_and_list_are_equivalent(self) -> None:
        """Tupla e lista com os mesmos elementos geram a mesma chave."""
        assert serialize_key(("a", 1)) == serialize_key(["a", 1])

    def test_set_with_mixed_types(self) -> None:
        """Sets com tipos mistos devem ser serializados sem erro."""
        assert serialize_key(["s", {1, "dois", 3.0}]) == serialize_key(["s", {3.0, "dois", 1}])

    def test_args_preserve_original_elements(self) -> None:
        """Os argumentos originais (não o hash) devem ser preservados."""
        params = {"page": 2}
        resolved = resolve_key(["/api/items", params])

        assert resolved.args == ("/api/items", params)
        assert resolved.args[1] is params
        assert resolved.serialized.startswith("args:")

    def test_hash_length(self) -> None:
        """Hash deve ter 16 caracteres hexadecimais."""
        digest = hash_arguments(["a", 1])

        assert len(digest) == 16
        int(digest, 16)


class TestResolvedKey:
    """Testes para ResolvedKey."""

    def test_string_key_args(self) -> None:
        """Chave string deve ser passada como único argumento."""
        assert resolve_key("/api/user") == ResolvedKey("/api/user", ("/api/user",))

    def test_is_active(self) -> None:
        """Chave com conteúdo é ativa."""
        assert ResolvedKey("k", ("k",)).is_active
        assert not INACTIVE.is_active
