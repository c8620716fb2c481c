"""Caches de dados alternativos com o mesmo contrato do ExpiringCache."""

from .mapping_store import MappingStoreCache

__all__ = ["MappingStoreCache"]
