"""Record tables backing installations and marketplace accounts."""

from .tables import InMemoryTable, RedisTable

__all__ = ["InMemoryTable", "RedisTable"]
