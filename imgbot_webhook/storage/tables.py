"""Partitioned record tables for installations and marketplace accounts.

A row is addressed by ``(partition_key, row_key)`` and holds a flat mapping
of fields. Upserts merge into the existing fields instead of replacing them.
"""

import logging
from typing import Any, Dict, Optional

import redis

logger = logging.getLogger(__name__)


class RedisTable:
    """Table stored in redis.

    Each row is a hash at ``<name>:<partition>:<row>``. Each partition keeps
    a set of its row keys at ``<name>:<partition>`` so that it can be
    dropped without scanning the keyspace. Index members are decoded, so
    the client may or may not use ``decode_responses``.
    """

    def __init__(self, client: redis.Redis, name: str):
        self.client = client
        self.name = name

    def _partition_key(self, partition_key: str) -> str:
        return f"{self.name}:{partition_key}"

    def _row_key(self, partition_key: str, row_key: str) -> str:
        return f"{self.name}:{partition_key}:{row_key}"

    def get_row(self, partition_key: str, row_key: str) -> Optional[Dict[str, str]]:
        fields = self.client.hgetall(self._row_key(partition_key, row_key))
        return fields or None

    def upsert_merge(
        self, partition_key: str, row_key: str, fields: Dict[str, Any]
    ) -> None:
        if not fields:
            raise ValueError("upsert_merge requires at least one field")

        with self.client.pipeline(transaction=True) as pipe:
            pipe.hset(self._row_key(partition_key, row_key), mapping=fields)
            pipe.sadd(self._partition_key(partition_key), row_key)
            pipe.execute()

    def delete_row(self, partition_key: str, row_key: str) -> None:
        with self.client.pipeline(transaction=True) as pipe:
            pipe.delete(self._row_key(partition_key, row_key))
            pipe.srem(self._partition_key(partition_key), row_key)
            pipe.execute()

    def delete_partition(self, partition_key: str) -> None:
        index = self._partition_key(partition_key)
        row_keys = self.client.smembers(index)

        with self.client.pipeline(transaction=True) as pipe:
            for row_key in row_keys:
                if isinstance(row_key, bytes):
                    row_key = row_key.decode("utf-8")
                pipe.delete(self._row_key(partition_key, row_key))
            pipe.delete(index)
            pipe.execute()

        logger.debug(f"Dropped {len(row_keys)} row(s) from {index}")


class InMemoryTable:
    """Dict-backed table for dev mode and tests."""

    def __init__(self, name: str):
        self.name = name
        self.partitions: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def get_row(self, partition_key: str, row_key: str) -> Optional[Dict[str, Any]]:
        row = self.partitions.get(partition_key, {}).get(row_key)
        return dict(row) if row is not None else None

    def upsert_merge(
        self, partition_key: str, row_key: str, fields: Dict[str, Any]
    ) -> None:
        if not fields:
            raise ValueError("upsert_merge requires at least one field")

        row = self.partitions.setdefault(partition_key, {}).setdefault(row_key, {})
        row.update(fields)
        logger.info(f"[DEV MODE] {self.name}: merged {partition_key} :: {row_key}")

    def delete_row(self, partition_key: str, row_key: str) -> None:
        partition = self.partitions.get(partition_key)
        if partition is None:
            return
        partition.pop(row_key, None)
        if not partition:
            del self.partitions[partition_key]

    def delete_partition(self, partition_key: str) -> None:
        self.partitions.pop(partition_key, None)
