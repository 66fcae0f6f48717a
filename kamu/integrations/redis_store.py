"""Redis-backed JSON key/value storage with an in-memory fallback."""
from __future__ import annotations

import json
import logging
import os
import time
from typing import Any

import redis

logger = logging.getLogger(__name__)


class RedisJsonStorage:
    """JSON documents in Redis with TTL; degrades to process memory.

    Memory mode is used when no Redis URL is configured, when the initial
    ping fails, or after any Redis error at runtime.
    """

    DEFAULT_TTL_SECONDS = 24 * 60 * 60

    def __init__(
        self,
        redis_url: str | None = None,
        *,
        namespace: str = "kamu",
        ttl_seconds: int | None = DEFAULT_TTL_SECONDS,
        client: Any = None,
    ):
        self._redis_url = redis_url or os.getenv("REDIS_URL")
        self._namespace = namespace
        self._ttl = ttl_seconds
        self._client = client if client is not None else self._init_client()
        self._memory: dict[str, str] = {}
        self._memory_last_access: dict[str, float] = {}

    @property
    def uses_redis(self) -> bool:
        return self._client is not None

    def _switch_to_memory_fallback(self, reason: Exception | str) -> None:
        logger.warning("Redis storage fallback to memory mode: %s", reason)
        self._client = None

    def _init_client(self):
        if not self._redis_url:
            logger.warning("REDIS_URL is not set; %s storage uses in-memory fallback", self._namespace)
            return None

        try:
            client = redis.from_url(
                self._redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
            client.ping()
            logger.info("Redis storage enabled for %s", self._namespace)
            return client
        except Exception as exc:
            logger.warning("Redis init failed, fallback to in-memory: %s", exc)
            return None

    def key(self, name: str) -> str:
        return f"{self._namespace}:{name}"

    def _cleanup_memory_expired(self) -> None:
        if not self._ttl:
            return
        now = time.time()
        expired = [
            key for key, last_access in self._memory_last_access.items() if now - last_access > self._ttl
        ]
        for key in expired:
            self._memory.pop(key, None)
            self._memory_last_access.pop(key, None)

    def _memory_get(self, key: str) -> str | None:
        self._cleanup_memory_expired()
        raw = self._memory.get(key)
        if raw is not None:
            self._memory_last_access[key] = time.time()
        return raw

    def _memory_set(self, key: str, raw: str) -> None:
        self._memory[key] = raw
        self._memory_last_access[key] = time.time()

    def _memory_delete(self, key: str) -> None:
        self._memory.pop(key, None)
        self._memory_last_access.pop(key, None)

    def get_json(self, name: str) -> Any:
        key = self.key(name)
        raw: str | None
        if self._client:
            try:
                raw = self._client.get(key)
            except Exception as exc:
                self._switch_to_memory_fallback(exc)
                raw = self._memory_get(key)
        else:
            raw = self._memory_get(key)

        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable JSON under %s", key)
            return None

    def set_json(self, name: str, value: Any) -> None:
        key = self.key(name)
        serialized = json.dumps(value, ensure_ascii=False)
        if self._client:
            try:
                if self._ttl:
                    self._client.setex(key, self._ttl, serialized)
                else:
                    self._client.set(key, serialized)
                return
            except Exception as exc:
                self._switch_to_memory_fallback(exc)
        self._memory_set(key, serialized)

    def delete(self, name: str) -> None:
        key = self.key(name)
        if self._client:
            try:
                self._client.delete(key)
            except Exception as exc:
                self._switch_to_memory_fallback(exc)
        self._memory_delete(key)
