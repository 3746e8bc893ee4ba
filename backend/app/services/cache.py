"""
Expiring Cache Service

Key/value caches with TTL expiration used by the expert discovery pipeline
(search constraints, work searches, author profiles, ranked lists).
Backed by Redis when it is reachable, otherwise by an in-memory map with a
bounded-size eviction sweep. Values are stored serialized, so every read
returns a fresh copy of exactly what was written.
"""
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Dict, Generic, List, Optional, Tuple, TypeVar

import redis
from pydantic import TypeAdapter, ValidationError

from app.core.config import Settings
from app.core.exceptions import CacheConnectionError
from app.core.logging import get_logger
from app.schemas.experts import RankedExpert, SearchConstraints
from app.services.sources.base import AuthorProfile, ScholarAuthor, ScholarPaper, Work

logger = get_logger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]


def make_key(*parts) -> str:
    """Build a normalized cache key from its parts."""
    return ":".join(str(p) for p in parts).lower().strip()


def connect_redis(host: str, port: int) -> Optional[redis.Redis]:
    """Attempt to connect to Redis, returning None when it is unavailable."""
    try:
        client = redis.Redis(
            host=host,
            port=port,
            db=0,
            socket_connect_timeout=2,
            socket_timeout=2
        )
        client.ping()
        logger.info("Connected to Redis cache")
        return client
    except (redis.ConnectionError, redis.TimeoutError) as e:
        error = CacheConnectionError(host, port, str(e))
        logger.warning(f"Redis not available, using in-memory fallback: {error}")
        return None


class ExpiringCache(Generic[T]):
    """TTL cache for one kind of value, in Redis or in memory."""

    def __init__(
        self,
        namespace: str,
        value_type,
        ttl: timedelta,
        max_entries: int = 500,
        client: Optional[redis.Redis] = None,
        clock: Clock = time.time,
    ):
        self.namespace = namespace
        self.ttl = ttl
        self.max_entries = max_entries
        self._adapter = TypeAdapter(value_type)
        self._client = client
        self._clock = clock
        self._entries: Dict[str, Tuple[float, bytes]] = {}

    def _get_key(self, key: str) -> str:
        return f"experts:{self.namespace}:{key}"

    def get(self, key: str) -> Optional[T]:
        """Return the cached value, or None when missing or expired."""
        full_key = self._get_key(key)

        try:
            if self._client is not None:
                data = self._client.get(full_key)
            else:
                data = self._get_local(full_key)

            if data is None:
                return None
            return self._adapter.validate_json(data)
        except redis.RedisError as e:
            logger.error(f"Cache get error ({self.namespace}): {e}")
            return None
        except ValidationError as e:
            logger.warning(f"Discarding unreadable cache entry {full_key}: {e}")
            self.delete(key)
            return None

    def set(self, key: str, value: T) -> bool:
        """Store a value for the configured TTL."""
        full_key = self._get_key(key)
        payload = self._adapter.dump_json(value)

        try:
            if self._client is not None:
                self._client.setex(full_key, int(self.ttl.total_seconds()), payload)
            else:
                self._entries.pop(full_key, None)
                self._entries[full_key] = (self._clock() + self.ttl.total_seconds(), payload)
                if len(self._entries) > self.max_entries:
                    self._sweep()
            return True
        except redis.RedisError as e:
            logger.error(f"Cache set error ({self.namespace}): {e}")
            return False

    def delete(self, key: str) -> bool:
        full_key = self._get_key(key)

        try:
            if self._client is not None:
                return bool(self._client.delete(full_key))
            return self._entries.pop(full_key, None) is not None
        except redis.RedisError as e:
            logger.error(f"Cache delete error ({self.namespace}): {e}")
            return False

    def clear(self) -> None:
        """Drop every entry of this namespace."""
        if self._client is not None:
            try:
                keys = self._client.keys(self._get_key("*"))
                if keys:
                    self._client.delete(*keys)
            except redis.RedisError as e:
                logger.error(f"Cache clear error ({self.namespace}): {e}")
        self._entries.clear()

    def _get_local(self, full_key: str) -> Optional[bytes]:
        entry = self._entries.get(full_key)
        if entry is None:
            return None
        expires_at, payload = entry
        if self._clock() > expires_at:
            del self._entries[full_key]
            return None
        return payload

    def _sweep(self) -> None:
        """Evict expired entries, then the oldest ones while over capacity."""
        now = self._clock()
        expired = [k for k, (expires_at, _) in self._entries.items() if now > expires_at]
        for k in expired:
            del self._entries[k]

        while len(self._entries) > self.max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]

    def __len__(self) -> int:
        if self._client is not None:
            try:
                return len(self._client.keys(self._get_key("*")))
            except redis.RedisError:
                return 0
        return len(self._entries)

    @property
    def is_connected(self) -> bool:
        """Check if this cache is backed by Redis."""
        return self._client is not None


@dataclass
class PipelineCaches:
    """All caches the expert discovery pipeline shares across requests."""
    constraints: ExpiringCache[SearchConstraints]
    works: ExpiringCache[List[Work]]
    author_profiles: ExpiringCache[List[AuthorProfile]]
    scholar_authors: ExpiringCache[ScholarAuthor]
    scholar_papers: ExpiringCache[List[ScholarPaper]]
    ranked: ExpiringCache[List[RankedExpert]]

    @classmethod
    def create(
        cls,
        lookup_ttl: timedelta,
        ranked_ttl: timedelta,
        max_entries: int = 500,
        client: Optional[redis.Redis] = None,
        clock: Clock = time.time,
    ) -> "PipelineCaches":
        def cache(namespace, value_type, ttl):
            return ExpiringCache(namespace, value_type, ttl, max_entries, client, clock)

        return cls(
            constraints=cache("constraints", SearchConstraints, lookup_ttl),
            works=cache("works", List[Work], lookup_ttl),
            author_profiles=cache("author-profiles", List[AuthorProfile], lookup_ttl),
            scholar_authors=cache("s2-author", ScholarAuthor, lookup_ttl),
            scholar_papers=cache("s2-papers", List[ScholarPaper], lookup_ttl),
            ranked=cache("ranked", List[RankedExpert], ranked_ttl),
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "PipelineCaches":
        client = connect_redis(settings.REDIS_HOST, settings.REDIS_PORT)
        return cls.create(
            lookup_ttl=timedelta(minutes=settings.CACHE_TTL_MINUTES),
            ranked_ttl=timedelta(minutes=settings.RANKED_LIST_TTL_MINUTES),
            max_entries=settings.CACHE_MAX_ENTRIES,
            client=client,
        )

    @classmethod
    def in_memory(cls, clock: Clock = time.time, ttl: timedelta = timedelta(hours=1)) -> "PipelineCaches":
        return cls.create(lookup_ttl=ttl, ranked_ttl=ttl, clock=clock)

    @property
    def is_connected(self) -> bool:
        return self.ranked.is_connected
