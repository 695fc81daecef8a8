"""
In-process cache of resolved permission sets keyed by (tenant_id, user_id).

Entries expire after a TTL, which bounds staleness for changes the engine
cannot see (for example catalog edits made elsewhere). Changes made through
the engine invalidate explicitly: mutations wrap their write in
``invalidating()`` so no resolution that starts after the write commits can
read or install a pre-write value.
"""

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, Optional

from access_engine.models.resolved_permissions import ResolvedPermissionSet

logger = logging.getLogger(__name__)

CacheKey = tuple[int, int]  # (tenant_id, user_id)


@dataclass
class _Entry:
    resolved: ResolvedPermissionSet
    expires_at: float


@dataclass
class _Stripe:
    """One independently locked shard of the cache."""

    lock: threading.Lock = field(default_factory=threading.Lock)
    entries: dict[CacheKey, _Entry] = field(default_factory=dict)
    pending: dict[CacheKey, int] = field(default_factory=dict)
    generation: int = 0


class PermissionCache:
    """
    Striped TTL cache for ResolvedPermissionSet.

    Keys are spread over independent stripes, each with its own short-lived
    lock, so readers and writers of different users rarely contend. No lock
    is held while the caller talks to the store.

    Readers take ``generation()`` before loading from the store and pass it
    to ``put()``; the put is refused if an invalidation touched the stripe in
    the meantime or if a write for that key is still in progress.
    """

    def __init__(
        self,
        ttl_seconds: float = 300,
        stripes: int = 16,
        clock: Callable[[], float] = time.monotonic,
    ):
        if stripes < 1:
            raise ValueError("stripes must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._stripes = [_Stripe() for _ in range(stripes)]

    def _stripe(self, key: CacheKey) -> _Stripe:
        return self._stripes[hash(key) % len(self._stripes)]

    def generation(self, tenant_id: int, user_id: int) -> int:
        """Version stamp to hand back to put() after loading from the store"""
        stripe = self._stripe((tenant_id, user_id))
        with stripe.lock:
            return stripe.generation

    def get(self, tenant_id: int, user_id: int) -> Optional[ResolvedPermissionSet]:
        """Cached set, or None on a miss, expiry or in-progress write"""
        key = (tenant_id, user_id)
        stripe = self._stripe(key)
        with stripe.lock:
            if stripe.pending.get(key):
                return None
            entry = stripe.entries.get(key)
            if entry is None:
                return None
            if entry.expires_at <= self._clock():
                del stripe.entries[key]
                return None
            return entry.resolved

    def put(
        self,
        tenant_id: int,
        user_id: int,
        resolved: ResolvedPermissionSet,
        ttl: Optional[float] = None,
        generation: Optional[int] = None,
    ) -> bool:
        """
        Store a resolved set.

        Returns:
            False if the entry was refused as possibly stale
        """
        if resolved.fail_closed:
            return False
        key = (tenant_id, user_id)
        stripe = self._stripe(key)
        expires_at = self._clock() + (self.ttl_seconds if ttl is None else ttl)
        with stripe.lock:
            if stripe.pending.get(key):
                return False
            if generation is not None and generation != stripe.generation:
                return False
            stripe.entries[key] = _Entry(resolved=resolved, expires_at=expires_at)
            return True

    def invalidate(self, tenant_id: int, user_id: int) -> None:
        """Drop one user's entry"""
        key = (tenant_id, user_id)
        stripe = self._stripe(key)
        with stripe.lock:
            stripe.entries.pop(key, None)
            stripe.generation += 1

    def invalidate_level(self, tenant_id: int, user_level_id: int) -> int:
        """
        Drop every cached entry that was resolved from the given level.

        The level -> users index is derived from the cached sets themselves.
        Every stripe's generation moves too, since a resolution in flight
        may be loading that level for a user not cached yet.

        Returns:
            Number of entries dropped
        """
        dropped = 0
        for stripe in self._stripes:
            with stripe.lock:
                stale = [
                    key
                    for key, entry in stripe.entries.items()
                    if key[0] == tenant_id and user_level_id in entry.resolved.user_level_ids
                ]
                for key in stale:
                    del stripe.entries[key]
                dropped += len(stale)
                stripe.generation += 1
        return dropped

    def invalidate_tenant(self, tenant_id: int) -> int:
        """Drop every entry of a tenant"""
        dropped = 0
        for stripe in self._stripes:
            with stripe.lock:
                stale = [key for key in stripe.entries if key[0] == tenant_id]
                for key in stale:
                    del stripe.entries[key]
                dropped += len(stale)
                stripe.generation += 1
        return dropped

    @contextmanager
    def invalidating(self, tenant_id: int, user_ids: Iterable[int]) -> Iterator[None]:
        """
        Wrap a write that changes the permissions of the given users.

        For the duration of the block the keys are write-pending: get()
        misses and put() is refused. On exit (success or failure) entries
        are dropped again and generations move, so sets loaded before the
        commit can never be installed afterwards.
        """
        keys = [(tenant_id, user_id) for user_id in sorted(set(user_ids))]
        for key in keys:
            stripe = self._stripe(key)
            with stripe.lock:
                stripe.pending[key] = stripe.pending.get(key, 0) + 1
                stripe.entries.pop(key, None)
                stripe.generation += 1
        try:
            yield
        finally:
            for key in keys:
                stripe = self._stripe(key)
                with stripe.lock:
                    stripe.entries.pop(key, None)
                    stripe.generation += 1
                    remaining = stripe.pending[key] - 1
                    if remaining:
                        stripe.pending[key] = remaining
                    else:
                        del stripe.pending[key]
            if keys:
                logger.debug("Invalidated %d cached permission sets in tenant %s", len(keys), tenant_id)

    def clear(self) -> None:
        for stripe in self._stripes:
            with stripe.lock:
                stripe.entries.clear()
                stripe.generation += 1

    def __len__(self) -> int:
        total = 0
        for stripe in self._stripes:
            with stripe.lock:
                total += len(stripe.entries)
        return total


class NullPermissionCache(PermissionCache):
    """Cache that never stores anything (tests, cache-less deployments)."""

    def __init__(self):
        super().__init__(ttl_seconds=0, stripes=1)

    def get(self, tenant_id: int, user_id: int) -> Optional[ResolvedPermissionSet]:
        return None

    def put(
        self,
        tenant_id: int,
        user_id: int,
        resolved: ResolvedPermissionSet,
        ttl: Optional[float] = None,
        generation: Optional[int] = None,
    ) -> bool:
        return False
