"""
TTL Cache — In-Process Result Cache with Background Sweeper
=============================================================
Keyed store for upstream responses. An entry is live while
`now - inserted_at < ttl_ms`; a read that finds it expired deletes it.

Lifecycle: `start()` schedules an asyncio task that calls
`cleanup_expired()` every `sweep_interval_ms`, independent of read traffic;
`stop()` cancels it. Both are idempotent and owned by the application
lifespan. No per-key locking: last `set` wins, reads never block.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_TTL_MS = 300_000
DEFAULT_SWEEP_INTERVAL_MS = 300_000

# Miss marker for get(); distinct from any cacheable value
MISSING = object()


@dataclass(frozen=True)
class CacheEntry:
    data: Any
    inserted_at: float      # clock() seconds
    ttl_ms: int


class TTLCache:

    def __init__(
        self,
        default_ttl_ms: int = DEFAULT_TTL_MS,
        sweep_interval_ms: int = DEFAULT_SWEEP_INTERVAL_MS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._store: Dict[str, CacheEntry] = {}
        self.default_ttl_ms = default_ttl_ms
        self.sweep_interval_ms = sweep_interval_ms
        self._clock = clock
        self._sweeper: Optional[asyncio.Task] = None

    def _age_ms(self, entry: CacheEntry) -> float:
        return (self._clock() - entry.inserted_at) * 1000

    def _expired(self, entry: CacheEntry) -> bool:
        return self._age_ms(entry) >= entry.ttl_ms

    def get(self, key: str, default: Any = None) -> Any:
        """Cached value, or `default` on a miss. A stored None is a hit."""
        entry = self._store.get(key)
        if entry is None:
            return default
        if self._expired(entry):
            self._store.pop(key, None)
            return default
        return entry.data

    def set(self, key: str, value: Any, ttl_ms: Optional[int] = None) -> None:
        ttl = self.default_ttl_ms if ttl_ms is None else ttl_ms
        self._store[key] = CacheEntry(data=value, inserted_at=self._clock(), ttl_ms=ttl)

    def cleanup_expired(self) -> int:
        expired = [k for k, e in list(self._store.items()) if self._expired(e)]
        for key in expired:
            self._store.pop(key, None)
        if expired:
            logger.debug(f"Cache sweep removed {len(expired)} expired entries")
        return len(expired)

    def stats(self) -> Dict[str, Any]:
        return {
            "size": len(self._store),
            "entries": [
                {"key": key, "age": round(self._age_ms(entry)), "ttl": entry.ttl_ms}
                for key, entry in list(self._store.items())
            ],
        }

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: str) -> bool:
        return self.get(key, MISSING) is not MISSING

    # ──────────────────────────────────────────────────────────
    # Sweeper lifecycle
    # ──────────────────────────────────────────────────────────

    @property
    def running(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    def start(self) -> None:
        """Schedule the periodic sweep on the running loop."""
        if self.running:
            return
        self._sweeper = asyncio.get_running_loop().create_task(self._sweep_forever())
        logger.info(f"Cache sweeper started (interval={self.sweep_interval_ms}ms)")

    async def stop(self) -> None:
        if self._sweeper is None:
            return
        task, self._sweeper = self._sweeper, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Cache sweeper stopped")

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval_ms / 1000)
            try:
                self.cleanup_expired()
            except Exception as e:
                logger.error(f"Cache sweep failed: {e}", exc_info=True)
