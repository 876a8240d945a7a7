"""Keyed in-memory query cache for client-side dashboard data.

Entries are keyed by (resource, user_id). Each entry walks a small state
machine:

    IDLE -> LOADING -> SUCCESS | ERROR
    SUCCESS | ERROR -> LOADING      (refetch)
    any -> IDLE                     (remove only)

Fetches never raise out of the cache: a failed fetch is recorded on the
entry (status ERROR, error set) and the previous data is kept. Concurrent
fetches of one key share a single in-flight task. Invalidating an active key
while its fetch is in flight chains a fresh fetch onto that task, so its
awaiters only wake with data fetched after the invalidation.
"""

import asyncio
import time
from collections import Counter
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from fundboard.logging import get_logger

logger = get_logger(__name__)

QueryKey = tuple[str, str]
Fetcher = Callable[[], Awaitable[Any]]


class QueryStatus(str, Enum):
    """Lifecycle state of a cached query."""

    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class QueryEntry:
    """Cached state for one (resource, user_id) key."""

    key: QueryKey
    fetcher: Fetcher
    status: QueryStatus = QueryStatus.IDLE
    data: Any = None
    error: Exception | None = None
    is_stale: bool = False
    updated_at: float | None = None
    generation: int = 0
    refetch_requested: bool = False
    task: asyncio.Task | None = field(default=None, repr=False)  # type: ignore[type-arg]

    @property
    def is_fetching(self) -> bool:
        return self.task is not None and not self.task.done()


class QueryCache:
    """In-memory cache of dashboard queries with active-consumer tracking.

    A key is "active" while at least one consumer observes it. Invalidation
    only triggers background refetches for active keys; inactive keys are
    just marked stale.
    """

    def __init__(self) -> None:
        self._entries: dict[QueryKey, QueryEntry] = {}
        self._observers: Counter[QueryKey] = Counter()

    def get(self, key: QueryKey) -> QueryEntry | None:
        """Return the entry for a key, or None if it was never fetched or was removed."""
        return self._entries.get(key)

    def status(self, key: QueryKey) -> QueryStatus:
        entry = self._entries.get(key)
        return entry.status if entry is not None else QueryStatus.IDLE

    def keys(
        self,
        resources: Iterable[str] | None = None,
        user_id: str | None = None,
    ) -> list[QueryKey]:
        """Keys matching the given resources and user (None matches any)."""
        wanted = set(resources) if resources is not None else None
        return [
            key
            for key in self._entries
            if (wanted is None or key[0] in wanted)
            and (user_id is None or key[1] == user_id)
        ]

    def observe(self, key: QueryKey) -> None:
        """Register an active consumer of a key."""
        self._observers[key] += 1

    def unobserve(self, key: QueryKey) -> None:
        """Drop an active consumer of a key."""
        if self._observers[key] <= 1:
            self._observers.pop(key, None)
        else:
            self._observers[key] -= 1

    def is_active(self, key: QueryKey) -> bool:
        return self._observers[key] > 0

    def _start(self, entry: QueryEntry) -> asyncio.Task:  # type: ignore[type-arg]
        if not entry.is_fetching:
            entry.status = QueryStatus.LOADING
            entry.task = asyncio.create_task(self._run(entry))
        return entry.task  # type: ignore[return-value]

    async def _run(self, entry: QueryEntry) -> None:
        while True:
            started = entry.generation
            entry.refetch_requested = False
            try:
                data = await entry.fetcher()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                entry.status = QueryStatus.ERROR
                entry.error = e
                logger.warning(
                    "query_fetch_failed",
                    resource=entry.key[0],
                    user_id=entry.key[1],
                    error=str(e),
                )
            else:
                entry.data = data
                entry.error = None
                entry.status = QueryStatus.SUCCESS
                # Data fetched before the latest invalidation stays stale
                entry.is_stale = entry.generation != started
                entry.updated_at = time.time()
                logger.debug("query_fetched", resource=entry.key[0], user_id=entry.key[1])

            if not entry.refetch_requested:
                return
            entry.status = QueryStatus.LOADING
            logger.debug(
                "query_refetch_chained", resource=entry.key[0], user_id=entry.key[1]
            )

    async def fetch(self, key: QueryKey, fetcher: Fetcher) -> QueryEntry:
        """Fetch a key (or join the fetch already in flight) and return its entry."""
        entry = self._entries.get(key)
        if entry is None:
            entry = QueryEntry(key=key, fetcher=fetcher)
            self._entries[key] = entry
        else:
            entry.fetcher = fetcher
        await self._start(entry)
        return entry

    def invalidate(
        self,
        resources: Iterable[str] | None = None,
        user_id: str | None = None,
        refetch_active: bool = True,
    ) -> list[asyncio.Task]:  # type: ignore[type-arg]
        """Mark matching entries stale and refetch the active ones in the background.

        Returns:
            The refetch tasks that were started (empty when nothing is active).
        """
        tasks = []
        for key in self.keys(resources, user_id):
            entry = self._entries[key]
            entry.is_stale = True
            entry.generation += 1
            if refetch_active and self.is_active(key):
                if entry.is_fetching:
                    entry.refetch_requested = True
                tasks.append(self._start(entry))
        logger.debug("queries_invalidated", user_id=user_id, refetching=len(tasks))
        return tasks

    def remove(
        self,
        resources: Iterable[str] | None = None,
        user_id: str | None = None,
    ) -> int:
        """Drop matching entries entirely. Their keys return to IDLE.

        A fetch still in flight for a removed entry completes into the
        detached entry and never reappears in the cache.
        """
        keys = self.keys(resources, user_id)
        for key in keys:
            self._entries.pop(key).refetch_requested = False
        logger.debug("queries_removed", user_id=user_id, count=len(keys))
        return len(keys)

    async def refetch(
        self,
        resources: Iterable[str] | None = None,
        user_id: str | None = None,
    ) -> list[QueryEntry]:
        """Refetch every matching entry concurrently and wait for all of them."""
        entries = [self._entries[key] for key in self.keys(resources, user_id)]
        await asyncio.gather(*(self._start(entry) for entry in entries))
        return entries
