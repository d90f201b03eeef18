"""Live feeds realised as polling tasks over a query.

A :class:`PollingFeed` re-runs its query on a fixed interval and pushes the
full result set to its listener whenever it differs from what was last
delivered. Writers call :meth:`PollingFeed.nudge` (usually through a
:class:`FeedHub`) so that their own changes show up without waiting for the
next tick.
"""

import asyncio
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

import structlog

from domain.entities.feed import FeedEvent

logger = structlog.get_logger()

T = TypeVar("T")

_UNSET = object()


class PollingFeed(Generic[T]):
    """Snapshot feed backed by a periodically re-run query."""

    def __init__(
        self,
        name: str,
        query: Callable[[], Awaitable[list[T]]],
        on_event: Callable[[FeedEvent[T]], None],
        interval: float,
    ) -> None:
        self.name = name
        self._query = query
        self._on_event = on_event
        self._interval = interval
        self._wake = asyncio.Event()
        self._last: object = _UNSET
        self._failed = False
        self._closed = False
        self._task: asyncio.Task[None] | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Start polling on the running event loop."""
        if self._task is None and not self._closed:
            self._task = asyncio.get_running_loop().create_task(self._run())

    def nudge(self) -> None:
        """Re-run the query now instead of at the next tick."""
        self._wake.set()

    def close(self) -> None:
        """Stop polling. No event is delivered after this returns."""
        if self._closed:
            return
        self._closed = True
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def poll_once(self) -> None:
        """Run the query and deliver the result if it changed."""
        try:
            items = await self._query()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            if not self._failed:
                logger.warning("feed_query_failed", feed=self.name, error=str(exc))
            self._failed = True
            self._last = _UNSET
            self._deliver(FeedEvent.failure(str(exc)))
            return

        self._failed = False
        if items == self._last:
            return
        self._last = items
        self._deliver(FeedEvent.snapshot(items))

    async def _run(self) -> None:
        while not self._closed:
            self._wake.clear()
            await self.poll_once()
            try:
                await asyncio.wait_for(self._wake.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                continue

    def _deliver(self, event: FeedEvent[T]) -> None:
        if self._closed:
            return
        try:
            self._on_event(event)
        except Exception:
            logger.exception("feed_listener_failed", feed=self.name)


class FeedHub:
    """Tracks open feeds per user so writers can nudge them."""

    def __init__(self) -> None:
        self._feeds: dict[str, set[PollingFeed]] = defaultdict(set)

    def register(self, user_id: str, feed: PollingFeed) -> Callable[[], None]:
        """Start ``feed`` and return a function that closes and forgets it."""
        self._feeds[user_id].add(feed)
        feed.start()

        def unsubscribe() -> None:
            feed.close()
            feeds = self._feeds.get(user_id)
            if feeds is None:
                return
            feeds.discard(feed)
            if not feeds:
                del self._feeds[user_id]

        return unsubscribe

    def nudge(self, *user_ids: str) -> None:
        """Wake every feed belonging to the given users."""
        for user_id in user_ids:
            for feed in self._feeds.get(user_id, ()):
                feed.nudge()

    def open_count(self, user_id: str | None = None) -> int:
        if user_id is not None:
            return len(self._feeds.get(user_id, ()))
        return sum(len(feeds) for feeds in self._feeds.values())

    def close_all(self) -> None:
        for feeds in list(self._feeds.values()):
            for feed in list(feeds):
                feed.close()
        self._feeds.clear()
