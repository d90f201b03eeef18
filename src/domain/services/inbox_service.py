"""Inbox aggregation engine.

Holds the live feeds of one signed-in user and folds their snapshots into a
single :class:`AggregatedView`:

- friend requests and group invitations are enriched and then replace the
  previous list wholesale;
- post activity is reconciled in place (see ``feed_projection``);
- every subscription belongs to an epoch, and every enrichment batch to a
  feed generation. A batch whose epoch or generation is no longer current
  when it completes is discarded.
"""

import asyncio
from collections.abc import Callable, Coroutine, Sequence
from typing import Any

import structlog

from domain.entities.feed import FeedEvent, Unsubscribe
from domain.entities.friend_request import FriendRequest
from domain.entities.inbox import (
    AggregatedView,
    EnrichedFriendRequest,
    EnrichedGroupInvitation,
    NotificationAlert,
    PostNotificationItem,
)
from domain.entities.notification import Notification
from domain.repositories.social_backend import ISocialBackend
from domain.services.enrichment import EnrichmentResolver
from domain.services.feed_projection import (
    project_group_invitations,
    project_post_notifications,
    reconcile_post_notifications,
)
from domain.services.notification_alerts import NotificationAlerts, unread_count

logger = structlog.get_logger()

ViewListener = Callable[[AggregatedView], None]


class _FeedState:
    """Bookkeeping for one live subscription."""

    __slots__ = ("name", "unsubscribe", "generation", "received")

    def __init__(self, name: str) -> None:
        self.name = name
        self.unsubscribe: Unsubscribe | None = None
        self.generation = 0
        self.received = False

    def reset(self) -> None:
        self.unsubscribe = None
        self.received = False


class InboxService:
    """Aggregates the friend-request and notification feeds of one user."""

    def __init__(
        self,
        backend: ISocialBackend,
        resolver: EnrichmentResolver | None = None,
        alert_display_seconds: float = 5.0,
    ) -> None:
        self._backend = backend
        self._resolver = resolver or EnrichmentResolver(backend)
        self._alerts = NotificationAlerts(alert_display_seconds, on_change=self._publish)

        self._owner_id: str | None = None
        self._epoch = 0
        self._requests_feed = _FeedState("friend_requests")
        self._notifications_feed = _FeedState("notifications")
        self._tasks: set[asyncio.Task[None]] = set()
        self._loaded = asyncio.Event()
        self._listeners: list[ViewListener] = []

        self._raw_requests: tuple[FriendRequest, ...] = ()
        self._raw_notifications: tuple[Notification, ...] = ()
        self._requests: list[EnrichedFriendRequest] = []
        self._invitations: list[EnrichedGroupInvitation] = []
        self._posts: list[PostNotificationItem] = []

    # --- Read side ---

    @property
    def owner_id(self) -> str | None:
        return self._owner_id

    @property
    def epoch(self) -> int:
        """Incremented every time subscriptions are opened or closed."""
        return self._epoch

    @property
    def is_running(self) -> bool:
        return self._owner_id is not None

    @property
    def alert(self) -> NotificationAlert | None:
        return self._alerts.current

    @property
    def view(self) -> AggregatedView:
        """Current state. The lists are shared with the engine: read only."""
        return AggregatedView(
            requests_with_data=self._requests,
            invitations_with_data=self._invitations,
            post_notifications=self._posts,
            unread_count=unread_count(self._raw_requests, self._raw_notifications),
            loading=self.is_running and not self._loaded.is_set(),
            alert=self._alerts.current,
        )

    def add_listener(self, listener: ViewListener) -> Unsubscribe:
        """Call ``listener`` with the new view after every state change."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    # --- Lifecycle ---

    def start(self, owner_id: str | None) -> None:
        """Open the feeds for ``owner_id``; an empty owner means signed out."""
        if not owner_id:
            self.stop()
            return
        if owner_id == self._owner_id:
            return
        if self._owner_id is not None:
            self.stop()

        self._owner_id = owner_id
        self._open(owner_id)

    def stop(self) -> None:
        """Close every feed and clear all state."""
        was_running = self._owner_id is not None
        self._close()
        self._owner_id = None
        self._raw_requests = ()
        self._raw_notifications = ()
        self._requests = []
        self._invitations = []
        self._posts = []
        self._alerts.reset()
        self._loaded.clear()
        if was_running:
            logger.info("inbox_stopped", epoch=self._epoch)
            self._publish()

    def refresh(self) -> None:
        """Replace the subscriptions with fresh ones (new epoch).

        The displayed lists stay as they are until the new feeds deliver.
        """
        owner_id = self._owner_id
        if owner_id is None:
            return
        self._close()
        self._open(owner_id)

    def dismiss_alert(self) -> None:
        self._alerts.dismiss()

    async def drain(self) -> None:
        """Wait until no enrichment batch is outstanding."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def wait_until_loaded(self, timeout: float) -> None:
        """Wait for the first snapshot of every feed, then for enrichment."""
        if self._owner_id is None:
            return
        try:
            await asyncio.wait_for(self._loaded.wait(), timeout)
        except TimeoutError:
            logger.info("inbox_load_timeout", owner_id=self._owner_id, timeout=timeout)
        await self.drain()

    def _open(self, owner_id: str) -> None:
        self._epoch += 1
        epoch = self._epoch
        self._loaded.clear()
        self._requests_feed.reset()
        self._notifications_feed.reset()

        self._requests_feed.unsubscribe = self._subscribe(
            self._requests_feed,
            lambda listener: self._backend.subscribe_friend_requests(owner_id, listener),
            lambda event: self._on_friend_requests(epoch, event),
        )
        self._notifications_feed.unsubscribe = self._subscribe(
            self._notifications_feed,
            lambda listener: self._backend.subscribe_notifications(owner_id, listener),
            lambda event: self._on_notifications(epoch, event),
        )
        logger.info("inbox_subscribed", owner_id=owner_id, epoch=epoch)

    def _subscribe(
        self,
        feed: _FeedState,
        subscribe: Callable[[Callable[[Any], None]], Unsubscribe],
        listener: Callable[[Any], None],
    ) -> Unsubscribe | None:
        try:
            return subscribe(listener)
        except Exception as exc:
            logger.warning("feed_subscribe_failed", feed=feed.name, error=str(exc))
            listener(FeedEvent.failure(str(exc)))
            return None

    def _close(self) -> None:
        self._epoch += 1
        for feed in (self._requests_feed, self._notifications_feed):
            unsubscribe, feed.unsubscribe = feed.unsubscribe, None
            if unsubscribe is None:
                continue
            try:
                unsubscribe()
            except Exception as exc:
                logger.warning("feed_unsubscribe_failed", feed=feed.name, error=str(exc))
        for task in list(self._tasks):
            task.cancel()

    # --- Feed handlers ---

    def _on_friend_requests(self, epoch: int, event: FeedEvent[FriendRequest]) -> None:
        if epoch != self._epoch:
            return
        feed = self._requests_feed
        feed.generation += 1
        self._mark_received(feed)

        if not event.ok:
            logger.warning(
                "feed_error", feed=feed.name, owner_id=self._owner_id, error=event.error
            )
            self._raw_requests = ()
            self._requests = []
            self._publish()
            return

        self._raw_requests = event.items
        if not event.items:
            self._requests = []
            self._publish()
            return

        self._spawn(self._enrich_requests(epoch, feed.generation, event.items))
        self._publish()

    def _on_notifications(self, epoch: int, event: FeedEvent[Notification]) -> None:
        if epoch != self._epoch:
            return
        feed = self._notifications_feed
        feed.generation += 1
        self._mark_received(feed)

        if not event.ok:
            logger.warning(
                "feed_error", feed=feed.name, owner_id=self._owner_id, error=event.error
            )
            self._raw_notifications = ()
            self._invitations = []
            self._posts = []
            self._publish()
            return

        self._raw_notifications = event.items
        self._posts, replaced = reconcile_post_notifications(
            self._posts, project_post_notifications(event.items)
        )
        if replaced:
            logger.debug("post_notifications_replaced", count=len(self._posts))
        self._alerts.observe(event.items)

        invitations = project_group_invitations(event.items)
        if invitations:
            self._spawn(self._enrich_invitations(epoch, feed.generation, invitations))
        else:
            self._invitations = []
        self._publish()

    async def _enrich_requests(
        self, epoch: int, generation: int, requests: Sequence[FriendRequest]
    ) -> None:
        enriched = await self._resolver.enrich_friend_requests(requests)
        if not self._is_current(epoch, self._requests_feed, generation):
            return
        self._requests = enriched
        self._publish()

    async def _enrich_invitations(
        self, epoch: int, generation: int, invitations: Sequence[Notification]
    ) -> None:
        enriched = await self._resolver.enrich_group_invitations(invitations)
        if not self._is_current(epoch, self._notifications_feed, generation):
            return
        self._invitations = enriched
        self._publish()

    def _is_current(self, epoch: int, feed: _FeedState, generation: int) -> bool:
        if epoch == self._epoch and generation == feed.generation:
            return True
        logger.debug(
            "enrichment_batch_discarded",
            feed=feed.name,
            batch_epoch=epoch,
            batch_generation=generation,
            epoch=self._epoch,
            generation=feed.generation,
        )
        return False

    # --- Helpers ---

    def _mark_received(self, feed: _FeedState) -> None:
        feed.received = True
        if self._requests_feed.received and self._notifications_feed.received:
            self._loaded.set()

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: "asyncio.Task[None]") -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("enrichment_batch_failed", error=str(exc), exc_info=exc)

    def _publish(self) -> None:
        if not self._listeners:
            return
        view = self.view
        for listener in list(self._listeners):
            try:
                listener(view)
            except Exception:
                logger.exception("inbox_listener_failed")
