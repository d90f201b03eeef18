"""Relational implementation of the social backend consumed by the inbox.

Wraps :class:`SocialGraphService` and turns its exceptions into result
values. Live feeds are polling feeds registered in a :class:`FeedHub`; every
successful mutation nudges the feeds of the users it touched.
"""

from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

import structlog

from core.exceptions import AppException
from domain.entities.feed import LookupResult, MutationResult, Unsubscribe
from domain.entities.group import Group
from domain.entities.profile import Profile
from domain.repositories.social_backend import FriendRequestListener, NotificationListener
from domain.services.social_graph_service import SocialGraphService
from infrastructure.realtime.polling_feed import FeedHub, PollingFeed

logger = structlog.get_logger()

T = TypeVar("T")


class SQLAlchemySocialBackend:
    """ISocialBackend implementation on top of the SQLAlchemy unit of work."""

    def __init__(
        self,
        service: SocialGraphService,
        poll_interval: float = 2.0,
        friend_request_page_size: int = 50,
        notification_page_size: int = 50,
        hub: FeedHub | None = None,
    ) -> None:
        self._service = service
        self._poll_interval = poll_interval
        self._friend_request_page_size = friend_request_page_size
        self._notification_page_size = notification_page_size
        self._hub = hub or FeedHub()

    @property
    def hub(self) -> FeedHub:
        return self._hub

    # --- Live feeds ---

    def subscribe_friend_requests(
        self, owner_id: str, on_event: FriendRequestListener
    ) -> Unsubscribe:
        feed = PollingFeed(
            f"friend_requests:{owner_id}",
            lambda: self._service.list_pending_friend_requests(
                owner_id, limit=self._friend_request_page_size
            ),
            on_event,
            self._poll_interval,
        )
        return self._hub.register(owner_id, feed)

    def subscribe_notifications(self, owner_id: str, on_event: NotificationListener) -> Unsubscribe:
        feed = PollingFeed(
            f"notifications:{owner_id}",
            lambda: self._service.list_notifications(owner_id, limit=self._notification_page_size),
            on_event,
            self._poll_interval,
        )
        return self._hub.register(owner_id, feed)

    def close(self) -> None:
        """Stop every open feed."""
        self._hub.close_all()

    # --- Lookups ---

    async def get_profile_by_id(self, user_id: str) -> LookupResult[Profile]:
        return await self._lookup("get_profile_by_id", lambda: self._service.get_profile(user_id))

    async def get_group_by_id(self, group_id: str) -> LookupResult[Group]:
        return await self._lookup("get_group_by_id", lambda: self._service.get_group(group_id))

    # --- Mutations ---

    async def accept_friend_request(
        self, request_id: str, from_user_id: str, to_user_id: str
    ) -> MutationResult:
        return await self._mutate(
            "accept_friend_request",
            lambda: self._service.accept_friend_request(request_id, from_user_id, to_user_id),
            touched=(from_user_id, to_user_id),
        )

    async def decline_friend_request(self, request_id: str, user_id: str) -> MutationResult:
        return await self._mutate(
            "decline_friend_request",
            lambda: self._service.decline_friend_request(request_id, user_id),
            touched=lambda request: (request.from_user_id, request.to_user_id),
        )

    async def accept_group_invitation(
        self, group_id: str, user_id: str, notification_id: str
    ) -> MutationResult:
        return await self._mutate(
            "accept_group_invitation",
            lambda: self._service.accept_group_invitation(group_id, user_id, notification_id),
            touched=(user_id,),
        )

    async def decline_group_invitation(self, notification_id: str, user_id: str) -> MutationResult:
        return await self._mutate(
            "decline_group_invitation",
            lambda: self._service.decline_group_invitation(notification_id, user_id),
            touched=(user_id,),
        )

    async def mark_notification_read(self, user_id: str, notification_id: str) -> MutationResult:
        return await self._mutate(
            "mark_notification_read",
            lambda: self._service.mark_read(user_id, notification_id),
            touched=(user_id,),
        )

    async def mark_all_notifications_read(self, user_id: str) -> MutationResult:
        return await self._mutate(
            "mark_all_notifications_read",
            lambda: self._service.mark_all_read(user_id),
            touched=(user_id,),
            detail="count",
        )

    async def delete_notifications(self, user_id: str, notification_ids: list[str]) -> MutationResult:
        return await self._mutate(
            "delete_notifications",
            lambda: self._service.delete_notifications(user_id, list(notification_ids)),
            touched=(user_id,),
            detail="count",
        )

    # --- Helpers ---

    async def _lookup(
        self, operation: str, call: Callable[[], Awaitable[T]]
    ) -> LookupResult[T]:
        try:
            return LookupResult.found(await call())
        except AppException as exc:
            logger.debug("backend_lookup_missing", operation=operation, error=exc.message)
            return LookupResult.missing(exc.message)
        except Exception as exc:
            logger.warning("backend_lookup_failed", operation=operation, error=str(exc))
            return LookupResult.missing(str(exc))

    async def _mutate(
        self,
        operation: str,
        call: Callable[[], Awaitable[object]],
        touched: Iterable[str] | Callable[[Any], Iterable[str]],
        detail: str | None = None,
    ) -> MutationResult:
        try:
            value = await call()
        except AppException as exc:
            logger.info(
                "backend_mutation_rejected",
                operation=operation,
                error_code=exc.error_code,
                error=exc.message,
            )
            return MutationResult.failed(exc.message)
        except Exception as exc:
            logger.exception("backend_mutation_failed", operation=operation)
            return MutationResult.failed(str(exc))

        self._hub.nudge(*(touched(value) if callable(touched) else touched))
        if detail is None:
            return MutationResult.ok()
        return MutationResult.ok(**{detail: value})
