"""Shared fixtures for unit tests."""

import asyncio
from datetime import datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock

import pytest

from domain.entities.feed import FeedEvent, LookupResult, MutationResult
from domain.entities.friend_request import FriendRequest
from domain.entities.group import Group
from domain.entities.notification import Notification, NotificationTypes
from domain.entities.profile import Profile

OWNER_ID = "owner"
BASE_TIME = datetime(2024, 5, 1, 12, 0, 0)


class FakeUnitOfWork:
    """Fake Unit of Work with repository mocks for unit testing."""

    def __init__(self) -> None:
        self.profiles = AsyncMock()
        self.groups = AsyncMock()
        self.friend_requests = AsyncMock()
        self.notifications = AsyncMock()
        self.committed = False
        self.rolled_back = False

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True

    async def __aenter__(self) -> "FakeUnitOfWork":
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass


class FakeSocialBackend:
    """In-memory social backend whose feeds are driven by the test.

    Lookups read ``profiles`` / ``groups``; ``lookup_delays`` slows down a
    lookup by id and ``failing_lookups`` makes it raise. Mutations are
    AsyncMocks returning success unless reconfigured.
    """

    def __init__(self) -> None:
        self.request_listeners: list[Any] = []
        self.notification_listeners: list[Any] = []
        self.unsubscribe_calls = 0
        self.profiles: dict[str, Profile] = {}
        self.groups: dict[str, Group] = {}
        self.lookup_delays: dict[str, float] = {}
        self.failing_lookups: set[str] = set()
        self.profile_lookups: list[str] = []

        self.accept_friend_request = AsyncMock(return_value=MutationResult.ok())
        self.decline_friend_request = AsyncMock(return_value=MutationResult.ok())
        self.accept_group_invitation = AsyncMock(return_value=MutationResult.ok())
        self.decline_group_invitation = AsyncMock(return_value=MutationResult.ok())
        self.mark_notification_read = AsyncMock(return_value=MutationResult.ok())
        self.mark_all_notifications_read = AsyncMock(return_value=MutationResult.ok(count=0))
        self.delete_notifications = AsyncMock(return_value=MutationResult.ok(count=0))

    # --- Feeds ---

    def subscribe_friend_requests(self, owner_id: str, on_event: Any) -> Any:
        return self._subscribe(self.request_listeners, on_event)

    def subscribe_notifications(self, owner_id: str, on_event: Any) -> Any:
        return self._subscribe(self.notification_listeners, on_event)

    def _subscribe(self, listeners: list[Any], on_event: Any) -> Any:
        listeners.append(on_event)

        def unsubscribe() -> None:
            self.unsubscribe_calls += 1
            if on_event in listeners:
                listeners.remove(on_event)

        return unsubscribe

    def emit_friend_requests(self, requests: list[FriendRequest]) -> None:
        for listener in list(self.request_listeners):
            listener(FeedEvent.snapshot(requests))

    def emit_notifications(self, notifications: list[Notification]) -> None:
        for listener in list(self.notification_listeners):
            listener(FeedEvent.snapshot(notifications))

    def fail_friend_requests(self, error: str = "permission denied") -> None:
        for listener in list(self.request_listeners):
            listener(FeedEvent.failure(error))

    def fail_notifications(self, error: str = "permission denied") -> None:
        for listener in list(self.notification_listeners):
            listener(FeedEvent.failure(error))

    # --- Lookups ---

    async def get_profile_by_id(self, user_id: str) -> LookupResult[Profile]:
        self.profile_lookups.append(user_id)
        await self._delay(user_id)
        profile = self.profiles.get(user_id)
        return LookupResult.found(profile) if profile else LookupResult.missing("User not found")

    async def get_group_by_id(self, group_id: str) -> LookupResult[Group]:
        await self._delay(group_id)
        group = self.groups.get(group_id)
        return LookupResult.found(group) if group else LookupResult.missing("Group not found")

    async def _delay(self, key: str) -> None:
        delay = self.lookup_delays.get(key)
        if delay:
            await asyncio.sleep(delay)
        if key in self.failing_lookups:
            raise ConnectionError(f"lookup of {key} failed")


# --- Builders ---


def make_request(from_user_id: str, minutes: int = 0) -> FriendRequest:
    return FriendRequest(
        from_user_id=from_user_id,
        to_user_id=OWNER_ID,
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


def make_post_notification(
    notification_id: str,
    notification_type: str = NotificationTypes.LIKE,
    read: bool = False,
    minutes: int = 0,
    from_user_id: str = "sender",
) -> Notification:
    return Notification(
        id=notification_id,
        type=notification_type,
        from_user_id=from_user_id,
        post_id=f"post-{notification_id}",
        read=read,
        from_user_name="Sam Sender",
        from_user_username="sam",
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


def make_invitation(
    notification_id: str,
    group_id: str | None = "group-1",
    read: bool = False,
    from_user_id: str = "inviter",
    minutes: int = 0,
) -> Notification:
    return Notification(
        id=notification_id,
        type=NotificationTypes.GROUP_INVITATION,
        from_user_id=from_user_id,
        group_id=group_id,
        read=read,
        message='invited you to join "Hikers"',
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


@pytest.fixture
def uow() -> FakeUnitOfWork:
    """Create a fresh FakeUnitOfWork."""
    return FakeUnitOfWork()


@pytest.fixture
def backend() -> FakeSocialBackend:
    """Create a fresh FakeSocialBackend."""
    return FakeSocialBackend()


@pytest.fixture
def owner_id() -> str:
    return OWNER_ID
