"""Protocol for the backing store the inbox consumes.

Every call returns a result value instead of raising.
"""

from collections.abc import Callable
from typing import Protocol

from domain.entities.feed import FeedEvent, LookupResult, MutationResult, Unsubscribe
from domain.entities.friend_request import FriendRequest
from domain.entities.group import Group
from domain.entities.notification import Notification
from domain.entities.profile import Profile

FriendRequestListener = Callable[[FeedEvent[FriendRequest]], None]
NotificationListener = Callable[[FeedEvent[Notification]], None]


class ISocialBackend(Protocol):
    """Live feeds, point lookups and mutations against the social store."""

    # --- Live feeds ---

    def subscribe_friend_requests(
        self, owner_id: str, on_event: FriendRequestListener
    ) -> Unsubscribe:
        """Stream full snapshots of the pending requests addressed to owner_id."""
        ...

    def subscribe_notifications(
        self, owner_id: str, on_event: NotificationListener
    ) -> Unsubscribe:
        """Stream full snapshots of owner_id's notifications, newest first."""
        ...

    # --- Lookups ---

    async def get_profile_by_id(self, user_id: str) -> LookupResult[Profile]:
        """Look up a user profile."""
        ...

    async def get_group_by_id(self, group_id: str) -> LookupResult[Group]:
        """Look up a group."""
        ...

    # --- Mutations ---

    async def accept_friend_request(
        self, request_id: str, from_user_id: str, to_user_id: str
    ) -> MutationResult:
        """Link both users as friends and remove the request."""
        ...

    async def decline_friend_request(self, request_id: str, user_id: str) -> MutationResult:
        """Remove a request addressed to user_id."""
        ...

    async def accept_group_invitation(
        self, group_id: str, user_id: str, notification_id: str
    ) -> MutationResult:
        """Join the group named by user_id's invitation and remove the invitation."""
        ...

    async def decline_group_invitation(self, notification_id: str, user_id: str) -> MutationResult:
        """Remove the invitation."""
        ...

    async def mark_notification_read(self, user_id: str, notification_id: str) -> MutationResult:
        """Set the read flag on one notification."""
        ...

    async def mark_all_notifications_read(self, user_id: str) -> MutationResult:
        """Set the read flag on every unread notification."""
        ...

    async def delete_notifications(self, user_id: str, notification_ids: list[str]) -> MutationResult:
        """Permanently delete several notifications in one call."""
        ...
