"""Notification repository protocol."""

from typing import Protocol

from domain.entities.notification import Notification


class INotificationRepository(Protocol):
    """Repository interface for a user's notifications."""

    async def create(self, user_id: str, notification: Notification) -> Notification:
        """Create a notification addressed to a user."""
        ...

    async def get(self, user_id: str, notification_id: str) -> Notification | None:
        """Get one of a user's notifications by ID."""
        ...

    async def get_user_notifications(self, user_id: str, limit: int = 50) -> list[Notification]:
        """Get a user's notifications, newest first."""
        ...

    async def mark_read(self, user_id: str, notification_id: str) -> bool:
        """Mark a notification as read. Returns False if not found."""
        ...

    async def mark_all_read(self, user_id: str) -> int:
        """Mark every unread notification as read. Returns count updated."""
        ...

    async def delete(self, user_id: str, notification_id: str) -> bool:
        """Delete a notification permanently. Returns False if not found."""
        ...

    async def delete_many(self, user_id: str, notification_ids: list[str]) -> int:
        """Delete several notifications owned by the user. Returns count deleted."""
        ...
