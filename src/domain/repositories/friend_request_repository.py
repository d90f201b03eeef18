"""Friend request repository protocol."""

from typing import Protocol

from domain.entities.friend_request import FriendRequest


class IFriendRequestRepository(Protocol):
    """Repository interface for FriendRequest entities."""

    async def get(self, request_id: str) -> FriendRequest | None:
        """Get a friend request by ID."""
        ...

    async def create(self, request: FriendRequest) -> FriendRequest:
        """Create a new friend request."""
        ...

    async def delete(self, request_id: str) -> bool:
        """Hard-delete a friend request. Returns False if it did not exist."""
        ...

    async def get_pending_for_user(self, user_id: str, limit: int = 50) -> list[FriendRequest]:
        """Get pending requests addressed to a user, newest first."""
        ...
