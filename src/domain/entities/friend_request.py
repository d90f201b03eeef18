"""Friend request domain entity."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


class FriendRequestStatus(StrEnum):
    """Status of a friend request."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


def friend_request_id(from_user_id: str, to_user_id: str) -> str:
    """Deterministic request id, one request per ordered pair of users."""
    return f"{from_user_id}_{to_user_id}"


@dataclass
class FriendRequest:
    """Domain entity for a friend request between two users."""

    from_user_id: str
    to_user_id: str
    id: str = ""
    status: FriendRequestStatus = FriendRequestStatus.PENDING
    created_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        if not self.id:
            self.id = friend_request_id(self.from_user_id, self.to_user_id)

    @property
    def is_pending(self) -> bool:
        return self.status == FriendRequestStatus.PENDING

    def is_between(self, from_user_id: str, to_user_id: str) -> bool:
        """True if the request goes from ``from_user_id`` to ``to_user_id``."""
        return self.from_user_id == from_user_id and self.to_user_id == to_user_id
