"""Read-only view models produced by the inbox aggregation engine."""

from dataclasses import dataclass, field
from datetime import datetime

from domain.entities.friend_request import FriendRequestStatus

UNKNOWN_USER_NAME = "Unknown User"
UNKNOWN_USERNAME = "unknown"
UNKNOWN_GROUP_NAME = "Unknown Group"


@dataclass(frozen=True, slots=True)
class SenderSummary:
    """Display data for the user who caused an inbox item."""

    name: str
    username: str
    avatar_url: str | None = None

    @property
    def is_placeholder(self) -> bool:
        return self == PLACEHOLDER_SENDER


PLACEHOLDER_SENDER = SenderSummary(name=UNKNOWN_USER_NAME, username=UNKNOWN_USERNAME)


@dataclass(frozen=True, slots=True)
class GroupSummary:
    """Display data for the group an invitation points at."""

    id: str
    name: str


@dataclass(frozen=True, slots=True)
class EnrichedFriendRequest:
    """Pending friend request with its sender resolved."""

    id: str
    from_user_id: str
    to_user_id: str
    status: FriendRequestStatus
    created_at: datetime
    sender: SenderSummary


@dataclass(frozen=True, slots=True)
class EnrichedGroupInvitation:
    """Unread group invitation with sender and group resolved."""

    id: str
    from_user_id: str
    group_id: str | None
    message: str | None
    created_at: datetime
    sender: SenderSummary
    group: GroupSummary | None

    @property
    def can_accept(self) -> bool:
        return bool(self.group_id)


@dataclass(slots=True)
class PostNotificationItem:
    """Post activity row.

    Not frozen: when a snapshot only changes read state the engine patches
    ``read`` on the existing object instead of replacing the row.
    """

    id: str
    type: str
    from_user_id: str
    post_id: str
    read: bool
    created_at: datetime
    from_user: SenderSummary
    message: str | None = None


@dataclass(frozen=True, slots=True)
class NotificationAlert:
    """Transient in-app alert for the newest unseen activity."""

    id: str
    type: str
    message: str
    from_user_name: str
    from_user_avatar: str | None
    post_id: str | None
    group_id: str | None
    created_at: datetime


@dataclass(frozen=True, slots=True)
class ActionMarkers:
    """Targets currently being processed, one per action family."""

    processing_request_id: str | None = None
    processing_invitation_id: str | None = None
    processing_read_id: str | None = None
    marking_all_read: bool = False
    clearing: bool = False


@dataclass(frozen=True, slots=True)
class SelectionSnapshot:
    """Copy of the selection state for readers."""

    selection_mode: bool = False
    selected_ids: frozenset[str] = frozenset()


@dataclass(frozen=True)
class AggregatedView:
    """Everything the presentation layer needs to render the inbox."""

    requests_with_data: list[EnrichedFriendRequest] = field(default_factory=list)
    invitations_with_data: list[EnrichedGroupInvitation] = field(default_factory=list)
    post_notifications: list[PostNotificationItem] = field(default_factory=list)
    unread_count: int = 0
    loading: bool = False
    alert: NotificationAlert | None = None

    @property
    def has_notifications(self) -> bool:
        return bool(
            self.requests_with_data or self.invitations_with_data or self.post_notifications
        )
