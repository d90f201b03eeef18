"""Notification domain entity and type constants."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4

# --- Notification Type Constants ---


class NotificationTypes:
    """Notification type constants as stored by the backend."""

    # Post activity
    LIKE = "like"
    COMMENT = "comment"
    TAG = "tag"
    MENTION = "mention"

    # Group notifications
    GROUP_INVITATION = "group_invitation"
    GROUP_MESSAGE = "group_message"


POST_ACTIVITY_TYPES = frozenset(
    {
        NotificationTypes.LIKE,
        NotificationTypes.COMMENT,
        NotificationTypes.TAG,
        NotificationTypes.MENTION,
    }
)


@dataclass
class Notification:
    """Domain entity for an in-app notification.

    The ``from_user_*`` fields are denormalized from the sender's profile
    when the notification is created, so post activity can be displayed
    without a profile lookup.
    """

    type: str
    from_user_id: str
    id: str = field(default_factory=lambda: uuid4().hex)
    read: bool = False
    post_id: str | None = None
    group_id: str | None = None
    comment_id: str | None = None
    message: str | None = None
    from_user_name: str | None = None
    from_user_username: str | None = None
    from_user_avatar: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    read_at: datetime | None = None

    @property
    def is_group_invitation(self) -> bool:
        """Unread group invitations are the only ones still actionable."""
        return self.type == NotificationTypes.GROUP_INVITATION and not self.read

    @property
    def is_post_activity(self) -> bool:
        """Post activity is kept regardless of read state."""
        return self.type in POST_ACTIVITY_TYPES and bool(self.post_id)

    @property
    def is_group_message(self) -> bool:
        return self.type == NotificationTypes.GROUP_MESSAGE and bool(self.group_id)
