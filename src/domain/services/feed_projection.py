"""Projections of the notification feed and the post-activity diff.

The combined notification feed is split client-side into two disjoint
projections: actionable group invitations and post activity. Post activity
is then reconciled against what is already displayed so that a read-state
change never reorders or rebuilds the list.
"""

from collections.abc import Iterable, Sequence

from domain.entities.inbox import (
    UNKNOWN_USER_NAME,
    UNKNOWN_USERNAME,
    PostNotificationItem,
    SenderSummary,
)
from domain.entities.notification import Notification


def project_group_invitations(notifications: Iterable[Notification]) -> list[Notification]:
    """Unread group invitations, in feed order."""
    return [n for n in notifications if n.is_group_invitation]


def project_post_notifications(notifications: Iterable[Notification]) -> list[PostNotificationItem]:
    """Post activity (read or unread) as display rows, in feed order."""
    return [to_post_item(n) for n in notifications if n.is_post_activity]


def to_post_item(notification: Notification) -> PostNotificationItem:
    """Build a post row from the denormalized sender fields on the notification."""
    return PostNotificationItem(
        id=notification.id,
        type=notification.type,
        from_user_id=notification.from_user_id,
        post_id=notification.post_id or "",
        read=notification.read,
        created_at=notification.created_at,
        message=notification.message,
        from_user=SenderSummary(
            name=notification.from_user_name or UNKNOWN_USER_NAME,
            username=notification.from_user_username or UNKNOWN_USERNAME,
            avatar_url=notification.from_user_avatar or None,
        ),
    )


def membership_key(items: Iterable[PostNotificationItem]) -> str:
    """Order-independent fingerprint of the ids in a list."""
    return ",".join(sorted(item.id for item in items))


def reconcile_post_notifications(
    current: list[PostNotificationItem],
    incoming: Sequence[PostNotificationItem],
) -> tuple[list[PostNotificationItem], bool]:
    """Merge an incoming snapshot into the displayed list.

    Returns ``(list, replaced)``. When membership differs the incoming rows
    replace the list wholesale, in their own order. When membership is the
    same, the current list object and its rows are kept as they are and only
    ``read`` is copied over from the matching incoming row.
    """
    if membership_key(current) != membership_key(incoming):
        return list(incoming), True

    read_by_id = {item.id: item.read for item in incoming}
    for item in current:
        read = read_by_id[item.id]
        if item.read != read:
            item.read = read
    return current, False
