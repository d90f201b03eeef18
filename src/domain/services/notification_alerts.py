"""New-notification alerts and the unread badge."""

import asyncio
from collections.abc import Callable, Iterable, Sequence

import structlog

from domain.entities.friend_request import FriendRequest
from domain.entities.inbox import NotificationAlert
from domain.entities.notification import Notification, NotificationTypes

logger = structlog.get_logger()

_ACTIVITY_MESSAGES = {
    NotificationTypes.LIKE: "liked your post",
    NotificationTypes.COMMENT: "commented on your post",
    NotificationTypes.TAG: "tagged you in a post",
    NotificationTypes.MENTION: "mentioned you",
    NotificationTypes.GROUP_MESSAGE: "sent a message in a group",
}
DEFAULT_ACTIVITY_MESSAGE = "interacted with your post"


def activity_message(notification_type: str) -> str:
    """Human-readable verb phrase for a notification type."""
    return _ACTIVITY_MESSAGES.get(notification_type, DEFAULT_ACTIVITY_MESSAGE)


def is_alert_candidate(notification: Notification) -> bool:
    """Unread post activity or group chat messages raise an alert."""
    return not notification.read and (notification.is_post_activity or notification.is_group_message)


def unread_count(
    requests: Iterable[FriendRequest], notifications: Iterable[Notification]
) -> int:
    """Badge count across friend requests, invitations and activity."""
    pending = sum(1 for r in requests if r.is_pending)
    unread = sum(
        1
        for n in notifications
        if not n.read
        and (
            n.type == NotificationTypes.GROUP_INVITATION
            or n.is_post_activity
            or n.is_group_message
        )
    )
    return pending + unread


def build_alert(notification: Notification) -> NotificationAlert:
    sender_name = notification.from_user_name or "Someone"
    return NotificationAlert(
        id=notification.id,
        type=notification.type,
        message=notification.message or f"{sender_name} {activity_message(notification.type)}",
        from_user_name=sender_name,
        from_user_avatar=notification.from_user_avatar,
        post_id=notification.post_id,
        group_id=notification.group_id,
        created_at=notification.created_at,
    )


class NotificationAlerts:
    """Tracks which notifications the user has already been alerted about.

    Each snapshot may produce at most one alert: the most recent unread
    candidate never seen before. Every candidate in the snapshot is then
    remembered, so older items never pop up later.
    """

    def __init__(
        self,
        display_seconds: float = 5.0,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._display_seconds = display_seconds
        self._on_change = on_change
        self._seen: set[str] = set()
        self._latest: NotificationAlert | None = None
        self._visible = False
        self._hide_handle: asyncio.TimerHandle | None = None

    @property
    def latest(self) -> NotificationAlert | None:
        return self._latest

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def current(self) -> NotificationAlert | None:
        """The alert to display right now, if any."""
        return self._latest if self._visible else None

    def observe(self, notifications: Sequence[Notification]) -> NotificationAlert | None:
        """Process one notification snapshot. Returns the new alert, if any."""
        candidates = sorted(
            (n for n in notifications if is_alert_candidate(n)),
            key=lambda n: n.created_at,
            reverse=True,
        )
        fresh = next((n for n in candidates if n.id not in self._seen), None)
        self._seen.update(n.id for n in candidates)

        if fresh is None:
            return None

        alert = build_alert(fresh)
        self._latest = alert
        self._visible = True
        self._schedule_hide()
        logger.debug("notification_alert_raised", notification_id=alert.id, type=alert.type)
        return alert

    def dismiss(self) -> None:
        """Hide and forget the current alert."""
        self._cancel_hide()
        changed = self._visible or self._latest is not None
        self._visible = False
        self._latest = None
        if changed:
            self._notify()

    def reset(self) -> None:
        """Forget everything, e.g. when the user signs out."""
        self._cancel_hide()
        self._seen.clear()
        self._latest = None
        self._visible = False

    def _schedule_hide(self) -> None:
        self._cancel_hide()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._hide_handle = loop.call_later(self._display_seconds, self._hide)

    def _cancel_hide(self) -> None:
        if self._hide_handle is not None:
            self._hide_handle.cancel()
            self._hide_handle = None

    def _hide(self) -> None:
        self._hide_handle = None
        if self._visible:
            self._visible = False
            self._notify()

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()
