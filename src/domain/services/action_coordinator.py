"""Accept / decline / mark-read actions with single-flight gating.

Actions run in single-flight lanes. Accept and decline of the same item
class share a lane, so at most one request action and one invitation action
are in flight. A call made while its lane is busy is dropped (outcome
``skipped``), never queued. Success is not applied locally: the next feed
snapshot is what removes or updates the item. Failures become user-facing
notices and leave the item in place.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum

import structlog

from domain.entities.feed import MutationResult
from domain.entities.inbox import ActionMarkers
from domain.repositories.social_backend import ISocialBackend

logger = structlog.get_logger()


class ActionFamily(StrEnum):
    """Kinds of inbox action, reported back on every outcome."""

    ACCEPT_FRIEND_REQUEST = "accept_friend_request"
    DECLINE_FRIEND_REQUEST = "decline_friend_request"
    ACCEPT_GROUP_INVITATION = "accept_group_invitation"
    DECLINE_GROUP_INVITATION = "decline_group_invitation"
    MARK_READ = "mark_read"
    MARK_ALL_READ = "mark_all_read"
    DELETE_NOTIFICATIONS = "delete_notifications"

    @property
    def lane(self) -> str:
        """Single-flight lane; accept and decline of one item class share it."""
        return _SHARED_LANES.get(self, self.value)


_SHARED_LANES = {
    ActionFamily.ACCEPT_FRIEND_REQUEST: "friend_request",
    ActionFamily.DECLINE_FRIEND_REQUEST: "friend_request",
    ActionFamily.ACCEPT_GROUP_INVITATION: "group_invitation",
    ActionFamily.DECLINE_GROUP_INVITATION: "group_invitation",
}


class ActionStatus(StrEnum):
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class ActionOutcome:
    """What happened to one action request."""

    family: ActionFamily
    status: ActionStatus
    target_id: str | None = None
    message: str | None = None

    @property
    def completed(self) -> bool:
        return self.status == ActionStatus.COMPLETED


class NoticeLevel(StrEnum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Notice:
    """Transient message for the user."""

    level: NoticeLevel
    title: str
    message: str


NoticeSink = Callable[[Notice], None]


class SingleFlight:
    """Tracks the one in-flight target per lane."""

    def __init__(self) -> None:
        self._active: dict[str, str] = {}

    def current(self, family: ActionFamily) -> str | None:
        return self._active.get(family.lane)

    def try_acquire(self, family: ActionFamily, target_id: str) -> bool:
        if family.lane in self._active:
            return False
        self._active[family.lane] = target_id
        return True

    def release(self, family: ActionFamily) -> None:
        self._active.pop(family.lane, None)


async def run_single_flight(
    flights: SingleFlight,
    family: ActionFamily,
    target_id: str,
    call: Callable[[], Awaitable[MutationResult]],
    failure_message: str,
    notify: NoticeSink,
    success_notice: Notice | None = None,
) -> ActionOutcome:
    """Run one backend mutation under the family's single-flight marker.

    The marker is always released, whatever the mutation does.
    """
    if not flights.try_acquire(family, target_id):
        logger.debug(
            "action_already_in_flight",
            action=family.value,
            target_id=target_id,
            in_flight=flights.current(family),
        )
        return ActionOutcome(family, ActionStatus.SKIPPED, target_id)

    try:
        try:
            result = await call()
        except Exception as exc:
            logger.error(
                "action_raised", action=family.value, target_id=target_id, error=str(exc)
            )
            result = MutationResult.failed(f"{failure_message}. Please try again.")

        if result.success:
            logger.info("action_completed", action=family.value, target_id=target_id)
            if success_notice is not None:
                notify(success_notice)
            return ActionOutcome(
                family,
                ActionStatus.COMPLETED,
                target_id,
                success_notice.message if success_notice else None,
            )

        message = result.error or failure_message
        logger.warning(
            "action_failed", action=family.value, target_id=target_id, error=message
        )
        notify(Notice(NoticeLevel.ERROR, "Error", message))
        return ActionOutcome(family, ActionStatus.FAILED, target_id, message)
    finally:
        flights.release(family)


class ActionCoordinator:
    """Action entry points for one signed-in user."""

    def __init__(
        self,
        backend: ISocialBackend,
        owner_id: str,
        on_notice: NoticeSink | None = None,
        flights: SingleFlight | None = None,
    ) -> None:
        self._backend = backend
        self._owner_id = owner_id
        self._on_notice = on_notice
        self._flights = flights or SingleFlight()

    @property
    def flights(self) -> SingleFlight:
        return self._flights

    def processing(self, family: ActionFamily) -> str | None:
        """Target currently in flight in the family's lane, if any."""
        return self._flights.current(family)

    @property
    def markers(self) -> ActionMarkers:
        return ActionMarkers(
            processing_request_id=self.processing(ActionFamily.ACCEPT_FRIEND_REQUEST),
            processing_invitation_id=self.processing(ActionFamily.ACCEPT_GROUP_INVITATION),
            processing_read_id=self.processing(ActionFamily.MARK_READ),
            marking_all_read=self.processing(ActionFamily.MARK_ALL_READ) is not None,
            clearing=self.processing(ActionFamily.DELETE_NOTIFICATIONS) is not None,
        )

    # --- Friend requests ---

    async def accept_friend_request(self, request_id: str, from_user_id: str) -> ActionOutcome:
        return await run_single_flight(
            self._flights,
            ActionFamily.ACCEPT_FRIEND_REQUEST,
            request_id,
            lambda: self._backend.accept_friend_request(request_id, from_user_id, self._owner_id),
            failure_message="Failed to accept friend request",
            notify=self._notify,
            success_notice=Notice(NoticeLevel.SUCCESS, "Success", "Friend request accepted!"),
        )

    async def decline_friend_request(self, request_id: str) -> ActionOutcome:
        return await run_single_flight(
            self._flights,
            ActionFamily.DECLINE_FRIEND_REQUEST,
            request_id,
            lambda: self._backend.decline_friend_request(request_id, self._owner_id),
            failure_message="Failed to decline friend request",
            notify=self._notify,
        )

    # --- Group invitations ---

    async def accept_group_invitation(
        self, notification_id: str, group_id: str | None
    ) -> ActionOutcome:
        if not group_id:
            logger.info(
                "action_precondition_failed",
                action=ActionFamily.ACCEPT_GROUP_INVITATION.value,
                target_id=notification_id,
                reason="missing_group_id",
            )
            return ActionOutcome(
                ActionFamily.ACCEPT_GROUP_INVITATION, ActionStatus.SKIPPED, notification_id
            )
        return await run_single_flight(
            self._flights,
            ActionFamily.ACCEPT_GROUP_INVITATION,
            notification_id,
            lambda: self._backend.accept_group_invitation(
                group_id, self._owner_id, notification_id
            ),
            failure_message="Failed to accept group invitation",
            notify=self._notify,
        )

    async def decline_group_invitation(self, notification_id: str) -> ActionOutcome:
        return await run_single_flight(
            self._flights,
            ActionFamily.DECLINE_GROUP_INVITATION,
            notification_id,
            lambda: self._backend.decline_group_invitation(notification_id, self._owner_id),
            failure_message="Failed to decline group invitation",
            notify=self._notify,
        )

    # --- Read state ---

    async def mark_read(self, notification_id: str) -> ActionOutcome:
        return await run_single_flight(
            self._flights,
            ActionFamily.MARK_READ,
            notification_id,
            lambda: self._backend.mark_notification_read(self._owner_id, notification_id),
            failure_message="Failed to mark notification as read",
            notify=self._notify,
        )

    async def mark_all_read(self) -> ActionOutcome:
        return await run_single_flight(
            self._flights,
            ActionFamily.MARK_ALL_READ,
            self._owner_id,
            lambda: self._backend.mark_all_notifications_read(self._owner_id),
            failure_message="Failed to mark notifications as read",
            notify=self._notify,
        )

    def _notify(self, notice: Notice) -> None:
        if self._on_notice is None:
            return
        try:
            self._on_notice(notice)
        except Exception:
            logger.exception("notice_sink_failed")
