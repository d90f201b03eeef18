"""Social graph service: friend requests, group invitations, notifications."""

from collections.abc import Callable

import structlog

from core.exceptions import (
    AlreadyAGroupMemberError,
    AlreadyFriendsError,
    DuplicateFriendRequestError,
    FriendRequestNotFoundError,
    GroupNotFoundError,
    InvalidFriendRequestError,
    NotificationNotFoundError,
    UserNotFoundError,
)
from domain.entities.friend_request import FriendRequest, friend_request_id
from domain.entities.group import Group
from domain.entities.notification import Notification, NotificationTypes
from domain.entities.profile import Profile
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()


class SocialGraphService:
    """Service layer for the social graph behind the inbox."""

    def __init__(self, uow_factory: Callable[[], IUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    # --- Lookups ---

    async def get_profile(self, user_id: str) -> Profile:
        """Get a user profile.

        Raises:
            UserNotFoundError: If the profile does not exist.
        """
        async with self._uow_factory() as uow:
            profile = await uow.profiles.get(user_id)
            if not profile:
                raise UserNotFoundError(user_id)
            return profile

    async def get_group(self, group_id: str) -> Group:
        """Get a group.

        Raises:
            GroupNotFoundError: If the group does not exist.
        """
        async with self._uow_factory() as uow:
            group = await uow.groups.get(group_id)
            if not group:
                raise GroupNotFoundError(group_id)
            return group

    async def list_pending_friend_requests(
        self, user_id: str, limit: int = 50
    ) -> list[FriendRequest]:
        """Pending requests addressed to a user, newest first."""
        async with self._uow_factory() as uow:
            return await uow.friend_requests.get_pending_for_user(user_id, limit=limit)

    async def list_notifications(self, user_id: str, limit: int = 50) -> list[Notification]:
        """A user's notifications, newest first."""
        async with self._uow_factory() as uow:
            return await uow.notifications.get_user_notifications(user_id, limit=limit)

    # --- Friend requests ---

    async def send_friend_request(self, from_user_id: str, to_user_id: str) -> FriendRequest:
        """Create a pending friend request.

        Raises:
            InvalidFriendRequestError: If an id is missing or both are the same.
            AlreadyFriendsError: If the users are already friends.
            DuplicateFriendRequestError: If a request already exists.
        """
        if not from_user_id or not to_user_id or from_user_id == to_user_id:
            raise InvalidFriendRequestError()

        async with self._uow_factory() as uow:
            sender = await uow.profiles.get(from_user_id)
            if sender and sender.is_friend_of(to_user_id):
                raise AlreadyFriendsError(to_user_id)

            request_id = friend_request_id(from_user_id, to_user_id)
            existing = await uow.friend_requests.get(request_id)
            if existing:
                raise DuplicateFriendRequestError(request_id, pending=existing.is_pending)

            created = await uow.friend_requests.create(
                FriendRequest(from_user_id=from_user_id, to_user_id=to_user_id, id=request_id)
            )
            await uow.commit()

            logger.info("friend_request_sent", from_user_id=from_user_id, to_user_id=to_user_id)
            return created

    async def accept_friend_request(
        self, request_id: str, from_user_id: str, to_user_id: str
    ) -> None:
        """Link both users as friends and delete the request, atomically.

        The stored request must be from ``from_user_id`` to ``to_user_id``.
        If the users are already friends the request is simply deleted.

        Raises:
            FriendRequestNotFoundError: If no such request exists between the two users.
            UserNotFoundError: If either user does not exist.
        """
        async with self._uow_factory() as uow:
            request = await uow.friend_requests.get(request_id)
            if not request or not request.is_between(from_user_id, to_user_id):
                raise FriendRequestNotFoundError(request_id)

            from_user = await uow.profiles.get(from_user_id)
            if not from_user:
                raise UserNotFoundError(from_user_id)
            to_user = await uow.profiles.get(to_user_id)
            if not to_user:
                raise UserNotFoundError(to_user_id)

            if not await uow.profiles.are_friends(from_user_id, to_user_id):
                await uow.profiles.add_friendship(from_user_id, to_user_id)

            await uow.friend_requests.delete(request_id)
            await uow.commit()

            logger.info(
                "friend_request_accepted",
                request_id=request_id,
                from_user_id=from_user_id,
                to_user_id=to_user_id,
            )

    async def decline_friend_request(self, request_id: str, user_id: str) -> FriendRequest:
        """Delete a request addressed to ``user_id``. Returns the deleted request.

        Raises:
            FriendRequestNotFoundError: If ``user_id`` has no such incoming request.
        """
        async with self._uow_factory() as uow:
            request = await uow.friend_requests.get(request_id)
            if not request or request.to_user_id != user_id:
                raise FriendRequestNotFoundError(request_id)

            await uow.friend_requests.delete(request_id)
            await uow.commit()
            logger.info("friend_request_declined", request_id=request_id, user_id=user_id)
            return request

    # --- Groups ---

    async def create_group(self, name: str, created_by: str, description: str | None = None) -> Group:
        """Create a group with its creator as the first member."""
        async with self._uow_factory() as uow:
            group = await uow.groups.create(
                Group(name=name, created_by=created_by, description=description, members=[created_by])
            )
            await uow.commit()
            return group

    async def send_group_invitation(
        self, group_id: str, from_user_id: str, to_user_id: str
    ) -> Notification:
        """Invite a user to a group via a ``group_invitation`` notification.

        Raises:
            GroupNotFoundError: If the group does not exist.
            AlreadyAGroupMemberError: If the invitee is already a member.
            UserNotFoundError: If the inviting user does not exist.
        """
        async with self._uow_factory() as uow:
            group = await uow.groups.get(group_id)
            if not group:
                raise GroupNotFoundError(group_id)
            if group.has_member(to_user_id):
                raise AlreadyAGroupMemberError(to_user_id)

            name = group.name or "the group"
            notification = await self._create_notification(
                uow,
                user_id=to_user_id,
                notification_type=NotificationTypes.GROUP_INVITATION,
                from_user_id=from_user_id,
                group_id=group_id,
                message=f'invited you to join "{name}"',
            )
            await uow.commit()
            return notification

    async def accept_group_invitation(
        self, group_id: str, user_id: str, notification_id: str
    ) -> None:
        """Join the invited group (unless already a member) and delete the invitation.

        ``notification_id`` must be a group invitation addressed to ``user_id``
        for ``group_id``.

        Raises:
            NotificationNotFoundError: If there is no matching invitation.
            GroupNotFoundError: If the group does not exist.
        """
        async with self._uow_factory() as uow:
            await self._get_invitation(uow, user_id, notification_id, group_id)

            group = await uow.groups.get(group_id)
            if not group:
                raise GroupNotFoundError(group_id)

            if not group.has_member(user_id):
                await uow.groups.add_member(group_id, user_id)

            await uow.notifications.delete(user_id, notification_id)
            await uow.commit()

            logger.info("group_invitation_accepted", group_id=group_id, user_id=user_id)

    async def decline_group_invitation(self, notification_id: str, user_id: str) -> None:
        """Delete one of ``user_id``'s group invitations.

        Raises:
            UserNotFoundError: If the user does not exist.
            NotificationNotFoundError: If the user has no such invitation.
        """
        async with self._uow_factory() as uow:
            if not await uow.profiles.get(user_id):
                raise UserNotFoundError(user_id)

            await self._get_invitation(uow, user_id, notification_id)
            await uow.notifications.delete(user_id, notification_id)
            await uow.commit()

            logger.info("group_invitation_declined", notification_id=notification_id)

    # --- Notifications ---

    async def create_notification(
        self,
        user_id: str,
        notification_type: str,
        from_user_id: str,
        post_id: str | None = None,
        group_id: str | None = None,
        comment_id: str | None = None,
        message: str | None = None,
    ) -> Notification:
        """Record an in-app notification for ``user_id``.

        Raises:
            UserNotFoundError: If the sending user does not exist.
        """
        async with self._uow_factory() as uow:
            notification = await self._create_notification(
                uow,
                user_id=user_id,
                notification_type=notification_type,
                from_user_id=from_user_id,
                post_id=post_id,
                group_id=group_id,
                comment_id=comment_id,
                message=message,
            )
            await uow.commit()
            return notification

    async def mark_read(self, user_id: str, notification_id: str) -> None:
        """Mark one notification as read.

        Raises:
            NotificationNotFoundError: If the user has no such notification.
        """
        async with self._uow_factory() as uow:
            if not await uow.notifications.mark_read(user_id, notification_id):
                raise NotificationNotFoundError(notification_id)
            await uow.commit()

    async def mark_all_read(self, user_id: str) -> int:
        """Mark every unread notification as read. Returns count marked."""
        async with self._uow_factory() as uow:
            count = await uow.notifications.mark_all_read(user_id)
            await uow.commit()
            return count

    async def delete_notifications(self, user_id: str, notification_ids: list[str]) -> int:
        """Permanently delete notifications. Ids the user does not own are ignored."""
        if not notification_ids:
            return 0
        async with self._uow_factory() as uow:
            count = await uow.notifications.delete_many(user_id, notification_ids)
            await uow.commit()
            logger.info(
                "notifications_deleted",
                user_id=user_id,
                requested=len(notification_ids),
                deleted=count,
            )
            return count

    async def _get_invitation(
        self,
        uow: IUnitOfWork,
        user_id: str,
        notification_id: str,
        group_id: str | None = None,
    ) -> Notification:
        invitation = await uow.notifications.get(user_id, notification_id)
        if (
            invitation is None
            or invitation.type != NotificationTypes.GROUP_INVITATION
            or (group_id is not None and invitation.group_id != group_id)
        ):
            raise NotificationNotFoundError(notification_id)
        return invitation

    async def _create_notification(
        self,
        uow: IUnitOfWork,
        user_id: str,
        notification_type: str,
        from_user_id: str,
        post_id: str | None = None,
        group_id: str | None = None,
        comment_id: str | None = None,
        message: str | None = None,
    ) -> Notification:
        sender = await uow.profiles.get(from_user_id)
        if not sender:
            raise UserNotFoundError(from_user_id)

        notification = Notification(
            type=notification_type,
            from_user_id=from_user_id,
            post_id=post_id,
            group_id=group_id,
            comment_id=comment_id,
            message=message or "",
            from_user_name=sender.name or "Someone",
            from_user_username=sender.username or "user",
            from_user_avatar=sender.display_avatar,
        )
        return await uow.notifications.create(user_id, notification)
