"""Resolves sender profiles and group metadata for raw inbox items."""

import asyncio
from collections.abc import Sequence

import structlog

from domain.entities.friend_request import FriendRequest
from domain.entities.inbox import (
    PLACEHOLDER_SENDER,
    UNKNOWN_GROUP_NAME,
    UNKNOWN_USER_NAME,
    UNKNOWN_USERNAME,
    EnrichedFriendRequest,
    EnrichedGroupInvitation,
    GroupSummary,
    SenderSummary,
)
from domain.entities.notification import Notification
from domain.entities.profile import Profile
from domain.repositories.social_backend import ISocialBackend

logger = structlog.get_logger()


def sender_from_profile(profile: Profile | None) -> SenderSummary:
    """Display data for a profile, with placeholders for anything missing.

    Avatar fallback order: profile photo, then avatar, then nothing.
    """
    if profile is None:
        return PLACEHOLDER_SENDER
    return SenderSummary(
        name=profile.name or UNKNOWN_USER_NAME,
        username=profile.username or UNKNOWN_USERNAME,
        avatar_url=profile.display_avatar,
    )


class EnrichmentResolver:
    """Attaches display data to friend requests and group invitations.

    Lookups never fail an item: any error or missing record produces a
    placeholder. All lookups of a batch run concurrently and the batch
    returns only once every item is resolved.
    """

    def __init__(self, backend: ISocialBackend) -> None:
        self._backend = backend

    async def resolve_sender(self, user_id: str) -> SenderSummary:
        """Look up a user, falling back to the placeholder sender."""
        try:
            result = await self._backend.get_profile_by_id(user_id)
        except Exception as exc:
            logger.warning("sender_lookup_failed", user_id=user_id, error=str(exc))
            return PLACEHOLDER_SENDER

        if result.value is None:
            logger.debug("sender_not_found", user_id=user_id, error=result.error)
            return PLACEHOLDER_SENDER
        return sender_from_profile(result.value)

    async def resolve_group(self, group_id: str | None) -> GroupSummary | None:
        """Look up a group; None without an id or when the lookup fails."""
        if not group_id:
            return None
        try:
            result = await self._backend.get_group_by_id(group_id)
        except Exception as exc:
            logger.warning("group_lookup_failed", group_id=group_id, error=str(exc))
            return None

        if result.value is None:
            logger.debug("group_not_found", group_id=group_id, error=result.error)
            return None
        return GroupSummary(id=result.value.id, name=result.value.name or UNKNOWN_GROUP_NAME)

    async def enrich_friend_request(self, request: FriendRequest) -> EnrichedFriendRequest:
        sender = await self.resolve_sender(request.from_user_id)
        return EnrichedFriendRequest(
            id=request.id,
            from_user_id=request.from_user_id,
            to_user_id=request.to_user_id,
            status=request.status,
            created_at=request.created_at,
            sender=sender,
        )

    async def enrich_group_invitation(self, notification: Notification) -> EnrichedGroupInvitation:
        sender, group = await asyncio.gather(
            self.resolve_sender(notification.from_user_id),
            self.resolve_group(notification.group_id),
        )
        return EnrichedGroupInvitation(
            id=notification.id,
            from_user_id=notification.from_user_id,
            group_id=notification.group_id,
            message=notification.message,
            created_at=notification.created_at,
            sender=sender,
            group=group,
        )

    async def enrich_friend_requests(
        self, requests: Sequence[FriendRequest]
    ) -> list[EnrichedFriendRequest]:
        """Enrich a whole snapshot; order is preserved."""
        return list(await asyncio.gather(*(self.enrich_friend_request(r) for r in requests)))

    async def enrich_group_invitations(
        self, invitations: Sequence[Notification]
    ) -> list[EnrichedGroupInvitation]:
        """Enrich a whole snapshot; order is preserved."""
        return list(await asyncio.gather(*(self.enrich_group_invitation(n) for n in invitations)))
