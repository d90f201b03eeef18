"""SQLAlchemy implementation of FriendRequest repository."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.friend_request import FriendRequest, FriendRequestStatus
from infrastructure.database.models import FriendRequestModel


class SQLAlchemyFriendRequestRepository:
    """SQLAlchemy implementation of IFriendRequestRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, request_id: str) -> FriendRequest | None:
        """Get a friend request by ID."""
        stmt = select(FriendRequestModel).where(FriendRequestModel.id == request_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def create(self, request: FriendRequest) -> FriendRequest:
        """Create a new friend request."""
        model = FriendRequestModel(
            id=request.id,
            from_user_id=request.from_user_id,
            to_user_id=request.to_user_id,
            status=request.status.value,
            created_at=request.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def delete(self, request_id: str) -> bool:
        """Hard-delete a friend request."""
        stmt = delete(FriendRequestModel).where(FriendRequestModel.id == request_id)
        result = await self._session.execute(stmt)
        return bool(result.rowcount)

    async def get_pending_for_user(self, user_id: str, limit: int = 50) -> list[FriendRequest]:
        """Get pending requests addressed to a user, newest first."""
        stmt = (
            select(FriendRequestModel)
            .where(
                FriendRequestModel.to_user_id == user_id,
                FriendRequestModel.status == FriendRequestStatus.PENDING.value,
            )
            .order_by(FriendRequestModel.created_at.desc(), FriendRequestModel.id.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    @staticmethod
    def _to_entity(model: FriendRequestModel) -> FriendRequest:
        return FriendRequest(
            id=model.id,
            from_user_id=model.from_user_id,
            to_user_id=model.to_user_id,
            status=FriendRequestStatus(model.status),
            created_at=model.created_at,
        )
