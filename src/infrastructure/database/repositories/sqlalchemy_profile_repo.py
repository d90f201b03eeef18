"""SQLAlchemy implementation of Profile repository."""

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.profile import Profile
from infrastructure.database.models import FriendshipModel, ProfileModel


class SQLAlchemyProfileRepository:
    """SQLAlchemy implementation of IProfileRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: str) -> Profile | None:
        """Get a profile by ID, including its friend ids."""
        stmt = select(ProfileModel).where(ProfileModel.id == user_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        if not model:
            return None

        friends_stmt = select(FriendshipModel.friend_id).where(FriendshipModel.user_id == user_id)
        friends = (await self._session.execute(friends_stmt)).scalars().all()
        return self._to_entity(model, list(friends))

    async def create(self, profile: Profile) -> Profile:
        """Create a new profile."""
        model = ProfileModel(
            id=profile.id,
            name=profile.name,
            username=profile.username,
            avatar=profile.avatar,
            photo_url=profile.photo_url,
            created_at=profile.created_at,
            updated_at=profile.updated_at,
        )
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model, [])

    async def are_friends(self, user_id: str, other_id: str) -> bool:
        """Check whether either user lists the other as a friend."""
        stmt = (
            select(FriendshipModel.user_id)
            .where(
                or_(
                    (FriendshipModel.user_id == user_id) & (FriendshipModel.friend_id == other_id),
                    (FriendshipModel.user_id == other_id) & (FriendshipModel.friend_id == user_id),
                )
            )
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.first() is not None

    async def add_friendship(self, user_id: str, other_id: str) -> None:
        """Link two users as friends in both directions."""
        self._session.add_all(
            [
                FriendshipModel(user_id=user_id, friend_id=other_id),
                FriendshipModel(user_id=other_id, friend_id=user_id),
            ]
        )
        await self._session.flush()

    @staticmethod
    def _to_entity(model: ProfileModel, friends: list[str]) -> Profile:
        return Profile(
            id=model.id,
            name=model.name,
            username=model.username,
            avatar=model.avatar,
            photo_url=model.photo_url,
            friends=friends,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
