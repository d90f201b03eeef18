"""SQLAlchemy implementation of Group repository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.group import Group
from infrastructure.database.models import GroupMemberModel, GroupModel


class SQLAlchemyGroupRepository:
    """SQLAlchemy implementation of IGroupRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, group_id: str) -> Group | None:
        """Get a group by ID, including its member ids."""
        stmt = select(GroupModel).where(GroupModel.id == group_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        if not model:
            return None

        members_stmt = (
            select(GroupMemberModel.user_id)
            .where(GroupMemberModel.group_id == group_id)
            .order_by(GroupMemberModel.joined_at)
        )
        members = (await self._session.execute(members_stmt)).scalars().all()
        return self._to_entity(model, list(members))

    async def create(self, group: Group) -> Group:
        """Create a new group with its initial members."""
        model = GroupModel(
            id=group.id,
            name=group.name,
            description=group.description,
            created_by=group.created_by,
            created_at=group.created_at,
        )
        self._session.add(model)
        self._session.add_all(
            [GroupMemberModel(group_id=group.id, user_id=user_id) for user_id in group.members]
        )
        await self._session.flush()
        return self._to_entity(model, list(group.members))

    async def add_member(self, group_id: str, user_id: str) -> None:
        """Add a user to a group."""
        self._session.add(GroupMemberModel(group_id=group_id, user_id=user_id))
        await self._session.flush()

    @staticmethod
    def _to_entity(model: GroupModel, members: list[str]) -> Group:
        return Group(
            id=model.id,
            name=model.name,
            description=model.description,
            created_by=model.created_by,
            members=members,
            created_at=model.created_at,
        )
