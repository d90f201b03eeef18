"""SQLAlchemy implementation of Notification repository."""

from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.notification import Notification
from infrastructure.database.models import NotificationModel


class SQLAlchemyNotificationRepository:
    """SQLAlchemy implementation of INotificationRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, user_id: str, notification: Notification) -> Notification:
        """Create a notification addressed to a user."""
        model = self._to_model(user_id, notification)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def get(self, user_id: str, notification_id: str) -> Notification | None:
        """Get one of a user's notifications by ID."""
        stmt = select(NotificationModel).where(
            NotificationModel.id == notification_id,
            NotificationModel.user_id == user_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_user_notifications(self, user_id: str, limit: int = 50) -> list[Notification]:
        """Get a user's notifications, newest first."""
        stmt = (
            select(NotificationModel)
            .where(NotificationModel.user_id == user_id)
            .order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def mark_read(self, user_id: str, notification_id: str) -> bool:
        """Mark a notification as read."""
        stmt = (
            update(NotificationModel)
            .where(
                NotificationModel.id == notification_id,
                NotificationModel.user_id == user_id,
            )
            .values(read=True, read_at=datetime.utcnow())
        )
        result = await self._session.execute(stmt)
        return bool(result.rowcount)

    async def mark_all_read(self, user_id: str) -> int:
        """Mark every unread notification as read."""
        stmt = (
            update(NotificationModel)
            .where(
                NotificationModel.user_id == user_id,
                NotificationModel.read.is_(False),
            )
            .values(read=True, read_at=datetime.utcnow())
        )
        result = await self._session.execute(stmt)
        return int(result.rowcount or 0)

    async def delete(self, user_id: str, notification_id: str) -> bool:
        """Delete a notification permanently."""
        return await self.delete_many(user_id, [notification_id]) > 0

    async def delete_many(self, user_id: str, notification_ids: list[str]) -> int:
        """Delete several notifications owned by the user."""
        if not notification_ids:
            return 0
        stmt = delete(NotificationModel).where(
            NotificationModel.user_id == user_id,
            NotificationModel.id.in_(notification_ids),
        )
        result = await self._session.execute(stmt)
        return int(result.rowcount or 0)

    # --- Mapping ---

    @staticmethod
    def _to_model(user_id: str, entity: Notification) -> NotificationModel:
        return NotificationModel(
            id=entity.id,
            user_id=user_id,
            type=entity.type,
            from_user_id=entity.from_user_id,
            from_user_name=entity.from_user_name,
            from_user_username=entity.from_user_username,
            from_user_avatar=entity.from_user_avatar,
            post_id=entity.post_id,
            group_id=entity.group_id,
            comment_id=entity.comment_id,
            message=entity.message,
            read=entity.read,
            read_at=entity.read_at,
            created_at=entity.created_at,
        )

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            type=model.type,
            from_user_id=model.from_user_id,
            from_user_name=model.from_user_name,
            from_user_username=model.from_user_username,
            from_user_avatar=model.from_user_avatar,
            post_id=model.post_id,
            group_id=model.group_id,
            comment_id=model.comment_id,
            message=model.message,
            read=model.read,
            read_at=model.read_at,
            created_at=model.created_at,
        )
