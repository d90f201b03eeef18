"""Dependency injection factories for API v1."""

from typing import Annotated, Callable

from fastapi import Depends

from api.dependencies.auth import CurrentUser
from core.config import settings
from domain.services.inbox_session import InboxSession, InboxSessionRegistry
from domain.services.social_graph_service import SocialGraphService
from infrastructure.backend.sqlalchemy_backend import SQLAlchemySocialBackend
from infrastructure.database.session import unit_of_work_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork

_social_backend: SQLAlchemySocialBackend | None = None
_inbox_registry: InboxSessionRegistry | None = None


def get_uow_factory() -> Callable[[], SQLAlchemyUnitOfWork]:
    """Factory for creating Unit of Work instances."""
    return unit_of_work_factory


def get_social_backend() -> SQLAlchemySocialBackend:
    """Get or create the social backend singleton."""
    global _social_backend
    if _social_backend is None:
        _social_backend = SQLAlchemySocialBackend(
            SocialGraphService(get_uow_factory()),
            poll_interval=settings.feed_poll_interval_seconds,
            friend_request_page_size=settings.friend_request_page_size,
            notification_page_size=settings.notification_page_size,
        )
    return _social_backend


def get_inbox_registry() -> InboxSessionRegistry:
    """Get or create the inbox session registry singleton."""
    global _inbox_registry
    if _inbox_registry is None:
        _inbox_registry = InboxSessionRegistry(
            get_social_backend(),
            alert_display_seconds=settings.alert_display_seconds,
            idle_timeout_seconds=settings.inbox_idle_timeout_seconds,
        )
    return _inbox_registry


def shutdown_inbox() -> None:
    """Close every open inbox session and feed."""
    global _inbox_registry, _social_backend
    if _inbox_registry is not None:
        _inbox_registry.close_all()
        _inbox_registry = None
    if _social_backend is not None:
        _social_backend.close()
        _social_backend = None


async def get_inbox_session(
    user: CurrentUser,
    registry: InboxSessionRegistry = Depends(get_inbox_registry),
) -> InboxSession:
    """The signed-in user's inbox session, opened on first use."""
    return registry.get_or_open(user.id)


Inbox = Annotated[InboxSession, Depends(get_inbox_session)]
