"""SQLAlchemy ORM models."""

from datetime import datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _new_id() -> str:
    return uuid4().hex


def _profile_ref(**kwargs: Any) -> Any:
    """String column referencing a profile; rows go with the profile."""
    return mapped_column(String(128), ForeignKey("profiles.id", ondelete="CASCADE"), **kwargs)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class ProfileModel(Base):
    """User profile model."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(128), primary_key=True, default=_new_id)
    name: Mapped[str | None] = mapped_column(String(100))
    username: Mapped[str | None] = mapped_column(String(50), unique=True)
    avatar: Mapped[str | None] = mapped_column(String(500))
    photo_url: Mapped[str | None] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )


class FriendshipModel(Base):
    """Directed friendship edge; accepted requests write both directions."""

    __tablename__ = "friendships"

    user_id: Mapped[str] = _profile_ref(primary_key=True)
    friend_id: Mapped[str] = _profile_ref(primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class FriendRequestModel(Base):
    """Friend request model (id is ``{from_user_id}_{to_user_id}``)."""

    __tablename__ = "friend_requests"
    __table_args__ = (Index("ix_friend_requests_to_user_status", "to_user_id", "status"),)

    id: Mapped[str] = mapped_column(String(300), primary_key=True)
    from_user_id: Mapped[str] = _profile_ref(nullable=False)
    to_user_id: Mapped[str] = _profile_ref(nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        CheckConstraint(
            "status IN ('pending', 'accepted', 'declined')",
            name="ck_friend_requests_status",
        ),
        nullable=False,
        default="pending",
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )


class GroupModel(Base):
    """Friend group model."""

    __tablename__ = "groups"

    id: Mapped[str] = mapped_column(String(128), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[str] = _profile_ref(nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    members: Mapped[list["GroupMemberModel"]] = relationship(
        "GroupMemberModel",
        back_populates="group",
        cascade="all, delete-orphan",
    )


class GroupMemberModel(Base):
    """Group membership model (composite PK on group_id + user_id)."""

    __tablename__ = "group_members"

    group_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("groups.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[str] = _profile_ref(primary_key=True, index=True)
    joined_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    group: Mapped["GroupModel"] = relationship(
        "GroupModel",
        back_populates="members",
    )


class NotificationModel(Base):
    """In-app notification addressed to one user."""

    __tablename__ = "notifications"
    __table_args__ = (Index("ix_notifications_user_created", "user_id", "created_at"),)

    id: Mapped[str] = mapped_column(String(128), primary_key=True, default=_new_id)
    user_id: Mapped[str] = _profile_ref(nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    from_user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    from_user_name: Mapped[str | None] = mapped_column(String(100))
    from_user_username: Mapped[str | None] = mapped_column(String(50))
    from_user_avatar: Mapped[str | None] = mapped_column(String(500))
    post_id: Mapped[str | None] = mapped_column(String(128))
    group_id: Mapped[str | None] = mapped_column(String(128))
    comment_id: Mapped[str | None] = mapped_column(String(128))
    message: Mapped[str | None] = mapped_column(Text)
    read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    read_at: Mapped[datetime | None] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
