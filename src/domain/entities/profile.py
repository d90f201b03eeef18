"""Profile domain entity."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4


@dataclass
class Profile:
    """Domain entity for a user profile."""

    id: str = field(default_factory=lambda: uuid4().hex)
    name: str | None = None
    username: str | None = None
    avatar: str | None = None
    photo_url: str | None = None
    friends: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        """Ensure updated_at is always at least as recent as created_at."""
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at

    @property
    def display_avatar(self) -> str | None:
        """Best available picture: profile photo first, then avatar."""
        return self.photo_url or self.avatar or None

    def is_friend_of(self, user_id: str) -> bool:
        return user_id in self.friends
