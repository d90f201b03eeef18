"""Group domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4


@dataclass
class Group:
    """Domain entity for a friend group."""

    name: str
    created_by: str
    id: str = field(default_factory=lambda: uuid4().hex)
    description: str | None = None
    members: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def member_count(self) -> int:
        return len(self.members)

    def has_member(self, user_id: str) -> bool:
        return user_id in self.members
