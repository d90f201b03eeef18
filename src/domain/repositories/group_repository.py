"""Group repository protocol."""

from typing import Protocol

from domain.entities.group import Group


class IGroupRepository(Protocol):
    """Repository interface for Group entities."""

    async def get(self, group_id: str) -> Group | None:
        """Get a group by ID, including its member ids."""
        ...

    async def create(self, group: Group) -> Group:
        """Create a new group with its initial members."""
        ...

    async def add_member(self, group_id: str, user_id: str) -> None:
        """Add a user to a group."""
        ...
