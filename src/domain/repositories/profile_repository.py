"""Profile repository protocol."""

from typing import Protocol

from domain.entities.profile import Profile


class IProfileRepository(Protocol):
    """Repository interface for user profiles and the friendship graph."""

    async def get(self, user_id: str) -> Profile | None:
        """Get a profile by ID, including its friend ids."""
        ...

    async def create(self, profile: Profile) -> Profile:
        """Create a new profile."""
        ...

    async def are_friends(self, user_id: str, other_id: str) -> bool:
        """Check whether either user lists the other as a friend."""
        ...

    async def add_friendship(self, user_id: str, other_id: str) -> None:
        """Link two users as friends in both directions."""
        ...
