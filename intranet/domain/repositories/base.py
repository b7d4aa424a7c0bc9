"""
Base Repository Interface.
Lookup by primary key shared by the entity repositories.
"""

from typing import Optional, Protocol, TypeVar

T = TypeVar("T")


class BaseRepository(Protocol[T]):
    def get_by_id(self, id: int) -> Optional[T]:
        """Get a single entity by ID."""
        ...
