"""
Base Repository Interface.
Defines the standard contract for data access operations.
"""

from typing import TypeVar, List, Optional, Any, Protocol

T = TypeVar("T")


class BaseRepository(Protocol[T]):
    """Interface for generic record operations keyed by string ids."""

    def get_by_id(self, id: str) -> Optional[T]:
        """Get a single entity by ID."""
        ...

    def list(self) -> List[T]:
        """List all entities in insertion order."""
        ...

    def create(self, obj_in: Any) -> T:
        """Create a new entity."""
        ...

    def update(self, id: str, obj_in: Any) -> T:
        """Merge fields into an existing entity."""
        ...
