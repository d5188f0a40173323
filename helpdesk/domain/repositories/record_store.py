"""
Record Store Interface.
A flat key-value namespace holding whole JSON collections.
"""

from threading import RLock
from typing import Any, Dict, List, Protocol

# Logical collection names
USERS = "users"
PROFILES = "profiles"
PROBLEM_TYPES = "problem_types"
TICKETS = "tickets"
TICKET_HISTORY = "ticket_history"
CURRENT_SESSION = "current_session"

COLLECTIONS = (USERS, PROFILES, PROBLEM_TYPES, TICKETS, TICKET_HISTORY)


class RecordStore(Protocol):
    """Interface for whole-collection persistence.

    No partial updates and no indices: callers read a collection, change it
    in memory and write it back. `lock` guards such read-modify-write
    sequences for callers sharing the same store instance.
    """

    lock: RLock

    def get(self, collection: str) -> List[Dict[str, Any]]:
        """Return every record of a collection (empty list when absent)."""
        ...

    def put(self, collection: str, records: List[Dict[str, Any]]) -> None:
        """Overwrite a collection."""
        ...

    def exists(self, collection: str) -> bool:
        """Whether the collection key has ever been written."""
        ...

    def delete(self, collection: str) -> None:
        """Remove a collection key."""
        ...

    def initialize(self) -> None:
        """Seed problem types and empty collections, only where missing."""
        ...
