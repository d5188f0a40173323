"""
Account Repository Interface.
Users, their profiles and the current session pointer.
"""

from typing import Any, Dict, Optional

from helpdesk.domain.repositories.base import BaseRepository
from helpdesk.domain.schemas.auth import Profile, UserRecord


class AccountRepository(BaseRepository[Profile]):
    """Interface for account operations. `get_by_id`/`update` act on profiles."""

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        """Exact, case-sensitive email lookup."""
        ...

    def get_user_by_id(self, user_id: str) -> Optional[UserRecord]:
        ...

    def new_user_id(self) -> str:
        """Fresh identifier not used by any stored user."""
        ...

    def create_account(self, user: UserRecord, profile: Profile) -> UserRecord:
        """Persist a user and its profile together; raises DuplicateAccountException on a taken email."""
        ...

    def get_session(self) -> Optional[Dict[str, Any]]:
        """Current session pointer, or None."""
        ...

    def set_session(self, user: Optional[UserRecord]) -> None:
        """Point the session at a user, or clear it with None."""
        ...

    def counts(self) -> Dict[str, int]:
        """Number of users and profiles stored."""
        ...
