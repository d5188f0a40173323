"""
Record-store implementation of the Account Repository.
"""

from typing import Any, Dict, Optional

from helpdesk.core.exceptions import DuplicateAccountException
from helpdesk.domain.repositories.account_repository import AccountRepository
from helpdesk.domain.repositories.record_store import (
    CURRENT_SESSION,
    PROFILES,
    USERS,
    RecordStore,
)
from helpdesk.domain.schemas.auth import Profile, UserRead, UserRecord
from helpdesk.infrastructure.repositories.base_repository import RecordStoreRepository, load_record


class RecordStoreAccountRepository(RecordStoreRepository[Profile], AccountRepository):
    """Profiles are the primary collection; users and the session pointer live beside them."""

    not_found_message = "Perfil não encontrado"

    def __init__(self, store: RecordStore):
        super().__init__(store, PROFILES, Profile)

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        for record in self.store.get(USERS):
            if record.get("email") == email:
                return load_record(UserRecord, USERS, record)
        return None

    def get_user_by_id(self, user_id: str) -> Optional[UserRecord]:
        for record in self.store.get(USERS):
            if record.get("id") == user_id:
                return load_record(UserRecord, USERS, record)
        return None

    def new_user_id(self) -> str:
        return self._new_id(self.store.get(USERS))

    def create_account(self, user: UserRecord, profile: Profile) -> UserRecord:
        with self.store.lock:
            users = self.store.get(USERS)
            if any(u.get("email") == user.email for u in users):
                raise DuplicateAccountException(details={"email": user.email})
            profiles = self._load()
            users.append(user.model_dump(mode="json"))
            profiles.append(profile.model_dump(mode="json"))
            self.store.put(USERS, users)
            self._save(profiles)
        return user

    def get_session(self) -> Optional[Dict[str, Any]]:
        records = self.store.get(CURRENT_SESSION)
        if not records:
            return None
        return load_record(UserRead, CURRENT_SESSION, records[0]).model_dump(mode="json")

    def set_session(self, user: Optional[UserRecord]) -> None:
        if user is None:
            self.store.delete(CURRENT_SESSION)
            return
        self.store.put(CURRENT_SESSION, [UserRead.model_validate(user.model_dump()).model_dump(mode="json")])

    def counts(self) -> Dict[str, int]:
        return {"users": len(self.store.get(USERS)), "profiles": len(self._load())}
