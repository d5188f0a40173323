"""Auth service — accounts, profiles, password hashing and the current session."""

from functools import lru_cache
from typing import Optional

import structlog
from passlib.context import CryptContext

from helpdesk.application.services.session_channel import (
    SIGNED_IN,
    SIGNED_OUT,
    SessionCallback,
    SessionChannel,
    Subscription,
)
from helpdesk.config import get_settings
from helpdesk.core.clock import get_current_datetime
from helpdesk.core.exceptions import (
    DuplicateAccountException,
    EntityNotFoundException,
    UnauthorizedException,
    ValidationException,
)
from helpdesk.domain.repositories.account_repository import AccountRepository
from helpdesk.domain.schemas.auth import (
    Profile,
    ProfileUpdate,
    SessionRead,
    UserRead,
    UserRecord,
    UserRole,
)

logger = structlog.get_logger(__name__)


@lru_cache
def get_pwd_context() -> CryptContext:
    return CryptContext(schemes=get_settings().PASSWORD_SCHEMES, deprecated="auto")


def hash_password(password: str) -> str:
    return get_pwd_context().hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return get_pwd_context().verify(plain_password, hashed_password)


def parse_role(role: Optional[str]) -> UserRole:
    """Map a role name to UserRole; None means the default 'user' role."""
    if role is None or role == "":
        return UserRole.USER
    try:
        return UserRole(role)
    except ValueError:
        raise ValidationException(
            f"Perfil de acesso inválido: {role}",
            details={"role": role, "allowed": [r.value for r in UserRole]},
        ) from None


def _require_text(field: str, value: Optional[str]) -> str:
    if value is None or not value.strip():
        raise ValidationException(f"O campo '{field}' é obrigatório", details={"field": field})
    return value.strip()


class AuthService:
    """Account creation and lookup by email, plus the current session pointer."""

    def __init__(self, repo: AccountRepository, channel: Optional[SessionChannel] = None):
        self.repo = repo
        self.channel = channel or SessionChannel()

    # --- Accounts ---
    def sign_up(
        self,
        email: str,
        password: str,
        name: str,
        role: Optional[str] = None,
        sector: Optional[str] = None,
    ) -> UserRead:
        # Stored as given: lookups are exact matches
        _require_text("email", email)
        name = _require_text("name", name)
        if not password:
            raise ValidationException("O campo 'password' é obrigatório", details={"field": "password"})
        user_role = parse_role(role)

        if self.repo.get_user_by_email(email):
            logger.warning("Sign-up rejected, email already registered", email=email)
            raise DuplicateAccountException(details={"email": email})

        timestamp = get_current_datetime()
        user = UserRecord(
            id=self.repo.new_user_id(),
            email=email,
            password_hash=hash_password(password),
            created_at=timestamp,
        )
        profile = Profile(
            id=user.id,
            name=name,
            email=email,
            role=user_role,
            sector=sector.strip() if sector and sector.strip() else None,
            created_at=timestamp,
            updated_at=timestamp,
        )
        self.repo.create_account(user, profile)
        self.repo.set_session(user)

        logger.info("User signed up", user_id=user.id, role=user_role.value)
        self._publish(SIGNED_IN)
        return UserRead.model_validate(user.model_dump())

    def sign_in(self, email: str, password: str) -> UserRead:
        user = self.repo.get_user_by_email(email)
        if not user:
            raise EntityNotFoundException("Usuário não encontrado", details={"email": email})
        if not user.password_hash or not verify_password(password or "", user.password_hash):
            logger.warning("Sign-in rejected, wrong password", user_id=user.id)
            raise UnauthorizedException("Email ou senha incorretos")

        self.repo.set_session(user)
        logger.info("User signed in", user_id=user.id)
        self._publish(SIGNED_IN)
        return UserRead.model_validate(user.model_dump())

    def sign_out(self) -> None:
        had_session = self.repo.get_session() is not None
        self.repo.set_session(None)
        if had_session:
            logger.info("User signed out")
            self._publish(SIGNED_OUT)

    # --- Session ---
    def get_current_session(self) -> Optional[UserRead]:
        record = self.repo.get_session()
        return UserRead.model_validate(record) if record else None

    def subscribe(self, callback: SessionCallback) -> Subscription:
        """Register for session changes; the current state is delivered immediately."""
        return self.channel.subscribe(callback, self._session_read())

    def _session_read(self) -> Optional[SessionRead]:
        user = self.get_current_session()
        return SessionRead(user=user) if user else None

    def _publish(self, event: str) -> None:
        self.channel.publish(event, self._session_read())

    # --- Profiles ---
    def get_profile(self, user_id: str) -> Profile:
        profile = self.repo.get_by_id(user_id)
        if not profile:
            raise EntityNotFoundException("Perfil não encontrado", details={"user_id": user_id})
        return profile

    def get_current_profile(self) -> Profile:
        user = self.get_current_session()
        if user is None:
            raise UnauthorizedException("Nenhuma sessão ativa")
        return self.get_profile(user.id)

    def update_profile(self, user_id: str, updates: ProfileUpdate) -> Profile:
        fields = updates.model_dump(exclude_unset=True)
        if "name" in fields:
            fields["name"] = _require_text("name", fields["name"])
        if "role" in fields:
            if fields["role"] in (None, ""):
                del fields["role"]
            else:
                fields["role"] = parse_role(fields["role"])
        if "sector" in fields and fields["sector"] is not None:
            fields["sector"] = fields["sector"].strip() or None

        profile = self.repo.update(user_id, fields)
        logger.info("Profile updated", user_id=user_id, fields=sorted(fields))
        return profile
