"""Pydantic schemas for accounts, profiles and sessions."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class UserRole(str, Enum):
    USER = "user"
    TECHNICIAN = "technician"
    ADMIN = "admin"


STAFF_ROLES = {UserRole.TECHNICIAN, UserRole.ADMIN}


class UserRecord(BaseModel):
    """Row of the `users` collection, including the credential hash."""
    id: str
    email: str
    password_hash: Optional[str] = None
    created_at: datetime


class UserRead(BaseModel):
    id: str
    email: str
    created_at: datetime

    model_config = {"from_attributes": True}


class Profile(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole = UserRole.USER
    sector: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


class SignUpRequest(BaseModel):
    email: str
    password: str
    name: str
    role: Optional[str] = None
    sector: Optional[str] = None


class SignInRequest(BaseModel):
    email: str
    password: str


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    sector: Optional[str] = None
    role: Optional[str] = None


class SessionRead(BaseModel):
    user: Optional[UserRead] = None


class SessionEvent(BaseModel):
    event: str  # INITIAL_SESSION, SIGNED_IN, SIGNED_OUT
    session: Optional[SessionRead] = None
