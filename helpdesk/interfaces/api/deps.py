"""FastAPI dependencies — actor identity from the current session."""

from fastapi import Depends

from helpdesk.application.services.auth_service import AuthService
from helpdesk.core.exceptions import ForbiddenException
from helpdesk.domain.schemas.auth import Profile
from helpdesk.interfaces.deps import get_auth_service


def get_current_profile(auth: AuthService = Depends(get_auth_service)) -> Profile:
    """Profile of the signed-in user; 401 when nobody is signed in."""
    return auth.get_current_profile()


def require_staff(profile: Profile = Depends(get_current_profile)) -> Profile:
    """Require technician or admin role."""
    if not profile.is_staff:
        raise ForbiddenException("Apenas técnicos podem acessar este recurso")
    return profile
