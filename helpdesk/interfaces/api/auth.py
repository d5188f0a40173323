"""Auth API routes — sign-up, sign-in, sign-out, session and own profile."""

from fastapi import APIRouter, Depends, status

from helpdesk.application.services.auth_service import AuthService
from helpdesk.domain.schemas.auth import (
    Profile,
    ProfileUpdate,
    SessionRead,
    SignInRequest,
    SignUpRequest,
    UserRead,
)
from helpdesk.interfaces.api.deps import get_current_profile
from helpdesk.interfaces.deps import get_auth_service

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/signup", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def sign_up(body: SignUpRequest, auth: AuthService = Depends(get_auth_service)):
    return auth.sign_up(
        email=body.email,
        password=body.password,
        name=body.name,
        role=body.role,
        sector=body.sector,
    )


@router.post("/signin", response_model=UserRead)
def sign_in(body: SignInRequest, auth: AuthService = Depends(get_auth_service)):
    return auth.sign_in(body.email, body.password)


@router.post("/signout")
def sign_out(auth: AuthService = Depends(get_auth_service)):
    auth.sign_out()
    return {"status": "signed_out"}


@router.get("/session", response_model=SessionRead)
def get_session(auth: AuthService = Depends(get_auth_service)):
    return SessionRead(user=auth.get_current_session())


@router.get("/me", response_model=Profile)
def get_me(profile: Profile = Depends(get_current_profile)):
    return profile


@router.patch("/me", response_model=Profile)
def update_me(
    body: ProfileUpdate,
    profile: Profile = Depends(get_current_profile),
    auth: AuthService = Depends(get_auth_service),
):
    return auth.update_profile(profile.id, body)
