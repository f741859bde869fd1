"""Office staff API — login, logout, profile fetch and update.

Learn: Routes for the staff portal:
- POST /office-staff/login  → username/password → session cookie
- POST /office-staff/logout → clear the session cookie (always succeeds)
- GET  /office-staff/me     → current staff profile
- PUT  /office-staff/update → partial profile update (+ optional password change)

The cookie is the authority; the login body only echoes non-sensitive
claims for display.
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from staffdesk.auth.dependencies import StaffIdentity, get_current_staff
from staffdesk.auth.jwt import issue_session_token, session_lifetime
from staffdesk.config import settings
from staffdesk.db.engine import get_db
from staffdesk.exceptions import ProfileNotFound, ValidationError
from staffdesk.realtime.pubsub import ProfileNotifier, get_notifier
from staffdesk.schemas.staff import (
    LoginRequest,
    LoginResponse,
    LoginUser,
    MessageResponse,
    ProfileResponse,
    ProfileUpdate,
)
from staffdesk.services.staff_service import StaffService

router = APIRouter(prefix="/office-staff")


def _svc(
    db: AsyncSession = Depends(get_db),
    notifier: ProfileNotifier = Depends(get_notifier),
) -> StaffService:
    return StaffService(db, notifier)


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=int(session_lifetime().total_seconds()),
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


# ─── Login / Logout ─────────────────────────────────────


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, response: Response, svc: StaffService = Depends(_svc)):
    """Login with username and password → session cookie."""
    if not body.username or not body.password:
        raise ValidationError("Username and password are required")

    claims = await svc.authenticate(body.username, body.password)
    _set_session_cookie(response, issue_session_token(claims))

    return LoginResponse(
        message="Login successful",
        user=LoginUser(
            id=claims.account_id,
            staff_id=claims.staff_id,
            username=claims.username,
            department=claims.department,
        ),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response):
    """Clear the session cookie. Idempotent, no auth required."""
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return MessageResponse(message="Logged out successfully")


# ─── Profile ────────────────────────────────────────────


@router.get("/me", response_model=ProfileResponse)
async def get_me(
    identity: StaffIdentity = Depends(get_current_staff),
    svc: StaffService = Depends(_svc),
):
    """Get the signed-in staff member's profile."""
    profile = await svc.get_profile(identity.account_id)
    if profile is None:
        raise ProfileNotFound()
    return ProfileResponse(user=profile)


@router.put("/update", response_model=MessageResponse)
async def update_profile(
    body: ProfileUpdate,
    identity: StaffIdentity = Depends(get_current_staff),
    svc: StaffService = Depends(_svc),
):
    """Update the signed-in staff member's profile (sparse)."""
    await svc.update_profile(identity.account_id, body)
    return MessageResponse(message="Profile updated successfully")
