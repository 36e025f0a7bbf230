"""
Authentication endpoints - sign-up, sign-in, sign-out
"""
from typing import Any, Dict, Tuple

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from app.core.config import Settings, get_settings
from app.core.dependencies import get_auth_events, get_current_user, get_session
from app.core.rate_limit import AUTH_RATE_LIMIT, limiter
from app.database import get_db
from app.models.profile import Profile
from app.schemas.auth import SignInRequest, SignUpRequest, SignUpResponse, Token
from app.schemas.profile import ProfileResponse
from app.services.auth_service import AuthEvents, AuthService
import logging

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/signup", response_model=SignUpResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(AUTH_RATE_LIMIT)
async def sign_up(
    request: Request,
    body: SignUpRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    events: AuthEvents = Depends(get_auth_events)
):
    """
    Register a new account

    Creates the identity and its profile (full name defaults to the
    username) and returns a session token.
    """
    logger.info("Starting sign up process...")
    auth_service = AuthService(db, settings, events)
    account, profile, access_token = auth_service.sign_up(body.email, body.password, body.username)
    return SignUpResponse(
        access_token=access_token,
        user_id=str(account.id),
        profile=ProfileResponse.model_validate(profile)
    )


@router.post("/signin", response_model=Token)
@limiter.limit(AUTH_RATE_LIMIT)
async def sign_in(
    request: Request,
    body: SignInRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    events: AuthEvents = Depends(get_auth_events)
):
    """Sign in with email and password"""
    auth_service = AuthService(db, settings, events)
    account, access_token = auth_service.sign_in(body.email, body.password)
    return Token(access_token=access_token, user_id=str(account.id))


@router.post("/signout", status_code=status.HTTP_200_OK)
async def sign_out(
    session: Tuple[Profile, Dict[str, Any]] = Depends(get_session),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    events: AuthEvents = Depends(get_auth_events)
):
    """Sign out; the presented token stops working immediately"""
    _, claims = session
    AuthService(db, settings, events).sign_out(claims)
    return {
        "success": True,
        "message": "Signed out successfully"
    }


@router.get("/me", response_model=ProfileResponse)
async def get_current_user_info(
    current_user: Profile = Depends(get_current_user)
):
    """Get the authenticated viewer's profile"""
    return current_user
