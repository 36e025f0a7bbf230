"""
FastAPI dependencies - current viewer and application-scoped services
"""
from typing import Any, Dict, Optional, Tuple

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.exceptions import NotAuthenticated
from app.database import get_db
from app.models.profile import Profile
from app.services.auth_service import AuthEvents, AuthService
from app.services.cache import ProfileSnapshotCache

bearer = HTTPBearer(auto_error=False)


def get_profile_cache(request: Request) -> ProfileSnapshotCache:
    return request.app.state.profile_cache


def get_auth_events(request: Request) -> AuthEvents:
    return request.app.state.auth_events


def get_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Tuple[Profile, Dict[str, Any]]:
    """Viewer profile and token claims; fails before any row is touched"""
    if credentials is None or not credentials.credentials:
        raise NotAuthenticated()
    return AuthService(db, settings).resolve_token(credentials.credentials)


def get_current_user(session: Tuple[Profile, Dict[str, Any]] = Depends(get_session)) -> Profile:
    """The authenticated viewer"""
    return session[0]
