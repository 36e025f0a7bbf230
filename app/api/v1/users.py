"""
User profile endpoints
"""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.dependencies import get_current_user, get_profile_cache
from app.database import get_db
from app.models.profile import Profile
from app.schemas.post import EnrichedPost, ProfilePage
from app.schemas.profile import ProfileResponse, ProfileSummary, ProfileUpdate
from app.schemas.social import FriendListResponse
from app.services.cache import ProfileSnapshotCache
from app.services.post_service import PostService
from app.services.profile_service import ProfileService
from app.services.social_service import SocialService

router = APIRouter()


@router.get("", response_model=List[ProfileSummary])
async def list_users(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: Profile = Depends(get_current_user)
):
    """All profiles, newest first"""
    return ProfileService(db, settings).list_profiles()


@router.get("/search", response_model=List[ProfileSummary])
async def search_users(
    q: str = Query("", description="Username or full name fragment"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: Profile = Depends(get_current_user)
):
    """Search users by username or full name"""
    return ProfileService(db, settings).search_profiles(q)


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(
    update_data: ProfileUpdate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    cache: ProfileSnapshotCache = Depends(get_profile_cache),
    current_user: Profile = Depends(get_current_user)
):
    """Update current user's profile"""
    return ProfileService(db, settings, cache).update_profile(current_user.id, update_data)


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: Profile = Depends(get_current_user)
):
    """Get a profile"""
    return ProfileService(db, settings).get_profile(user_id)


@router.get("/{user_id}/page", response_model=ProfilePage)
async def get_profile_page(
    user_id: UUID,
    refresh: bool = False,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    cache: ProfileSnapshotCache = Depends(get_profile_cache),
    current_user: Profile = Depends(get_current_user)
):
    """Profile screen data; pass refresh=true to bypass the snapshot cache"""
    return ProfileService(db, settings, cache).get_profile_page(current_user.id, user_id, force_refresh=refresh)


@router.get("/{user_id}/posts", response_model=List[EnrichedPost])
async def get_user_posts(
    user_id: UUID,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """A user's posts, newest first"""
    return PostService(db).get_user_posts(current_user.id, user_id)


@router.get("/{user_id}/friends", response_model=FriendListResponse)
async def get_friends(
    user_id: UUID,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """A user's friends"""
    return SocialService(db).list_friends(user_id)


@router.get("/{user_id}/friends/count")
async def get_friend_count(
    user_id: UUID,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """Friend count for a user"""
    return {"count": SocialService(db).count_friends(user_id), "user_id": user_id}
