"""
Feed endpoints
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.dependencies import get_current_user
from app.database import get_db
from app.models.profile import Profile
from app.schemas.feed import FeedResponse, NewPostsResponse
from app.services.feed_service import FeedService

router = APIRouter()


@router.get("", response_model=FeedResponse)
async def get_feed(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: Profile = Depends(get_current_user)
):
    """Newest posts from you and your friends"""
    return FeedService(db, settings).get_feed(current_user.id)


@router.get("/peek", response_model=NewPostsResponse)
async def peek_new_posts(
    last_seen_post_id: Optional[UUID] = None,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: Profile = Depends(get_current_user)
):
    """How many posts arrived ahead of the last one you saw (approximate)"""
    return FeedService(db, settings).peek_new_posts(current_user.id, last_seen_post_id)
