"""
Post, like and comment endpoints
"""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.dependencies import get_current_user, get_profile_cache
from app.database import get_db
from app.models.profile import Profile
from app.schemas.post import (
    CommentCreate,
    CommentCreatedResponse,
    CommentResponse,
    LikeStateResponse,
    PostActionResponse,
    PostCreate,
    PostResponse,
)
from app.schemas.profile import ProfileSummary
from app.services.cache import ProfileSnapshotCache
from app.services.feed_service import FeedService
from app.services.post_service import PostService

router = APIRouter()


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    body: PostCreate,
    db: Session = Depends(get_db),
    cache: ProfileSnapshotCache = Depends(get_profile_cache),
    current_user: Profile = Depends(get_current_user)
):
    """Create a post"""
    return PostService(db, cache).create_post(current_user.id, body.content, body.image_url)


@router.delete("/{post_id}", response_model=PostActionResponse)
async def delete_post(
    post_id: UUID,
    db: Session = Depends(get_db),
    cache: ProfileSnapshotCache = Depends(get_profile_cache),
    current_user: Profile = Depends(get_current_user)
):
    """Delete one of your posts"""
    PostService(db, cache).delete_post(current_user.id, post_id)
    return PostActionResponse(success=True, message="Post deleted", post_id=post_id)


@router.post("/{post_id}/like/toggle", response_model=LikeStateResponse)
async def toggle_like(
    post_id: UUID,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    cache: ProfileSnapshotCache = Depends(get_profile_cache),
    current_user: Profile = Depends(get_current_user)
):
    """Like the post if you have not, otherwise remove your like"""
    return FeedService(db, settings, cache).toggle_like(current_user.id, post_id)


@router.put("/{post_id}/like", response_model=LikeStateResponse)
async def like_post(
    post_id: UUID,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    cache: ProfileSnapshotCache = Depends(get_profile_cache),
    current_user: Profile = Depends(get_current_user)
):
    """Like a post (idempotent)"""
    return FeedService(db, settings, cache).like_post(current_user.id, post_id)


@router.delete("/{post_id}/like", response_model=LikeStateResponse)
async def unlike_post(
    post_id: UUID,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    cache: ProfileSnapshotCache = Depends(get_profile_cache),
    current_user: Profile = Depends(get_current_user)
):
    """Remove your like (idempotent)"""
    return FeedService(db, settings, cache).unlike_post(current_user.id, post_id)


@router.get("/{post_id}/likes", response_model=List[ProfileSummary])
async def get_post_likers(
    post_id: UUID,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """Users who liked the post"""
    return PostService(db).get_post_likers(post_id)


@router.get("/{post_id}/comments", response_model=List[CommentResponse])
async def get_post_comments(
    post_id: UUID,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """Comments on a post, oldest first"""
    return PostService(db).get_post_comments(post_id)


@router.post("/{post_id}/comments", response_model=CommentCreatedResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    post_id: UUID,
    body: CommentCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    cache: ProfileSnapshotCache = Depends(get_profile_cache),
    current_user: Profile = Depends(get_current_user)
):
    """Comment on a post; returns the comment and the post's fresh comment count"""
    return FeedService(db, settings, cache).add_comment(current_user.id, post_id, body.content)
