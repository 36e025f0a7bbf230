"""Post, like and comment schemas"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from uuid import UUID

from app.schemas.profile import ProfileSummary


class PostCreate(BaseModel):
    """Create a post"""
    content: str = Field(..., max_length=5000)
    image_url: Optional[str] = None


class PostResponse(BaseModel):
    """Raw post row"""
    id: UUID
    user_id: UUID
    content: str
    image_url: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EnrichedPost(PostResponse):
    """Post with its author and viewer-relative engagement data"""
    author: Optional[ProfileSummary] = None
    like_count: int = 0
    comment_count: int = 0
    is_liked: bool = False


class LikeStateResponse(BaseModel):
    """Like state after a like/unlike/toggle"""
    post_id: UUID
    is_liked: bool
    like_count: int


class CommentCreate(BaseModel):
    """Add a comment"""
    content: str = Field(..., max_length=2000)


class CommentResponse(BaseModel):
    """Comment row with its author"""
    id: UUID
    post_id: UUID
    user_id: UUID
    content: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    author: Optional[ProfileSummary] = None

    class Config:
        from_attributes = True


class CommentCreatedResponse(BaseModel):
    """New comment plus the re-queried comment count for its post"""
    comment: CommentResponse
    comment_count: int


class PostActionResponse(BaseModel):
    """Response after a post action"""
    success: bool
    message: str
    post_id: Optional[UUID] = None


class ProfilePage(BaseModel):
    """Everything the profile screen shows for one profile"""
    profile: ProfileSummary
    bio: Optional[str] = None
    posts: List[EnrichedPost]
    friend_count: int
    pending_request_count: int
    friend_status: str
    is_sender: Optional[bool] = None
