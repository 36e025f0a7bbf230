"""
Database models for the Whispr Social Backend

All models should be imported here for Alembic to detect them.
"""
from app.models.profile import Account, Profile, RevokedToken
from app.models.post import Post, Like, Comment
from app.models.social import FriendRequest

__all__ = [
    # Identity
    "Account",
    "Profile",
    "RevokedToken",
    # Content
    "Post",
    "Like",
    "Comment",
    # Social
    "FriendRequest",
]
