"""
API v1 routes aggregation
"""
from fastapi import APIRouter
from app.api.v1 import auth, users, social, posts, feed

api_router = APIRouter()

# Authentication
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])

# Users
api_router.include_router(users.router, prefix="/users", tags=["users"])

# Social/Friends
api_router.include_router(social.router, tags=["social"])

# Posts
api_router.include_router(posts.router, prefix="/posts", tags=["posts"])

# Feed
api_router.include_router(feed.router, prefix="/feed", tags=["feed"])
