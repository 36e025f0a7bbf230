"""Feed schemas"""
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel

from app.schemas.post import EnrichedPost


class FeedResponse(BaseModel):
    """One page of the viewer's feed, newest first"""
    posts: List[EnrichedPost]
    count: int
    latest_post_id: Optional[UUID] = None


class NewPostsResponse(BaseModel):
    """
    Result of a peek refresh.

    ``new_posts_count`` is a staleness hint, not an exact count.
    """
    new_posts_count: int
    latest_post_id: Optional[UUID] = None
