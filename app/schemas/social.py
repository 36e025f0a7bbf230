"""
Social and friends schemas
"""
from datetime import datetime
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel

from app.schemas.profile import ProfileSummary


class FriendRequestResponse(BaseModel):
    """Friend request response"""
    id: UUID
    sender_id: UUID
    receiver_id: UUID
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FriendStatusResponse(BaseModel):
    """Relationship between the viewer and a target profile"""
    status: str
    is_sender: Optional[bool] = None
    request_id: Optional[UUID] = None


class FriendListResponse(BaseModel):
    """Response with list of friends"""
    friends: List[ProfileSummary]
    total_count: int


class PendingRequestsResponse(BaseModel):
    """Profiles with a pending request, newest request first"""
    requests: List[ProfileSummary]
    count: int


class FriendActionResponse(BaseModel):
    """Response after friend action (send/accept/reject/cancel/unfriend)"""
    success: bool
    message: str
    request: Optional[FriendRequestResponse] = None
