"""
Social/Friends API endpoints
"""
from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.profile import Profile
from app.core.dependencies import get_current_user, get_profile_cache
from app.schemas.social import (
    FriendRequestResponse,
    FriendStatusResponse,
    PendingRequestsResponse,
    FriendActionResponse,
)
from app.services.cache import ProfileSnapshotCache
from app.services.social_service import SocialService

router = APIRouter(prefix="/social", tags=["social"])


@router.get("/requests/incoming", response_model=PendingRequestsResponse)
async def get_incoming_requests(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """Pending friend requests sent to the current user, newest first"""
    return SocialService(db).list_pending_incoming(current_user.id)


@router.get("/requests/outgoing", response_model=PendingRequestsResponse)
async def get_outgoing_requests(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """Pending friend requests sent by the current user, newest first"""
    return SocialService(db).list_pending_outgoing(current_user.id)


@router.post("/requests/{target_id}", response_model=FriendActionResponse)
async def send_friend_request(
    target_id: UUID,
    db: Session = Depends(get_db),
    cache: ProfileSnapshotCache = Depends(get_profile_cache),
    current_user: Profile = Depends(get_current_user)
):
    """Send a friend request to another user"""
    request = SocialService(db, cache).send_request(current_user.id, target_id)
    return FriendActionResponse(
        success=True,
        message="Friend request sent",
        request=FriendRequestResponse.model_validate(request)
    )


@router.post("/requests/{sender_id}/accept", response_model=FriendActionResponse)
async def accept_friend_request(
    sender_id: UUID,
    db: Session = Depends(get_db),
    cache: ProfileSnapshotCache = Depends(get_profile_cache),
    current_user: Profile = Depends(get_current_user)
):
    """Accept a friend request"""
    request = SocialService(db, cache).accept_request(current_user.id, sender_id)
    return FriendActionResponse(
        success=True,
        message="Friend request accepted",
        request=FriendRequestResponse.model_validate(request)
    )


@router.post("/requests/{sender_id}/reject", response_model=FriendActionResponse)
async def reject_friend_request(
    sender_id: UUID,
    db: Session = Depends(get_db),
    cache: ProfileSnapshotCache = Depends(get_profile_cache),
    current_user: Profile = Depends(get_current_user)
):
    """Reject a friend request"""
    request = SocialService(db, cache).reject_request(current_user.id, sender_id)
    return FriendActionResponse(
        success=True,
        message="Friend request rejected",
        request=FriendRequestResponse.model_validate(request)
    )


@router.delete("/requests/{receiver_id}", response_model=FriendActionResponse)
async def cancel_friend_request(
    receiver_id: UUID,
    db: Session = Depends(get_db),
    cache: ProfileSnapshotCache = Depends(get_profile_cache),
    current_user: Profile = Depends(get_current_user)
):
    """Cancel a sent friend request"""
    SocialService(db, cache).cancel_request(current_user.id, receiver_id)
    return FriendActionResponse(
        success=True,
        message="Friend request cancelled"
    )


@router.delete("/friends/{other_id}", response_model=FriendActionResponse)
async def unfriend(
    other_id: UUID,
    db: Session = Depends(get_db),
    cache: ProfileSnapshotCache = Depends(get_profile_cache),
    current_user: Profile = Depends(get_current_user)
):
    """Remove a friend"""
    SocialService(db, cache).unfriend(current_user.id, other_id)
    return FriendActionResponse(
        success=True,
        message="Friend removed"
    )


@router.get("/status/{target_id}", response_model=FriendStatusResponse)
async def get_friend_status(
    target_id: UUID,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """Relationship status with another user, and whether you sent the request"""
    return SocialService(db).get_status(current_user.id, target_id)
