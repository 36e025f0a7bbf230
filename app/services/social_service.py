"""
Social service for managing friends and friend requests

Pair lifecycle (one row per unordered pair):

    (no row)  --send-->     pending(sender=X)
    pending   --accept-->   accepted      (receiver only)
    pending   --reject-->   rejected      (receiver only)
    pending   --cancel-->   (no row)      (sender only)
    accepted  --unfriend--> (no row)      (either side)
    rejected  --send-->     AlreadyRequested (the rejected row keeps blocking)
"""
import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, delete, or_, update
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import AlreadyRequested, DeletionNotVerified, InvalidInput, NotFound
from app.models.profile import Profile
from app.models.social import ACCEPTED, PENDING, REJECTED, FriendRequest
from app.schemas.profile import ProfileSummary
from app.schemas.social import FriendListResponse, FriendStatusResponse, PendingRequestsResponse
from app.services.base import StoreService
from app.utils.time_utils import utc_now

logger = logging.getLogger(__name__)

STATUS_NONE = "none"


class SocialService(StoreService):
    """Service for social/friend operations"""

    def _pair_filter(self, user_id: UUID, other_id: UUID):
        low, high = FriendRequest.canonical_pair(user_id, other_id)
        return and_(FriendRequest.user_low_id == low, FriendRequest.user_high_id == high)

    def _touching(self, user_id: UUID):
        return or_(FriendRequest.sender_id == user_id, FriendRequest.receiver_id == user_id)

    def get_request_between(self, user_id: UUID, other_id: UUID) -> Optional[FriendRequest]:
        """The single request row for the pair, whichever side sent it"""
        with self._remote("look up friend request"):
            return self.db.query(FriendRequest).filter(self._pair_filter(user_id, other_id)).first()

    def send_request(self, viewer_id: UUID, target_id: UUID) -> FriendRequest:
        """
        Send a friend request.

        Raises AlreadyRequested, carrying the existing row unchanged, when any
        row exists for the pair, including a rejected one.
        """
        if viewer_id == target_id:
            raise InvalidInput("Cannot send friend request to yourself")

        with self._remote("send friend request"):
            if self.db.get(Profile, target_id) is None:
                raise NotFound("User not found")

        existing = self.get_request_between(viewer_id, target_id)
        if existing:
            logger.info(f"Friend request already exists between {viewer_id} and {target_id}: {existing.status}")
            raise AlreadyRequested(existing)

        low, high = FriendRequest.canonical_pair(viewer_id, target_id)
        request = FriendRequest(
            sender_id=viewer_id,
            receiver_id=target_id,
            user_low_id=low,
            user_high_id=high,
            status=PENDING
        )
        with self._remote("send friend request"):
            self.db.add(request)
            try:
                self.db.commit()
            except IntegrityError:
                # Lost a race against a concurrent request for the same pair
                self.db.rollback()
                winner = self.db.query(FriendRequest).filter(self._pair_filter(viewer_id, target_id)).first()
                if winner is None:
                    raise
                raise AlreadyRequested(winner)
            self.db.refresh(request)

        self._invalidate(viewer_id, target_id)
        logger.info(f"Friend request sent from {viewer_id} to {target_id}")
        return request

    def _answer_request(self, viewer_id: UUID, sender_id: UUID, new_status: str) -> FriendRequest:
        """Move a pending request addressed to the viewer to new_status"""
        with self._remote(f"mark friend request {new_status}"):
            result = self.db.execute(
                update(FriendRequest)
                .where(
                    FriendRequest.sender_id == sender_id,
                    FriendRequest.receiver_id == viewer_id,  # We are the recipient
                    FriendRequest.status == PENDING
                )
                .values(status=new_status, updated_at=utc_now())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                self.db.rollback()
                raise NotFound("No pending friend request from this user")
            self.db.commit()

        self._invalidate(viewer_id, sender_id)
        logger.info(f"Friend request from {sender_id} to {viewer_id} {new_status}")
        request = self.get_request_between(viewer_id, sender_id)
        if request is None:
            raise NotFound("Friend request was removed concurrently")
        self.db.refresh(request)
        return request

    def accept_request(self, viewer_id: UUID, sender_id: UUID) -> FriendRequest:
        """Accept a friend request"""
        return self._answer_request(viewer_id, sender_id, ACCEPTED)

    def reject_request(self, viewer_id: UUID, sender_id: UUID) -> FriendRequest:
        """Reject a friend request"""
        return self._answer_request(viewer_id, sender_id, REJECTED)

    def cancel_request(self, viewer_id: UUID, receiver_id: UUID) -> None:
        """Cancel a sent friend request while it is still pending"""
        predicate = and_(
            FriendRequest.sender_id == viewer_id,  # We are the sender
            FriendRequest.receiver_id == receiver_id,
            FriendRequest.status == PENDING
        )
        with self._remote("cancel friend request"):
            result = self.db.execute(
                delete(FriendRequest).where(predicate).execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                self.db.rollback()
                raise NotFound("No pending friend request to this user")
            self.db.commit()
            self.db.expire_all()
            if self.db.query(FriendRequest.id).filter(predicate).first() is not None:
                logger.error(f"Friend request from {viewer_id} to {receiver_id} still present after cancel")
                raise DeletionNotVerified("Friend request still exists after cancel")

        self._invalidate(viewer_id, receiver_id)
        logger.info(f"Friend request from {viewer_id} to {receiver_id} cancelled")

    def unfriend(self, viewer_id: UUID, other_id: UUID) -> None:
        """Remove the pair's row whichever side sent it; no row is not an error"""
        pair = self._pair_filter(viewer_id, other_id)
        with self._remote("unfriend user"):
            result = self.db.execute(
                delete(FriendRequest).where(pair).execution_options(synchronize_session=False)
            )
            self.db.commit()
            self.db.expire_all()
            if self.db.query(FriendRequest.id).filter(pair).first() is not None:
                logger.error(f"Relationship between {viewer_id} and {other_id} still present after unfriend")
                raise DeletionNotVerified("Friend relationship still exists after unfriend")

        self._invalidate(viewer_id, other_id)
        logger.info(f"Unfriended {other_id} from {viewer_id} ({result.rowcount} rows removed)")

    def get_status(self, viewer_id: UUID, target_id: UUID) -> FriendStatusResponse:
        """Relationship status from the viewer's side, with the sender role bit"""
        request = self.get_request_between(viewer_id, target_id)
        if request is None:
            return FriendStatusResponse(status=STATUS_NONE)
        return FriendStatusResponse(
            status=request.status,
            is_sender=request.sender_id == viewer_id,
            request_id=request.id
        )

    def are_friends(self, user_id: UUID, other_user_id: UUID) -> bool:
        """Check if two users are friends"""
        request = self.get_request_between(user_id, other_user_id)
        return request is not None and request.status == ACCEPTED

    def friend_ids(self, user_id: UUID) -> List[UUID]:
        """Ids on the other end of every accepted request touching user_id"""
        with self._remote("fetch friends"):
            rows = self.db.query(FriendRequest.sender_id, FriendRequest.receiver_id).filter(
                self._touching(user_id),
                FriendRequest.status == ACCEPTED
            ).all()
        return [receiver if sender == user_id else sender for sender, receiver in rows]

    def _profiles_by_id(self, ids: List[UUID]) -> dict:
        if not ids:
            return {}
        with self._remote("fetch profiles"):
            profiles = self.db.query(Profile).filter(Profile.id.in_(ids)).all()
        return {profile.id: profile for profile in profiles}

    def list_friends(self, user_id: UUID) -> FriendListResponse:
        """Get list of friends, resolved in one batched profile lookup"""
        profiles = sorted(
            self._profiles_by_id(self.friend_ids(user_id)).values(),
            key=lambda p: p.username.lower()
        )
        return FriendListResponse(
            friends=[ProfileSummary.model_validate(p) for p in profiles],
            total_count=len(profiles)
        )

    def count_friends(self, user_id: UUID) -> int:
        """Get count of friends"""
        with self._remote("count friends"):
            return self.db.query(FriendRequest).filter(
                self._touching(user_id),
                FriendRequest.status == ACCEPTED
            ).count()

    def _pending(self, own_column, other_column, user_id: UUID) -> PendingRequestsResponse:
        with self._remote("fetch pending friend requests"):
            other_ids = [row[0] for row in self.db.query(other_column).filter(
                own_column == user_id,
                FriendRequest.status == PENDING
            ).order_by(FriendRequest.created_at.desc()).all()]

        profiles = self._profiles_by_id(other_ids)
        ordered = [profiles[i] for i in other_ids if i in profiles]
        return PendingRequestsResponse(
            requests=[ProfileSummary.model_validate(p) for p in ordered],
            count=len(ordered)
        )

    def list_pending_incoming(self, user_id: UUID) -> PendingRequestsResponse:
        """Senders of pending requests addressed to user_id, newest first"""
        return self._pending(FriendRequest.receiver_id, FriendRequest.sender_id, user_id)

    def list_pending_outgoing(self, user_id: UUID) -> PendingRequestsResponse:
        """Receivers of pending requests sent by user_id, newest first"""
        return self._pending(FriendRequest.sender_id, FriendRequest.receiver_id, user_id)

    def count_pending_incoming(self, user_id: UUID) -> int:
        with self._remote("count pending friend requests"):
            return self.db.query(FriendRequest).filter(
                FriendRequest.receiver_id == user_id,
                FriendRequest.status == PENDING
            ).count()
