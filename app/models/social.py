"""
Social features models - friend requests
"""
from uuid import uuid4
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.time_utils import utc_now

PENDING = "pending"
ACCEPTED = "accepted"
REJECTED = "rejected"


class FriendRequest(Base):
    """
    Directed friend request between two profiles.

    Storage is directional (sender/receiver) but at most one row exists per
    unordered pair: ``user_low_id``/``user_high_id`` hold the pair in
    canonical order and are unique together.
    """
    __tablename__ = "friend_requests"

    id = Column(Uuid, primary_key=True, default=uuid4)
    sender_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    receiver_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    user_low_id = Column(Uuid, nullable=False)
    user_high_id = Column(Uuid, nullable=False)

    # Status: 'pending', 'accepted', 'rejected'
    status = Column(String(20), default=PENDING, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint('user_low_id', 'user_high_id', name='unique_friend_pair'),
    )

    # Relationships
    sender = relationship("Profile", foreign_keys=[sender_id])
    receiver = relationship("Profile", foreign_keys=[receiver_id])

    @staticmethod
    def canonical_pair(a, b):
        """Order two ids so that the same pair always maps to the same key"""
        return (a, b) if str(a) <= str(b) else (b, a)
