"""
Identity, profile and session revocation models
"""
from uuid import uuid4
from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.time_utils import utc_now


class Account(Base):
    """Authentication identity; its id is shared by the owner's profile"""
    __tablename__ = "accounts"

    id = Column(Uuid, primary_key=True, default=uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=utc_now)

    profile = relationship("Profile", back_populates="account", uselist=False)


class Profile(Base):
    """Public profile, mutated only by its owner"""
    __tablename__ = "profiles"

    id = Column(Uuid, ForeignKey("accounts.id", ondelete="CASCADE"), primary_key=True)
    username = Column(String(20), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=True)
    bio = Column(Text, nullable=True)
    avatar_url = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    # Relationships
    account = relationship("Account", back_populates="profile")
    posts = relationship("Post", back_populates="author", cascade="all, delete-orphan")


class RevokedToken(Base):
    """Session tokens ended by sign-out"""
    __tablename__ = "revoked_tokens"

    jti = Column(String(64), primary_key=True)
    account_id = Column(Uuid, ForeignKey("accounts.id", ondelete="CASCADE"), index=True)
    revoked_at = Column(DateTime, default=utc_now)
