"""
Profile service - lookups, updates, search and the profile page snapshot
"""
import logging
import re
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.exceptions import AlreadyExists, InvalidInput, NotFound
from app.models.profile import Profile
from app.schemas.post import ProfilePage
from app.schemas.profile import ProfileSummary, ProfileUpdate
from app.services.base import StoreService
from app.services.cache import ProfileSnapshotCache
from app.services.post_service import PostService
from app.services.social_service import STATUS_NONE, SocialService
from app.utils.time_utils import utc_now

logger = logging.getLogger(__name__)

# Reserved usernames that cannot be used
RESERVED_USERNAMES = {
    'admin', 'administrator', 'mod', 'moderator', 'system', 'bot',
    'whispr', 'support', 'help', 'official', 'null', 'undefined',
    'anonymous', 'guest', 'user', 'me'
}


def validate_username(username: str) -> Tuple[bool, str]:
    """
    Validate username format

    Returns:
        Tuple of (is_valid, error_message)
    """
    if len(username) < 3:
        return False, "Username must be at least 3 characters"
    if len(username) > 20:
        return False, "Username must be at most 20 characters"
    if not re.match(r'^[a-zA-Z0-9_]+$', username):
        return False, "Username can only contain letters, numbers, and underscores"
    if username.lower() in RESERVED_USERNAMES:
        return False, "This username is reserved"
    return True, ""


class ProfileService(StoreService):
    """Service for profile operations"""

    def __init__(self, db: Session, settings: Settings, cache: Optional[ProfileSnapshotCache] = None):
        super().__init__(db, cache)
        self.settings = settings

    def get_profile(self, user_id: UUID) -> Profile:
        with self._remote("fetch profile"):
            profile = self.db.get(Profile, user_id)
        if profile is None:
            raise NotFound("User not found")
        return profile

    def username_taken(self, username: str, exclude_id: Optional[UUID] = None) -> bool:
        with self._remote("check username"):
            query = self.db.query(Profile.id).filter(Profile.username == username)
            if exclude_id is not None:
                query = query.filter(Profile.id != exclude_id)
            return query.first() is not None

    def update_profile(self, viewer_id: UUID, update_data: ProfileUpdate) -> Profile:
        """Update the viewer's own profile"""
        profile = self.get_profile(viewer_id)
        update_dict = update_data.model_dump(exclude_unset=True)

        # username is NOT NULL; an explicit null is a bad request, not a clash
        if "username" in update_dict:
            if update_dict["username"] is None:
                raise InvalidInput("Username cannot be empty")
            is_valid, error_msg = validate_username(update_dict["username"])
            if not is_valid:
                raise InvalidInput(error_msg)
            if self.username_taken(update_dict["username"], exclude_id=viewer_id):
                raise AlreadyExists("Username already taken")

        with self._remote("update profile"):
            for field, value in update_dict.items():
                setattr(profile, field, value)
            profile.updated_at = utc_now()
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                if "username" not in update_dict:
                    raise
                # Another profile claimed the name after our check
                raise AlreadyExists("Username already taken")
            self.db.refresh(profile)

        self._invalidate(viewer_id)
        logger.info(f"Updated profile for user: {viewer_id}")
        return profile

    def search_profiles(self, query: str) -> List[Profile]:
        """Case-insensitive match on username or full name"""
        query = (query or "").strip()
        if len(query) < self.settings.SEARCH_MIN_QUERY_LENGTH:
            return []
        pattern = f"%{query}%"
        with self._remote("search users"):
            return self.db.query(Profile).filter(
                or_(
                    Profile.username.ilike(pattern),
                    Profile.full_name.ilike(pattern),
                )
            ).order_by(Profile.username).limit(self.settings.SEARCH_RESULT_LIMIT).all()

    def list_profiles(self) -> List[Profile]:
        """All profiles, newest first"""
        with self._remote("get users"):
            return self.db.query(Profile).order_by(Profile.created_at.desc()).all()

    def get_profile_page(self, viewer_id: UUID, user_id: UUID, force_refresh: bool = False) -> ProfilePage:
        """
        Profile, posts and counters for the profile screen.

        Served from the snapshot cache while the snapshot is inside its
        validity window, unless force_refresh is set.
        """
        if self.cache is not None and not force_refresh:
            cached = self.cache.get(viewer_id, user_id)
            if cached is not None:
                return cached

        profile = self.get_profile(user_id)
        social = SocialService(self.db, self.cache)
        posts = PostService(self.db, self.cache).get_user_posts(viewer_id, user_id)

        is_own = viewer_id == user_id
        status = social.get_status(viewer_id, user_id) if not is_own else None
        page = ProfilePage(
            profile=ProfileSummary.model_validate(profile),
            bio=profile.bio,
            posts=posts,
            friend_count=social.count_friends(user_id),
            pending_request_count=social.count_pending_incoming(user_id) if is_own else 0,
            friend_status=status.status if status else STATUS_NONE,
            is_sender=status.is_sender if status else None
        )

        if self.cache is not None:
            self.cache.set(viewer_id, user_id, page)
        return page
