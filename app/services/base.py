"""
Shared plumbing for services that talk to the store
"""
import logging
from contextlib import contextmanager
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import RemoteCallFailed
from app.services.cache import ProfileSnapshotCache

logger = logging.getLogger(__name__)


class StoreService:
    """Base for services bound to one session and an optional profile cache"""

    def __init__(self, db: Session, cache: Optional[ProfileSnapshotCache] = None):
        self.db = db
        self.cache = cache

    @contextmanager
    def _remote(self, action: str):
        """Convert store errors into RemoteCallFailed, rolling the session back"""
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Store call failed while trying to {action}: {e}")
            raise RemoteCallFailed(f"Failed to {action}: {e}") from e

    def _invalidate(self, *user_ids) -> None:
        """Drop cached profile snapshots touching these users"""
        if self.cache is not None:
            self.cache.invalidate(*user_ids)
