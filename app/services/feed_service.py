"""
Feed service - visibility, feed assembly, likes and comments
"""
import logging
from typing import List, Optional, Sequence, Set
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.exceptions import DeletionNotVerified, EmptyContent
from app.models.post import Comment, Like, Post
from app.schemas.feed import FeedResponse, NewPostsResponse
from app.schemas.post import CommentCreatedResponse, CommentResponse, LikeStateResponse
from app.services.base import StoreService
from app.services.cache import ProfileSnapshotCache
from app.services.post_service import PostService
from app.services.social_service import SocialService

logger = logging.getLogger(__name__)


def count_new_posts(ordered_ids: Sequence[UUID], last_seen_id: Optional[UUID]) -> int:
    """
    Number of posts ahead of the last one the client saw.

    If the last seen id has dropped out of the fetched window (deleted, or
    pushed out by more new posts than the window holds) every fetched post
    counts as new, so the result is a hint and not an exact count.
    """
    if last_seen_id is None or not ordered_ids:
        return 0
    try:
        return list(ordered_ids).index(last_seen_id)
    except ValueError:
        return len(ordered_ids)


class FeedService(StoreService):
    """Service assembling the viewer's feed"""

    def __init__(self, db: Session, settings: Settings, cache: Optional[ProfileSnapshotCache] = None):
        super().__init__(db, cache)
        self.page_size = settings.FEED_PAGE_SIZE
        self.social = SocialService(db, cache)
        self.posts = PostService(db, cache)

    def get_visible_author_set(self, viewer_id: UUID) -> Set[UUID]:
        """The viewer plus every accepted friend"""
        authors = set(self.social.friend_ids(viewer_id))
        authors.add(viewer_id)
        return authors

    def _ordered_posts(self, viewer_id: UUID) -> List[Post]:
        authors = self.get_visible_author_set(viewer_id)
        with self._remote("fetch posts"):
            return self.db.query(Post).filter(Post.user_id.in_(list(authors))).order_by(
                Post.created_at.desc(), Post.id.desc()
            ).all()

    def get_feed(self, viewer_id: UUID) -> FeedResponse:
        """Newest posts from the visible author set, capped at the page size"""
        # Candidates are fetched unranked and truncated here, not in the query
        page = self._ordered_posts(viewer_id)[:self.page_size]
        posts = self.posts.enrich_posts(viewer_id, page)
        logger.info(f"Returning {len(posts)} feed posts for {viewer_id}")
        return FeedResponse(
            posts=posts,
            count=len(posts),
            latest_post_id=posts[0].id if posts else None
        )

    def peek_new_posts(self, viewer_id: UUID, last_seen_post_id: Optional[UUID]) -> NewPostsResponse:
        """Cheap refresh: how many posts arrived ahead of last_seen_post_id"""
        authors = self.get_visible_author_set(viewer_id)
        with self._remote("check for new posts"):
            rows = self.db.query(Post.id).filter(Post.user_id.in_(list(authors))).order_by(
                Post.created_at.desc(), Post.id.desc()
            ).limit(self.page_size).all()
        ids = [row[0] for row in rows]
        return NewPostsResponse(
            new_posts_count=count_new_posts(ids, last_seen_post_id),
            latest_post_id=ids[0] if ids else None
        )

    def _like_state(self, post_id: UUID, is_liked: bool) -> LikeStateResponse:
        return LikeStateResponse(
            post_id=post_id,
            is_liked=is_liked,
            like_count=self.posts.get_like_count(post_id)
        )

    def _find_like(self, viewer_id: UUID, post_id: UUID) -> Optional[Like]:
        with self._remote("check like"):
            return self.db.query(Like).filter(Like.post_id == post_id, Like.user_id == viewer_id).first()

    def like_post(self, viewer_id: UUID, post_id: UUID) -> LikeStateResponse:
        """Like a post; liking an already liked post changes nothing"""
        post = self.posts.get_post(post_id)
        author_id = post.user_id
        if self._find_like(viewer_id, post_id) is None:
            with self._remote("like post"):
                self.db.add(Like(post_id=post_id, user_id=viewer_id))
                try:
                    self.db.commit()
                except IntegrityError:
                    # A concurrent like for the same pair won
                    self.db.rollback()
            self._invalidate(viewer_id, author_id)
        return self._like_state(post_id, True)

    def unlike_post(self, viewer_id: UUID, post_id: UUID) -> LikeStateResponse:
        """Remove the viewer's like; unliking a post that is not liked changes nothing"""
        post = self.posts.get_post(post_id)
        author_id = post.user_id
        with self._remote("unlike post"):
            removed = self.db.query(Like).filter(
                Like.post_id == post_id,
                Like.user_id == viewer_id
            ).delete(synchronize_session=False)
            self.db.commit()
            if removed and self.db.query(Like.id).filter(
                Like.post_id == post_id,
                Like.user_id == viewer_id
            ).first() is not None:
                raise DeletionNotVerified("Like still exists after unlike")
        if removed:
            self._invalidate(viewer_id, author_id)
        return self._like_state(post_id, False)

    def toggle_like(self, viewer_id: UUID, post_id: UUID) -> LikeStateResponse:
        """
        Flip the viewer's like on a post.

        Returns the new state with the re-queried like count; callers that
        keep a cached count may instead adjust it by one.
        """
        self.posts.get_post(post_id)
        if self._find_like(viewer_id, post_id) is not None:
            return self.unlike_post(viewer_id, post_id)
        return self.like_post(viewer_id, post_id)

    def add_comment(self, viewer_id: UUID, post_id: UUID, text: str) -> CommentCreatedResponse:
        """Append a comment and re-query the post's comment count"""
        if text is None or not text.strip():
            raise EmptyContent("Comment cannot be empty")

        post = self.posts.get_post(post_id)
        author_id = post.user_id
        comment = Comment(post_id=post_id, user_id=viewer_id, content=text.strip())
        with self._remote("add comment"):
            self.db.add(comment)
            self.db.commit()
            self.db.refresh(comment)
            created = CommentResponse.model_validate(comment)

        self._invalidate(viewer_id, author_id)
        logger.info(f"Comment {created.id} added to post {post_id} by {viewer_id}")
        return CommentCreatedResponse(
            comment=created,
            comment_count=self.posts.get_comment_count(post_id)
        )
