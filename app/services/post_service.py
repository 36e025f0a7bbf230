"""
Post service - creating, deleting and enriching posts
"""
import logging
from typing import Dict, List, Optional, Set, Tuple
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from app.core.exceptions import DeletionNotVerified, EmptyContent, NotFound
from app.models.post import Comment, Like, Post
from app.models.profile import Profile
from app.schemas.post import CommentResponse, EnrichedPost, PostResponse
from app.schemas.profile import ProfileSummary
from app.services.base import StoreService

logger = logging.getLogger(__name__)


class PostService(StoreService):
    """Service for post operations"""

    def create_post(self, viewer_id: UUID, content: str, image_url: Optional[str] = None) -> Post:
        """Create a post authored by the viewer"""
        if not content or not content.strip():
            raise EmptyContent("Please enter some content for your post")

        post = Post(user_id=viewer_id, content=content.strip(), image_url=image_url)
        with self._remote("create post"):
            self.db.add(post)
            self.db.commit()
            self.db.refresh(post)

        self._invalidate(viewer_id)
        logger.info(f"Post {post.id} created by {viewer_id}")
        return post

    def get_post(self, post_id: UUID) -> Post:
        with self._remote("fetch post"):
            post = self.db.get(Post, post_id)
        if post is None:
            raise NotFound("Post not found")
        return post

    def post_exists(self, post_id: UUID) -> bool:
        with self._remote("check post"):
            return self.db.query(Post.id).filter(Post.id == post_id).first() is not None

    def delete_post(self, viewer_id: UUID, post_id: UUID) -> None:
        """
        Delete one of the viewer's posts along with its likes and comments.

        The post is re-read afterwards; if it survived, DeletionNotVerified
        is raised instead of reporting success.
        """
        with self._remote("delete post"):
            post = self.db.query(Post).filter(Post.id == post_id, Post.user_id == viewer_id).first()
            if post is None:
                raise NotFound("Post not found or you do not have permission to delete it")

            self.db.query(Like).filter(Like.post_id == post_id).delete(synchronize_session=False)
            self.db.query(Comment).filter(Comment.post_id == post_id).delete(synchronize_session=False)
            self.db.delete(post)
            self.db.commit()

            if self.db.query(Post.id).filter(Post.id == post_id).first() is not None:
                logger.error(f"Post {post_id} still exists after deletion attempt")
                raise DeletionNotVerified("Post deletion failed - post still exists")

        self._invalidate(viewer_id)
        logger.info(f"Post {post_id} deleted by {viewer_id}")

    def get_user_posts(self, viewer_id: UUID, user_id: UUID) -> List[EnrichedPost]:
        """A profile's posts, newest first, enriched for the viewer"""
        with self._remote("fetch user posts"):
            posts = self.db.query(Post).filter(Post.user_id == user_id).order_by(
                Post.created_at.desc(), Post.id.desc()
            ).all()
        return self.enrich_posts(viewer_id, posts)

    def get_like_count(self, post_id: UUID) -> int:
        with self._remote("count likes"):
            return self.db.query(Like).filter(Like.post_id == post_id).count()

    def get_comment_count(self, post_id: UUID) -> int:
        with self._remote("count comments"):
            return self.db.query(Comment).filter(Comment.post_id == post_id).count()

    def get_post_likers(self, post_id: UUID) -> List[ProfileSummary]:
        """Profiles of everyone who liked the post, earliest like first"""
        self.get_post(post_id)
        with self._remote("fetch likes"):
            profiles = self.db.query(Profile).join(Like, Like.user_id == Profile.id).filter(
                Like.post_id == post_id
            ).order_by(Like.created_at.asc()).all()
        return [ProfileSummary.model_validate(p) for p in profiles]

    def get_post_comments(self, post_id: UUID) -> List[CommentResponse]:
        """Comments on a post, oldest first, with their authors"""
        self.get_post(post_id)
        with self._remote("fetch comments"):
            comments = self.db.query(Comment).options(joinedload(Comment.author)).filter(
                Comment.post_id == post_id
            ).order_by(
                Comment.created_at.asc(), Comment.id.asc()
            ).all()
            return [CommentResponse.model_validate(c) for c in comments]

    def _engagement(
        self,
        viewer_id: Optional[UUID],
        post_ids: List[UUID]
    ) -> Tuple[Dict[UUID, int], Dict[UUID, int], Set[UUID]]:
        """Like counts, comment counts and the viewer's liked set for a page of posts"""
        like_counts = dict(
            self.db.query(Like.post_id, func.count(Like.id))
            .filter(Like.post_id.in_(post_ids))
            .group_by(Like.post_id)
            .all()
        )
        comment_counts = dict(
            self.db.query(Comment.post_id, func.count(Comment.id))
            .filter(Comment.post_id.in_(post_ids))
            .group_by(Comment.post_id)
            .all()
        )
        liked: Set[UUID] = set()
        if viewer_id is not None:
            liked = {
                row[0] for row in self.db.query(Like.post_id).filter(
                    Like.post_id.in_(post_ids),
                    Like.user_id == viewer_id
                ).all()
            }
        return like_counts, comment_counts, liked

    def enrich_posts(self, viewer_id: Optional[UUID], posts: List[Post]) -> List[EnrichedPost]:
        """
        Attach author profiles and engagement data to a page of posts.

        Authors are resolved in one batched lookup. If the engagement queries
        fail the page is still returned, with zero counts and is_liked False.
        """
        if not posts:
            return []

        author_ids = list({post.user_id for post in posts})
        with self._remote("fetch post authors"):
            profiles = self.db.query(Profile).filter(Profile.id.in_(author_ids)).all()
        authors = {p.id: ProfileSummary.model_validate(p) for p in profiles}

        # Snapshot rows before the engagement queries; a rollback expires them
        enriched = [EnrichedPost(**PostResponse.model_validate(post).model_dump()) for post in posts]
        try:
            like_counts, comment_counts, liked = self._engagement(viewer_id, [p.id for p in enriched])
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Error enhancing post data, using defaults: {e}")
            like_counts, comment_counts, liked = {}, {}, set()

        for post in enriched:
            post.author = authors.get(post.user_id)
            post.like_count = like_counts.get(post.id, 0)
            post.comment_count = comment_counts.get(post.id, 0)
            post.is_liked = post.id in liked
        return enriched
