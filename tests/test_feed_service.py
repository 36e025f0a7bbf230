from uuid import uuid4

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import EmptyContent, NotFound
from app.models.post import Like
from app.services.feed_service import FeedService, count_new_posts
from app.services.post_service import PostService


@pytest.fixture
def feed(db, settings, cache):
    return FeedService(db, settings, cache)


@pytest.fixture
def users(make_profile, feed):
    alice, bob, carol = make_profile("alice"), make_profile("bob"), make_profile("carol")
    feed.social.send_request(alice.id, bob.id)
    feed.social.accept_request(bob.id, alice.id)
    # carol only has a pending request to alice, so she stays invisible
    feed.social.send_request(carol.id, alice.id)
    return {"alice": alice, "bob": bob, "carol": carol}


class TestCountNewPosts:
    def test_position_of_last_seen(self):
        a, b, c = uuid4(), uuid4(), uuid4()

        assert count_new_posts([a, b, c], a) == 0
        assert count_new_posts([a, b, c], b) == 1
        assert count_new_posts([a, b, c], c) == 2

    def test_unknown_last_seen_counts_whole_window(self):
        assert count_new_posts([uuid4(), uuid4(), uuid4()], uuid4()) == 3

    def test_nothing_seen_or_nothing_fetched(self):
        assert count_new_posts([uuid4()], None) == 0
        assert count_new_posts([], uuid4()) == 0


class TestFeed:
    def test_visible_authors_are_viewer_and_accepted_friends(self, feed, users):
        assert feed.get_visible_author_set(users["alice"].id) == {users["alice"].id, users["bob"].id}
        assert feed.get_visible_author_set(users["carol"].id) == {users["carol"].id}

    def test_feed_is_newest_first_from_visible_authors(self, feed, users, make_post):
        make_post(users["alice"], "alice old", minutes_ago=60)
        make_post(users["carol"], "carol post", minutes_ago=5)
        make_post(users["bob"], "bob recent", minutes_ago=10)
        make_post(users["alice"], "alice mid", minutes_ago=30)

        page = feed.get_feed(users["alice"].id)

        assert [p.content for p in page.posts] == ["bob recent", "alice mid", "alice old"]
        assert page.count == 3
        assert page.latest_post_id == page.posts[0].id
        assert page.posts[0].author.username == "bob"

    def test_friend_sees_viewer_posts_symmetrically(self, feed, users, make_post):
        make_post(users["alice"], "hello from alice")

        assert [p.content for p in feed.get_feed(users["bob"].id).posts] == ["hello from alice"]

    def test_empty_feed(self, feed, users):
        page = feed.get_feed(users["carol"].id)

        assert page.posts == []
        assert page.latest_post_id is None

    def test_feed_is_capped_at_page_size(self, db, settings, cache, users, make_post):
        small = FeedService(db, settings.model_copy(update={"FEED_PAGE_SIZE": 3}), cache)
        for minutes in (50, 40, 30, 20, 10):
            make_post(users["bob"], f"post {minutes}", minutes_ago=minutes)

        page = small.get_feed(users["alice"].id)

        assert [p.content for p in page.posts] == ["post 10", "post 20", "post 30"]

    def test_unfriended_posts_leave_the_feed(self, feed, users, make_post):
        make_post(users["bob"], "bob post")
        feed.social.unfriend(users["alice"].id, users["bob"].id)

        assert feed.get_feed(users["alice"].id).posts == []

    def test_engagement_is_viewer_relative(self, feed, users, make_post):
        post = make_post(users["alice"], "likeable")
        feed.like_post(users["bob"].id, post.id)
        feed.add_comment(users["alice"].id, post.id, "first")
        feed.add_comment(users["bob"].id, post.id, "second")

        as_alice = feed.get_feed(users["alice"].id).posts[0]
        as_bob = feed.get_feed(users["bob"].id).posts[0]

        assert as_alice.like_count == 1
        assert as_alice.comment_count == 2
        assert as_alice.is_liked is False
        assert as_bob.is_liked is True

    def test_engagement_failure_falls_back_to_defaults(self, feed, users, make_post, monkeypatch):
        post = make_post(users["alice"], "still shown")
        feed.like_post(users["alice"].id, post.id)

        def broken(*args, **kwargs):
            raise SQLAlchemyError("engagement tables unavailable")

        monkeypatch.setattr(feed.posts, "_engagement", broken)
        page = feed.get_feed(users["alice"].id)

        assert [p.content for p in page.posts] == ["still shown"]
        assert page.posts[0].like_count == 0
        assert page.posts[0].comment_count == 0
        assert page.posts[0].is_liked is False
        assert page.posts[0].author.username == "alice"


class TestPeekNewPosts:
    def test_counts_posts_ahead_of_last_seen(self, feed, users, make_post):
        make_post(users["alice"], "one", minutes_ago=60)
        make_post(users["bob"], "two", minutes_ago=30)
        last_seen = feed.get_feed(users["alice"].id).latest_post_id

        make_post(users["bob"], "three", minutes_ago=10)
        newest = make_post(users["alice"], "four", minutes_ago=5)
        make_post(users["carol"], "invisible", minutes_ago=1)

        peek = feed.peek_new_posts(users["alice"].id, last_seen)

        assert peek.new_posts_count == 2
        assert peek.latest_post_id == newest.id

    def test_up_to_date(self, feed, users, make_post):
        make_post(users["alice"], "only")
        last_seen = feed.get_feed(users["alice"].id).latest_post_id

        assert feed.peek_new_posts(users["alice"].id, last_seen).new_posts_count == 0

    def test_no_last_seen(self, feed, users, make_post):
        make_post(users["alice"], "only")

        assert feed.peek_new_posts(users["alice"].id, None).new_posts_count == 0

    def test_deleted_last_seen_counts_every_fetched_post(self, db, feed, users, make_post):
        make_post(users["alice"], "one", minutes_ago=60)
        seen = make_post(users["alice"], "two", minutes_ago=30)
        seen_id = seen.id
        make_post(users["bob"], "three", minutes_ago=10)
        PostService(db).delete_post(users["alice"].id, seen_id)

        assert feed.peek_new_posts(users["alice"].id, seen_id).new_posts_count == 2


class TestLikes:
    def test_like_is_idempotent(self, db, feed, users, make_post):
        post = make_post(users["alice"], "post")

        feed.like_post(users["bob"].id, post.id)
        state = feed.like_post(users["bob"].id, post.id)

        assert state.is_liked is True
        assert state.like_count == 1
        assert db.query(Like).count() == 1

    def test_unlike_is_idempotent(self, feed, users, make_post):
        post = make_post(users["alice"], "post")
        feed.like_post(users["bob"].id, post.id)

        feed.unlike_post(users["bob"].id, post.id)
        state = feed.unlike_post(users["bob"].id, post.id)

        assert state.is_liked is False
        assert state.like_count == 0

    def test_toggle_flips_state(self, feed, users, make_post):
        post = make_post(users["alice"], "post")

        liked = feed.toggle_like(users["bob"].id, post.id)
        unliked = feed.toggle_like(users["bob"].id, post.id)

        assert (liked.is_liked, liked.like_count) == (True, 1)
        assert (unliked.is_liked, unliked.like_count) == (False, 0)

    def test_like_counts_every_liker(self, feed, users, make_post):
        post = make_post(users["alice"], "post")
        feed.like_post(users["alice"].id, post.id)

        assert feed.like_post(users["bob"].id, post.id).like_count == 2

    def test_like_missing_post(self, feed, users):
        with pytest.raises(NotFound):
            feed.like_post(users["alice"].id, uuid4())

    def test_like_invalidates_author_snapshot(self, feed, cache, users, make_post):
        post = make_post(users["alice"], "post")
        cache.set(users["carol"].id, users["alice"].id, "stale page")

        feed.like_post(users["bob"].id, post.id)

        assert cache.get(users["carol"].id, users["alice"].id) is None


class TestComments:
    def test_add_comment_returns_fresh_count(self, feed, users, make_post):
        post = make_post(users["alice"], "post")

        first = feed.add_comment(users["bob"].id, post.id, "  nice  ")
        second = feed.add_comment(users["alice"].id, post.id, "thanks")

        assert first.comment.content == "nice"
        assert first.comment.author.username == "bob"
        assert first.comment_count == 1
        assert second.comment_count == 2

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_comment(self, feed, users, make_post, text):
        post = make_post(users["alice"], "post")

        with pytest.raises(EmptyContent):
            feed.add_comment(users["bob"].id, post.id, text)

    def test_comment_on_missing_post(self, feed, users):
        with pytest.raises(NotFound):
            feed.add_comment(users["bob"].id, uuid4(), "hello")
