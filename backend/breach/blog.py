"""
BreachWatch - Blog Reader
Read access to published posts for the blog listing and post pages.
"""

from sqlalchemy.exc import SQLAlchemyError

from errors import NotFound, UpstreamError
from models import BlogPostDetail, BlogPostSummary
from store.breach_store import BreachStore

MAX_PAGE_SIZE = 100


class BlogReader:
    def __init__(self, store: BreachStore):
        self.store = store

    def list_posts(self, limit: int = 20, offset: int = 0) -> tuple[list[BlogPostSummary], int]:
        """Newest published posts first, plus the total number published."""
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        offset = max(0, offset)
        try:
            posts = self.store.list_published_posts(limit=limit, offset=offset)
            total = self.store.count_published_posts()
        except SQLAlchemyError as e:
            raise UpstreamError("Failed to fetch blog posts") from e
        return [BlogPostSummary.model_validate(p) for p in posts], total

    def get_post(self, slug: str) -> BlogPostDetail:
        try:
            post = self.store.get_published_post(slug)
            if post is None:
                raise NotFound("Blog post not found")
            # Validate while the session is open; the breach relationship is lazy
            return BlogPostDetail.model_validate(post)
        except SQLAlchemyError as e:
            raise UpstreamError("Failed to fetch blog post") from e
