"""
Listing queries for posts: parameter validation, filter predicates and
offset pagination.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import List, Optional
from sqlalchemy import desc, or_
from sqlalchemy.orm import Query, Session, joinedload, selectinload
from postdesk.core.config import settings
from postdesk.core.errors import InvalidParameter
from postdesk.models.post import Post, POST_STATUSES

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"^\d+$")
LIKE_ESCAPE = "\\"

DEFAULT_PAGE = "1"
DEFAULT_LIMIT = "10"


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term only matches literally."""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


@dataclass(frozen=True)
class PostQuery:
    """A validated listing request."""

    page: int
    limit: int
    deleted: bool
    status: Optional[str] = None
    search: Optional[str] = None

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    def apply(self, query: Query) -> Query:
        """Add this request's filters to a Post query."""
        query = query.filter(Post.deleted == self.deleted)

        if self.status:
            query = query.filter(Post.status == self.status)

        if self.search:
            pattern = f"%{escape_like(self.search)}%"
            query = query.filter(
                or_(
                    Post.title.ilike(pattern, escape=LIKE_ESCAPE),
                    Post.content.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )

        return query


@dataclass
class PostPage:
    posts: List[Post]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)


def build_post_query(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    deleted: Optional[str] = None,
) -> PostQuery:
    """
    Validate raw listing parameters.

    ``page`` and ``limit`` must be all digits and at least 1; ``limit`` is
    capped at MAX_PAGE_SIZE. ``status`` must be draft or published when given.
    Only ``deleted="true"`` lists the trash; anything else lists live posts.

    Raises:
        InvalidParameter: On malformed pagination or status values
    """
    page_param = page or DEFAULT_PAGE
    limit_param = limit or DEFAULT_LIMIT

    if not _DIGITS.match(page_param) or not _DIGITS.match(limit_param):
        raise InvalidParameter("Invalid pagination parameters")

    page_number = int(page_param)
    page_size = min(int(limit_param), settings.MAX_PAGE_SIZE)
    if page_number < 1 or page_size < 1:
        raise InvalidParameter("Invalid pagination parameters")

    if status and status not in POST_STATUSES:
        raise InvalidParameter("Invalid status parameter")

    return PostQuery(
        page=page_number,
        limit=page_size,
        deleted=deleted == "true",
        status=status or None,
        search=search or None,
    )


def with_references(query: Query) -> Query:
    """Populate author and categories alongside each post."""
    return query.options(joinedload(Post.author), selectinload(Post.categories))


def newest_first(query: Query) -> Query:
    return query.order_by(desc(Post.created_at), desc(Post.id))


def fetch_post_page(db: Session, post_query: PostQuery) -> PostPage:
    """Run a listing request: total count plus the requested slice."""
    filtered = post_query.apply(db.query(Post))
    total = filtered.count()

    posts = (
        newest_first(with_references(filtered))
        .offset(post_query.skip)
        .limit(post_query.limit)
        .all()
    )
    logger.debug(
        f"Post listing page={post_query.page} limit={post_query.limit} "
        f"deleted={post_query.deleted} status={post_query.status} -> {len(posts)}/{total}"
    )

    return PostPage(
        posts=posts, page=post_query.page, limit=post_query.limit, total=total
    )
