"""
Post lifecycle: creation, edits and the trash / recover / purge transitions.

A post is either active (``deleted=False``) or trashed (``deleted=True`` with
``deleted_at`` stamped). Purging removes the row whatever its state.
"""

import logging
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from postdesk.core.database import utcnow
from postdesk.core.errors import ConflictError, NotFound, ValidationError
from postdesk.models.category import Category
from postdesk.models.post import Post
from postdesk.models.user import User
from postdesk.schemas.post import PostCreate, PostUpdate
from postdesk.services.post_query import newest_first, with_references
from postdesk.services.slugs import generate_slug, with_timestamp_suffix
from postdesk.services.uploads import delete_upload

logger = logging.getLogger(__name__)

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 200
PUBLIC_LIST_MAX = 50

SLUG_CONFLICT_MESSAGE = "A post with this slug already exists. Please use a different slug."


def validate_title(title: Optional[str]) -> str:
    if not title:
        raise ValidationError(
            "Missing required fields", details="Title and content are required"
        )
    if len(title) < TITLE_MIN_LENGTH or len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(
            "Invalid title length",
            details=f"Title must be between {TITLE_MIN_LENGTH} and {TITLE_MAX_LENGTH} characters",
        )
    return title


def resolve_categories(db: Session, category_ids: List[int]) -> List[Category]:
    """Load categories by id, rejecting ids that do not exist."""
    if not category_ids:
        return []
    wanted = set(category_ids)
    categories = db.query(Category).filter(Category.id.in_(wanted)).all()
    if len(categories) != len(wanted):
        missing = sorted(wanted - {c.id for c in categories})
        raise ValidationError("Unknown categories", details=missing)
    return categories


def get_post(db: Session, post_id: int) -> Post:
    post = with_references(db.query(Post)).filter(Post.id == post_id).first()
    if not post:
        raise NotFound("Post not found")
    return post


def _commit_post(db: Session, post: Post) -> Post:
    """Commit, translating a unique-index violation into a slug conflict."""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Post write rejected by unique index: {e.orig}")
        raise ConflictError(SLUG_CONFLICT_MESSAGE)
    db.refresh(post)
    return post


def create_post(db: Session, author: User, data: PostCreate) -> Post:
    """
    Create a post owned by ``author``.

    Raises:
        ValidationError: Missing content, bad title length or unknown categories
        ConflictError: Slug already taken
    """
    if not data.title or not data.content:
        raise ValidationError(
            "Missing required fields", details="Title and content are required"
        )
    title = validate_title(data.title)

    base_slug = generate_slug(data.slug.strip()) if data.slug else generate_slug(title)
    slug = with_timestamp_suffix(base_slug or "post")

    post = Post(
        title=title.strip(),
        content=data.content,
        slug=slug,
        excerpt=data.excerpt,
        featured_image=data.featured_image,
        tags=[tag.strip() for tag in data.tags if tag.strip()],
        status=data.status,
        deleted=False,
        author_id=author.id,
        categories=resolve_categories(db, data.categories),
    )
    db.add(post)
    post = _commit_post(db, post)
    logger.info(f"Post {post.id} created by user {author.id} with slug {post.slug}")
    return post


def _release_image(db: Session, image_url: Optional[str], post_id: int) -> None:
    """Delete an uploaded image once no other post points at it."""
    if not image_url:
        return
    still_used = (
        db.query(Post.id)
        .filter(Post.featured_image == image_url, Post.id != post_id)
        .first()
    )
    if still_used is None:
        delete_upload(image_url)


def update_post(db: Session, post_id: int, data: PostUpdate) -> Post:
    post = get_post(db, post_id)
    changes = data.model_dump(exclude_unset=True)

    if "title" in changes:
        changes["title"] = validate_title(changes["title"]).strip()
    if "content" in changes and not changes["content"]:
        raise ValidationError("Content is required")
    if "slug" in changes:
        changes["slug"] = generate_slug(changes["slug"] or "")
        if not changes["slug"]:
            raise ValidationError("Slug is required")
    if "tags" in changes:
        changes["tags"] = [tag.strip() for tag in changes["tags"] or [] if tag.strip()]
    if "status" in changes and changes["status"] is None:
        del changes["status"]
    if "categories" in changes:
        post.categories = resolve_categories(db, changes.pop("categories") or [])

    old_image = post.featured_image
    for key, value in changes.items():
        setattr(post, key, value)
    post.updated_at = utcnow()

    post = _commit_post(db, post)

    if old_image and old_image != post.featured_image:
        _release_image(db, old_image, post.id)

    return post


def trash_post(db: Session, post_id: int) -> Post:
    """Move a post to the trash."""
    post = get_post(db, post_id)
    post.deleted = True
    post.deleted_at = utcnow()
    db.commit()
    db.refresh(post)
    logger.info(f"Post {post_id} moved to trash")
    return post


def recover_post(db: Session, post_id: int) -> Post:
    """Restore a trashed post."""
    post = get_post(db, post_id)
    post.deleted = False
    post.deleted_at = None
    db.commit()
    db.refresh(post)
    logger.info(f"Post {post_id} recovered from trash")
    return post


def purge_post(db: Session, post_id: int) -> None:
    """Permanently delete a post, trashed or not. Irreversible."""
    post = get_post(db, post_id)
    image_url = post.featured_image
    db.delete(post)
    db.commit()
    logger.info(f"Post {post_id} permanently deleted")
    _release_image(db, image_url, post_id)


def get_published_post(db: Session, slug: str) -> Post:
    post = (
        with_references(db.query(Post))
        .filter(Post.slug == slug, Post.status == "published", Post.deleted == False)
        .first()
    )
    if not post:
        raise NotFound("Post not found")
    return post


def list_published_posts(
    db: Session, limit: int = 10, category_slug: Optional[str] = None
) -> List[Post]:
    """Latest published, non-trashed posts, optionally within one category."""
    query = db.query(Post).filter(Post.status == "published", Post.deleted == False)
    if category_slug:
        query = query.filter(Post.categories.any(Category.slug == category_slug))
    return (
        newest_first(with_references(query))
        .limit(max(1, min(limit, PUBLIC_LIST_MAX)))
        .all()
    )
