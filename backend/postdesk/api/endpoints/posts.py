from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session
from typing import List, Optional
import logging
from postdesk.core.database import get_db
from postdesk.core.auth import get_current_user
from postdesk.core.logging_config import log_security_event, get_client_ip
from postdesk.models.user import User
from postdesk.schemas.post import (
    Post as PostSchema,
    PostCreate,
    PostUpdate,
    PostPage,
    Message,
)
from postdesk.services import post_lifecycle
from postdesk.services.post_query import build_post_query, fetch_post_page
from postdesk.services.rate_limiter import enforce_posts_rate_limit

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get(
    "", response_model=PostPage, dependencies=[Depends(enforce_posts_rate_limit)]
)
def list_posts(
    response: Response,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    deleted: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List posts for the dashboard, newest first.

    Trashed posts are only listed with ``deleted=true``. ``search`` matches
    title or content case-insensitively; ``limit`` is capped at 50.
    """
    post_query = build_post_query(
        page=page, limit=limit, status=status, search=search, deleted=deleted
    )
    result = fetch_post_page(db, post_query)

    response.headers["Cache-Control"] = "private, max-age=10"
    return {
        "posts": result.posts,
        "page": result.page,
        "limit": result.limit,
        "total": result.total,
        "total_pages": result.total_pages,
    }


@router.post(
    "",
    response_model=PostSchema,
    status_code=201,
    dependencies=[Depends(enforce_posts_rate_limit)],
)
def create_post(
    post: PostCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Create a post authored by the current user."""
    return post_lifecycle.create_post(db, current_user, post)


@router.get("/public", response_model=List[PostSchema])
def list_public_posts(
    limit: int = Query(10, ge=1, le=post_lifecycle.PUBLIC_LIST_MAX),
    category: Optional[str] = Query(None, max_length=200),
    db: Session = Depends(get_db),
):
    """Latest published posts for visitors, optionally within one category."""
    return post_lifecycle.list_published_posts(db, limit=limit, category_slug=category)


@router.get("/public/{slug}", response_model=PostSchema)
def get_public_post(slug: str, db: Session = Depends(get_db)):
    """Published post by slug; no authentication required."""
    return post_lifecycle.get_published_post(db, slug)


@router.get("/{post_id}", response_model=PostSchema)
def get_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return post_lifecycle.get_post(db, post_id)


@router.put("/{post_id}", response_model=PostSchema)
def update_post(
    post_id: int,
    post_update: PostUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return post_lifecycle.update_post(db, post_id, post_update)


@router.delete("/{post_id}", response_model=Message)
def delete_post(
    post_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Permanently delete a post.

    Allowed whether or not the post is in the trash; there is no way back.
    """
    post_lifecycle.purge_post(db, post_id)

    log_security_event(
        event_type="content.post.purged",
        message=f"Post {post_id} permanently deleted",
        user_id=str(current_user.id),
        username=current_user.email,
        ip_address=get_client_ip(request),
        request_method="DELETE",
        request_path=request.url.path,
        event_category="content",
    )
    return {"message": "Post deleted successfully"}


@router.put("/{post_id}/trash", response_model=Message)
def trash_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    post_lifecycle.trash_post(db, post_id)
    return {"message": "Post moved to trash successfully"}


@router.put("/{post_id}/recover", response_model=Message)
def recover_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    post_lifecycle.recover_post(db, post_id)
    return {"message": "Post recovered successfully"}
