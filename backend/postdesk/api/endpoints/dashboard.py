from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging
from postdesk.core.database import get_db
from postdesk.core.auth import get_current_user
from postdesk.models.category import Category
from postdesk.models.post import Post
from postdesk.models.user import User
from postdesk.schemas.post import DashboardSummary
from postdesk.services.post_query import newest_first, with_references

router = APIRouter()
logger = logging.getLogger(__name__)

RECENT_POSTS = 5


@router.get("", response_model=DashboardSummary)
def get_dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Content counts and the most recent live posts."""
    live = db.query(Post).filter(Post.deleted == False)

    stats = {
        "total_posts": live.count(),
        "published_posts": live.filter(Post.status == "published").count(),
        "draft_posts": live.filter(Post.status == "draft").count(),
        "trashed_posts": db.query(Post).filter(Post.deleted == True).count(),
        "categories": db.query(Category).count(),
        "users": db.query(User).count(),
    }
    recent = newest_first(with_references(live)).limit(RECENT_POSTS).all()

    return {"stats": stats, "recent_posts": recent}
