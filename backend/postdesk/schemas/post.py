from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Literal, Optional
from postdesk.schemas.category import CategorySummary
from postdesk.schemas.user import AuthorSummary

PostStatus = Literal["draft", "published"]


class PostCreate(BaseModel):
    # Title and content bounds are enforced by the lifecycle service
    title: Optional[str] = None
    content: Optional[str] = None
    slug: Optional[str] = None
    excerpt: Optional[str] = None
    featured_image: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    categories: List[int] = Field(default_factory=list)
    status: PostStatus = "draft"


class PostUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    slug: Optional[str] = None
    excerpt: Optional[str] = None
    featured_image: Optional[str] = None
    tags: Optional[List[str]] = None
    categories: Optional[List[int]] = None
    status: Optional[PostStatus] = None


class Post(BaseModel):
    id: int
    title: str
    content: str
    slug: str
    excerpt: Optional[str] = None
    featured_image: Optional[str] = None
    tags: List[str] = []
    status: PostStatus
    deleted: bool
    deleted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    # Populated references
    author: Optional[AuthorSummary] = None
    categories: List[CategorySummary] = []

    class Config:
        from_attributes = True


class PostPage(BaseModel):
    posts: List[Post]
    page: int
    limit: int
    total: int
    total_pages: int


class Message(BaseModel):
    message: str


class DashboardStats(BaseModel):
    total_posts: int
    published_posts: int
    draft_posts: int
    trashed_posts: int
    categories: int
    users: int


class DashboardSummary(BaseModel):
    stats: DashboardStats
    recent_posts: List[Post]
