from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    Boolean,
    ForeignKey,
    JSON,
    Table,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import expression
from postdesk.core.database import Base, utcnow

POST_STATUSES = ("draft", "published")


# Many-to-many association table for posts and categories
post_categories = Table(
    "post_categories",
    Base.metadata,
    Column(
        "post_id", Integer, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True
    ),
    Column(
        "category_id",
        Integer,
        ForeignKey("categories.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    slug = Column(String, unique=True, nullable=False, index=True)
    excerpt = Column(Text, nullable=True)
    featured_image = Column(String, nullable=True)
    tags = Column(JSON, default=list)

    # Lifecycle: defaults are enforced at write time so no row lacks them
    status = Column(
        String, nullable=False, default="draft", server_default="draft", index=True
    )
    deleted = Column(
        Boolean, nullable=False, default=False, server_default=expression.false(), index=True
    )
    deleted_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    author = relationship("User", back_populates="posts")
    categories = relationship(
        "Category", secondary=post_categories, back_populates="posts"
    )
