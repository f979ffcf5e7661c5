from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from postdesk.core.database import Base, utcnow

ROLES = ("admin", "editor", "author")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default="author", server_default="author")

    # Metadata
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    posts = relationship("Post", back_populates="author")
