from .user import User
from .category import Category
from .post import Post, post_categories

__all__ = [
    "User",
    "Category",
    "Post",
    "post_categories",
]
