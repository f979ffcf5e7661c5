from postdesk.schemas.category import (
    Category,
    CategoryCreate,
    CategoryUpdate,
    CategorySummary,
)
from postdesk.schemas.post import (
    Post,
    PostCreate,
    PostUpdate,
    PostPage,
    Message,
    DashboardStats,
    DashboardSummary,
)
from postdesk.schemas.user import (
    User,
    UserList,
    UserRegister,
    ProfileUpdate,
    LoginRequest,
    AuthorSummary,
)

__all__ = [
    "Category",
    "CategoryCreate",
    "CategoryUpdate",
    "CategorySummary",
    "Post",
    "PostCreate",
    "PostUpdate",
    "PostPage",
    "Message",
    "DashboardStats",
    "DashboardSummary",
    "User",
    "UserList",
    "UserRegister",
    "ProfileUpdate",
    "LoginRequest",
    "AuthorSummary",
]
