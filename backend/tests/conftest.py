"""
Pytest configuration and fixtures for PostDesk tests.
"""

import os

# Settings and the engine are built at import time
os.environ.setdefault("SECRET_KEY", "test_secret_key_for_testing_only")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("COOKIE_SECURE", "false")

import pytest
from datetime import timedelta
from typing import Generator
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from postdesk.core.database import Base, get_db, utcnow
from postdesk.core.config import settings
from postdesk.core.security import hash_password
from postdesk.models.user import User
from postdesk.models.category import Category
from postdesk.models.post import Post
from postdesk.core.auth import AUTH_COOKIE_NAME, create_session_token
from postdesk.services.rate_limiter import posts_rate_limiter


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"
TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=db_engine
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def test_app(db_session):
    """Create a FastAPI test app without lifespan events."""
    from fastapi import FastAPI
    from slowapi import _rate_limit_exceeded_handler
    from slowapi.errors import RateLimitExceeded
    from postdesk.api.endpoints import (
        auth,
        posts,
        categories,
        users,
        uploads,
        dashboard,
    )
    from postdesk.core.access import DashboardAccessMiddleware
    from postdesk.core.errors import register_exception_handlers
    from postdesk.core.headers import SecurityHeadersMiddleware

    # Create app without lifespan to avoid event loop issues
    test_app = FastAPI(title="PostDesk - Test", version="1.0.0")

    test_app.state.limiter = auth.limiter
    test_app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    register_exception_handlers(test_app)
    test_app.add_middleware(SecurityHeadersMiddleware)
    test_app.add_middleware(DashboardAccessMiddleware)

    # Include all routers
    test_app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    test_app.include_router(posts.router, prefix="/api/posts", tags=["posts"])
    test_app.include_router(
        categories.router, prefix="/api/categories", tags=["categories"]
    )
    test_app.include_router(users.router, prefix="/api", tags=["users"])
    test_app.include_router(uploads.router, prefix="/api", tags=["uploads"])
    test_app.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])

    # Stand-in pages behind the dashboard gate
    @test_app.get("/dashboard/{page:path}")
    def dashboard_page(page: str):
        return {"page": page}

    # Add health endpoint for testing
    @test_app.get("/health")
    def health():
        return {"status": "ok"}

    # Override database dependency
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    test_app.dependency_overrides[get_db] = override_get_db

    return test_app


@pytest.fixture(scope="function")
def client(test_app) -> TestClient:
    """Create a test client without entering context manager."""
    return TestClient(test_app, raise_server_exceptions=False)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Rate limiter state is process-wide; start every test with a clean slate."""
    from postdesk.api.endpoints import auth

    auth.limiter.reset()
    posts_rate_limiter.reset()
    yield
    auth.limiter.reset()
    posts_rate_limiter.reset()


@pytest.fixture
def upload_root(tmp_path, monkeypatch):
    """Point uploads at a temporary directory."""
    monkeypatch.setattr(settings, "UPLOAD_ROOT", str(tmp_path))
    return tmp_path


def make_user(db_session, email: str, role: str, name: str = None) -> User:
    user = User(
        name=name or role.capitalize(),
        email=email,
        password_hash=hash_password(TEST_PASSWORD),
        role=role,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture(scope="function")
def test_user(db_session) -> User:
    """Create an admin user."""
    return make_user(db_session, "admin@postdesk.io", "admin", name="Ada Admin")


@pytest.fixture(scope="function")
def editor_user(db_session) -> User:
    return make_user(db_session, "editor@postdesk.io", "editor", name="Eddie Editor")


@pytest.fixture(scope="function")
def author_user(db_session) -> User:
    return make_user(db_session, "author@postdesk.io", "author", name="Alex Author")


def login(client: TestClient, user: User) -> TestClient:
    """Attach a session cookie for ``user`` to the client."""
    client.cookies.set(AUTH_COOKIE_NAME, create_session_token(user))
    return client


@pytest.fixture(scope="function")
def authenticated_client(client, test_user) -> TestClient:
    """Create a test client logged in as the admin user."""
    return login(client, test_user)


@pytest.fixture(scope="function")
def test_category(db_session) -> Category:
    """Create a test category."""
    category = Category(
        name="Technology",
        slug="technology",
        description="Tech news and updates",
    )
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


def make_post(
    db_session,
    author: User,
    title: str,
    status: str = "draft",
    deleted: bool = False,
    content: str = None,
    categories=None,
    age: timedelta = timedelta(0),
    **fields,
) -> Post:
    post = Post(
        author_id=author.id,
        title=title,
        content=content or f"Content for {title}",
        slug=fields.pop("slug", None) or title.lower().replace(" ", "-"),
        status=status,
        deleted=deleted,
        categories=categories or [],
        created_at=utcnow() - age,
        **fields,
    )
    db_session.add(post)
    db_session.commit()
    db_session.refresh(post)
    return post


@pytest.fixture(scope="function")
def multiple_posts(db_session, test_user, test_category) -> list:
    """Five live drafts, three published posts and two trashed posts, newest first."""
    posts = []
    for i in range(10):
        if i < 3:
            status, deleted = "published", False
        elif i < 8:
            status, deleted = "draft", False
        else:
            status, deleted = "draft", True
        posts.append(
            make_post(
                db_session,
                test_user,
                f"Test Post {i + 1}",
                status=status,
                deleted=deleted,
                categories=[test_category] if status == "published" else [],
                age=timedelta(hours=i),
            )
        )
    return posts
