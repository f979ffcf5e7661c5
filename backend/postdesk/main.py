from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from postdesk.core.config import settings
from postdesk.core.access import DashboardAccessMiddleware
from postdesk.core.errors import register_exception_handlers
from postdesk.core.headers import SecurityHeadersMiddleware
from postdesk.core.logging_config import (
    setup_security_logging,
    CorrelationIdMiddleware,
    log_security_event,
)
from postdesk.api.endpoints import (
    auth,
    posts,
    categories,
    users,
    uploads,
    dashboard,
)
from postdesk.services.uploads import upload_dir
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import logging

# Configure structured JSON logging
security_logger = setup_security_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Starting PostDesk application...")
    # Schema is owned by Alembic; run `alembic upgrade head` before starting
    yield
    logger.info("Shutting down PostDesk application...")


app = FastAPI(
    title="PostDesk",
    description="Content management backend for posts, categories and users",
    version="1.0.0",
    lifespan=lifespan,
)

# Add correlation ID middleware (first, so all logs have correlation IDs)
app.add_middleware(CorrelationIdMiddleware)

# Login rate limiting (decorator based, see api/endpoints/auth.py)
app.state.limiter = auth.limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

register_exception_handlers(app)

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(DashboardAccessMiddleware)

log_security_event(
    event_type="app.startup",
    message=f"PostDesk application starting (production={settings.is_production})",
    event_category="system",
    production=settings.is_production,
    debug=settings.DEBUG,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(posts.router, prefix="/api/posts", tags=["posts"])
app.include_router(categories.router, prefix="/api/categories", tags=["categories"])
app.include_router(users.router, prefix="/api", tags=["users"])
app.include_router(uploads.router, prefix="/api", tags=["uploads"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])

# Serve uploaded featured images
app.mount(
    settings.UPLOAD_URL_PREFIX,
    StaticFiles(directory=str(upload_dir())),
    name="uploads",
)


@app.get("/")
def root():
    return {
        "name": "PostDesk",
        "version": "1.0.0",
        "description": "Content management backend",
    }


@app.get("/health")
def health_check():
    return {"status": "healthy"}
