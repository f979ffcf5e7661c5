from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from postdesk.core.database import get_db
from postdesk.core.config import settings
from postdesk.core.auth import (
    AUTH_COOKIE_NAME,
    create_session_token,
    get_current_user,
    read_session,
)
from postdesk.core.errors import Unauthorized
from postdesk.core.security import verify_password
from postdesk.models.user import User
from postdesk.schemas.user import LoginRequest, User as UserSchema
import logging
from slowapi import Limiter
from slowapi.util import get_remote_address
from postdesk.core.logging_config import log_security_event, get_client_ip

logger = logging.getLogger(__name__)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)


def _cookie_kwargs() -> dict:
    # Environment-aware cookie security settings
    cookie_kwargs = {
        "httponly": True,  # XSS protection
        "secure": settings.COOKIE_SECURE,  # HTTPS only in production
        "samesite": settings.COOKIE_SAMESITE,  # CSRF protection
        "max_age": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    }
    if settings.COOKIE_DOMAIN:
        cookie_kwargs["domain"] = settings.COOKIE_DOMAIN
    return cookie_kwargs


@router.post("/login")
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request, credentials: LoginRequest, db: Session = Depends(get_db)
):
    """Verify email and password, then start a cookie session."""
    client_ip = get_client_ip(request)
    user = db.query(User).filter(User.email == credentials.email).first()

    if not user or not verify_password(credentials.password, user.password_hash):
        log_security_event(
            event_type="auth.login.failure",
            message="Invalid email or password",
            level=logging.WARNING,
            username=credentials.email,
            ip_address=client_ip,
            user_agent=request.headers.get("user-agent"),
            request_method="POST",
            request_path="/api/auth/login",
            event_category="authentication",
        )
        raise Unauthorized("Invalid email or password")

    token = create_session_token(user)

    log_security_event(
        event_type="auth.login.success",
        message="User logged in successfully",
        user_id=str(user.id),
        username=user.email,
        ip_address=client_ip,
        user_agent=request.headers.get("user-agent"),
        request_method="POST",
        request_path="/api/auth/login",
        event_category="authentication",
        role=user.role,
    )

    response = JSONResponse(
        content=UserSchema.model_validate(user).model_dump(mode="json")
    )
    response.set_cookie(key=AUTH_COOKIE_NAME, value=token, **_cookie_kwargs())
    return response


@router.post("/logout")
async def logout(request: Request):
    """Clear the session cookie."""
    session = read_session(request.cookies.get(AUTH_COOKIE_NAME))
    if session:
        log_security_event(
            event_type="auth.logout.success",
            message="User logged out successfully",
            user_id=session.get("sub"),
            ip_address=get_client_ip(request),
            user_agent=request.headers.get("user-agent"),
            request_method="POST",
            request_path="/api/auth/logout",
            event_category="authentication",
        )

    response = JSONResponse(content={"message": "Logged out successfully"})
    response.delete_cookie(
        key=AUTH_COOKIE_NAME,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE,
    )
    return response


@router.get("/me", response_model=UserSchema)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current user information."""
    logger.debug(
        f"Get user info for user ID: {current_user.id}, email: {current_user.email}"
    )
    return current_user
