from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlalchemy.orm import Session
from postdesk.core.database import get_db
from postdesk.core.config import settings
from postdesk.core.errors import Forbidden, Unauthorized
from postdesk.core.logging_config import log_security_event, get_client_ip
from postdesk.models.user import User
from typing import Optional
from datetime import datetime, timedelta, timezone
import logging
import uuid

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

# JWT settings
ALGORITHM = "HS256"
AUTH_COOKIE_NAME = "auth_token"


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Token payload data (``sub`` is the user id, ``role`` the user's role)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token
    """
    to_encode = data.copy()
    # JWT subjects must be strings
    if "sub" in to_encode:
        to_encode["sub"] = str(to_encode["sub"])

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode.update(
        {
            "exp": expire,
            "iat": datetime.now(timezone.utc),
            "jti": str(uuid.uuid4()),  # JWT ID for tracking
            "type": "access",
        }
    )

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def create_session_token(user: User) -> str:
    """Access token carrying the user's id and role."""
    return create_access_token(data={"sub": user.id, "role": user.role})


def decode_token(token: str, token_type: str = "access") -> dict:
    """
    Decode and validate JWT token.

    Raises:
        Unauthorized: If token is invalid, expired or of the wrong type
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.warning("Token expired")
        raise Unauthorized("Token has expired")
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        raise Unauthorized("Could not validate credentials")

    if payload.get("type") != token_type:
        logger.warning(
            f"Token type mismatch: expected {token_type}, got {payload.get('type')}"
        )
        raise Unauthorized("Invalid token type")

    return payload


def read_session(token: Optional[str]) -> Optional[dict]:
    """Decode a session token without raising; None when absent or invalid."""
    if not token:
        return None
    try:
        return decode_token(token)
    except Unauthorized:
        return None


def _request_token(
    request: Request, credentials: Optional[HTTPAuthorizationCredentials]
) -> Optional[str]:
    # Cookie first, then Authorization header
    token = request.cookies.get(AUTH_COOKIE_NAME)
    if not token and credentials:
        token = credentials.credentials
    return token


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get the current authenticated user from JWT token (cookie or Authorization header)."""
    token = _request_token(request, credentials)
    if not token:
        raise Unauthorized()

    payload = decode_token(token)

    try:
        user_id = int(payload.get("sub"))
    except (ValueError, TypeError):
        raise Unauthorized("Invalid user ID in token")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise Unauthorized("User not found")

    return user


async def get_current_user_optional(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Get the current user if authenticated, otherwise return None."""
    if not _request_token(request, credentials):
        return None

    try:
        return await get_current_user(request, credentials, db)
    except Unauthorized:
        return None


def ensure_admin(user: User, request: Request) -> None:
    """Raise Forbidden unless the user is an admin."""
    if user.role != "admin":
        log_security_event(
            event_type="authz.denied",
            message="Admin privileges required",
            level=logging.WARNING,
            user_id=str(user.id),
            username=user.email,
            ip_address=get_client_ip(request),
            request_method=request.method,
            request_path=request.url.path,
            event_category="authorization",
            role=user.role,
        )
        raise Forbidden("Forbidden: Admin privileges required")


async def require_admin(
    request: Request, current_user: User = Depends(get_current_user)
) -> User:
    """Dependency for admin-only endpoints."""
    ensure_admin(current_user, request)
    return current_user
