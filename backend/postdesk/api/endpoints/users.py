from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session
from typing import Optional
import logging
from postdesk.core.database import get_db
from postdesk.core.auth import (
    ensure_admin,
    get_current_user,
    get_current_user_optional,
    require_admin,
)
from postdesk.core.errors import ConflictError, Unauthorized, ValidationError
from postdesk.core.logging_config import log_security_event, get_client_ip
from postdesk.core.security import MIN_PASSWORD_LENGTH, hash_password, verify_password
from postdesk.models.user import User
from postdesk.schemas.user import (
    ProfileUpdate,
    User as UserSchema,
    UserList,
    UserRegister,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _email_in_use(db: Session, email: str) -> bool:
    return db.query(User.id).filter(User.email == email).first() is not None


@router.post("/register", response_model=UserSchema, status_code=201)
def register(
    payload: UserRegister,
    request: Request,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional),
):
    """
    Create a user account.

    While no users exist anyone may register and becomes admin. After that
    only an authenticated admin may create users.
    """
    user_count = db.query(User).count()

    if user_count > 0:
        if current_user is None:
            raise Unauthorized("Unauthorized: Authentication required")
        ensure_admin(current_user, request)

    if not payload.name or not payload.email or not payload.password:
        raise ValidationError("All fields are required")

    if len(payload.password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )

    if _email_in_use(db, payload.email):
        raise ConflictError("User with this email already exists")

    # The very first account bootstraps the system as admin
    role = "admin" if user_count == 0 else (payload.role or "author")

    user = User(
        name=payload.name.strip(),
        email=payload.email,
        password_hash=hash_password(payload.password),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    log_security_event(
        event_type="auth.user.created",
        message="User account registered",
        user_id=str(user.id),
        username=user.email,
        ip_address=get_client_ip(request),
        request_method="POST",
        request_path="/api/register",
        event_category="authentication",
        role=user.role,
        created_by=str(current_user.id) if current_user else None,
    )
    return user


@router.get("/user", response_model=UserSchema)
def get_user(response: Response, current_user: User = Depends(get_current_user)):
    """Current user's account."""
    response.headers["Cache-Control"] = "private, max-age=10"
    return current_user


@router.put("/user/profile", response_model=UserSchema)
def update_profile(
    payload: ProfileUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Update the caller's name, email or password.

    Changing the password requires the current password.
    """
    if payload.name:
        current_user.name = payload.name.strip()

    if payload.email and payload.email != current_user.email:
        if _email_in_use(db, payload.email):
            raise ConflictError("Email is already in use")
        current_user.email = payload.email

    if payload.current_password and payload.new_password:
        if not verify_password(payload.current_password, current_user.password_hash):
            log_security_event(
                event_type="auth.password.change_failed",
                message="Current password verification failed",
                level=logging.WARNING,
                user_id=str(current_user.id),
                ip_address=get_client_ip(request),
                request_method="PUT",
                request_path="/api/user/profile",
                event_category="authentication",
            )
            raise ValidationError("Current password is incorrect")
        if len(payload.new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )
        current_user.password_hash = hash_password(payload.new_password)
        log_security_event(
            event_type="auth.password.changed",
            message="Password changed",
            user_id=str(current_user.id),
            ip_address=get_client_ip(request),
            request_method="PUT",
            request_path="/api/user/profile",
            event_category="authentication",
        )

    db.commit()
    db.refresh(current_user)
    return current_user


@router.get("/users", response_model=UserList)
def list_users(
    response: Response,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """All users, newest first. Admin only."""
    users = db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()
    response.headers["Cache-Control"] = "private, max-age=10"
    return {"users": users}
