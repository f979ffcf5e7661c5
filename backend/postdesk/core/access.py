"""Role-based access gate for dashboard pages."""

import logging
from typing import Optional
from urllib.parse import urlencode
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse
from postdesk.core.auth import AUTH_COOKIE_NAME, read_session
from postdesk.core.logging_config import log_security_event, get_client_ip

DASHBOARD_PREFIX = "/dashboard"
LOGIN_PATH = "/login"

AUTHOR_ALLOWED_PREFIXES = ("/dashboard/posts", "/dashboard/profile")
EDITOR_DENIED_PREFIXES = ("/dashboard/users", "/dashboard/settings")


def is_dashboard_path(path: str) -> bool:
    return path.startswith(DASHBOARD_PREFIX)


def session_token(request: Request) -> Optional[str]:
    """Session cookie, else a Bearer token, matching get_current_user."""
    token = request.cookies.get(AUTH_COOKIE_NAME)
    if token:
        return token
    scheme, _, credentials = request.headers.get("authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def dashboard_redirect(path: str, role: Optional[str]) -> Optional[str]:
    """
    Decide where a dashboard request must be sent instead.

    Returns the redirect target, or None when the request may proceed.
    A missing role means the caller has no valid session.
    """
    if not is_dashboard_path(path):
        return None

    if role is None:
        return f"{LOGIN_PATH}?{urlencode({'callbackUrl': path})}"

    if role == "author":
        if path != DASHBOARD_PREFIX and not path.startswith(AUTHOR_ALLOWED_PREFIXES):
            return "/dashboard/posts"
    elif role == "editor":
        if path.startswith(EDITOR_DENIED_PREFIXES):
            return DASHBOARD_PREFIX

    return None


class DashboardAccessMiddleware(BaseHTTPMiddleware):
    """Redirect dashboard requests the caller's role may not see."""

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if not is_dashboard_path(path):
            return await call_next(request)

        session = read_session(session_token(request))
        role = session.get("role") if session else None

        target = dashboard_redirect(path, role)
        if target is None:
            return await call_next(request)

        if role is not None:
            log_security_event(
                event_type="authz.dashboard.redirect",
                message=f"Role '{role}' redirected away from {path}",
                level=logging.WARNING,
                user_id=session.get("sub"),
                ip_address=get_client_ip(request),
                request_method=request.method,
                request_path=path,
                event_category="authorization",
                redirect_to=target,
            )
        return RedirectResponse(url=target, status_code=307)
