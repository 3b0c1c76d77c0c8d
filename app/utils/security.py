"""
Admin session cookie and request rate limiting
"""

import hashlib
import hmac
import secrets
import time
from collections import defaultdict

from fastapi import Request, Response

from app.core.config import settings
from app.core.errors import AuthFailure

# Simple in-memory rate limiter
rate_limiter = defaultdict(list)

SESSION_LABEL = b"admin-session-v1"

def session_token() -> str:
    """Cookie value proving the holder knew the admin password"""
    return hmac.new(settings.ADMIN_PASSWORD.encode("utf-8"), SESSION_LABEL, hashlib.sha256).hexdigest()

def check_password(password: str) -> bool:
    if not settings.ADMIN_PASSWORD:
        return False
    return secrets.compare_digest(password.encode("utf-8"), settings.ADMIN_PASSWORD.encode("utf-8"))

def set_admin_cookie(response: Response) -> None:
    response.set_cookie(
        key=settings.ADMIN_COOKIE_NAME,
        value=session_token(),
        max_age=settings.ADMIN_SESSION_MAX_AGE,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
        path="/",
    )

def clear_admin_cookie(response: Response) -> None:
    response.delete_cookie(key=settings.ADMIN_COOKIE_NAME, path="/")

def is_admin(request: Request) -> bool:
    cookie = request.cookies.get(settings.ADMIN_COOKIE_NAME)
    if not cookie or not settings.ADMIN_PASSWORD:
        return False
    return hmac.compare_digest(cookie, session_token())

def require_admin(request: Request) -> None:
    """Dependency gating admin mutations"""
    if not is_admin(request):
        raise AuthFailure("Admin session required")

def rate_limit_check(client_ip: str, limit: int = None) -> bool:
    """Simple rate limiting by IP address"""
    if limit is None:
        limit = settings.RATE_LIMIT_PER_MINUTE

    current_time = time.time()
    minute_ago = current_time - 60

    # Clean old requests
    rate_limiter[client_ip] = [
        req_time for req_time in rate_limiter[client_ip]
        if req_time > minute_ago
    ]

    if len(rate_limiter[client_ip]) >= limit:
        return False

    rate_limiter[client_ip].append(current_time)
    return True

def get_client_ip(request) -> str:
    """Extract client IP from request"""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return request.client.host if request.client else "unknown"
