"""
Zip Path - Security Middleware

Rate limiting, security headers.
"""

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from typing import Callable

from ..config import settings


# ============================================
# RATE LIMITER
# ============================================

limiter = Limiter(key_func=get_remote_address)


def game_rate_limit() -> str:
    return f"{settings.RATE_LIMIT_GAME}/minute"


def scores_rate_limit() -> str:
    return f"{settings.RATE_LIMIT_SCORES}/minute"


# ============================================
# SECURITY HEADERS MIDDLEWARE
# ============================================

async def add_security_headers(request: Request, call_next: Callable):
    """Добавляет security headers ко всем ответам."""
    response = await call_next(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

    if settings.is_production:
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["Content-Security-Policy"] = "default-src 'self'"

    return response


__all__ = [
    "limiter",
    "game_rate_limit",
    "scores_rate_limit",
    "add_security_headers",
]
