"""
Zip Path - FastAPI Application

Главная точка входа backend.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import LockError
from slowapi.errors import RateLimitExceeded

from .config import settings
from .database import init_db, close_redis
from .logging_config import configure_logging
from .api import game, scores
from .middleware.security import limiter, add_security_headers


configure_logging()
logger = logging.getLogger(__name__)


# ============================================
# LIFESPAN
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle events."""
    logger.info("Starting %s (environment=%s, debug=%s)", settings.APP_NAME, settings.ENVIRONMENT, settings.DEBUG)

    await init_db()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down...")
    await close_redis()
    logger.info("Redis closed")


# ============================================
# APP
# ============================================

app = FastAPI(
    title=settings.APP_NAME,
    description="Zip Path API - path drawing puzzle",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

# Rate limiter state
app.state.limiter = limiter


# ============================================
# MIDDLEWARE
# ============================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.middleware("http")(add_security_headers)


# ============================================
# ERROR HANDLERS
# ============================================

@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Handler для rate limit ошибок."""
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many requests. Please try again later."}
    )


@app.exception_handler(LockError)
async def session_busy_handler(request: Request, exc: LockError):
    """Сессия занята другим запросом дольше SESSION_LOCK_WAIT_SECONDS."""
    logger.warning("Session lock timeout on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=409,
        content={"detail": "Session is busy. Please retry."}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Глобальный обработчик ошибок."""
    # В production не показываем детали ошибок
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    detail = str(exc) if settings.DEBUG else "Internal server error"

    return JSONResponse(
        status_code=500,
        content={"detail": detail}
    )


# ============================================
# ROUTES
# ============================================

api_prefix = settings.API_PREFIX

app.include_router(game.router, prefix=api_prefix)
app.include_router(scores.router, prefix=api_prefix)


# ============================================
# HEALTH CHECK
# ============================================

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
        "version": "1.0.0"
    }


@app.get(f"{api_prefix}/health")
async def api_health_check():
    """API health check."""
    return {
        "status": "ok",
        "version": "1.0.0",
        "debug": settings.DEBUG,
        "grid": f"{settings.GRID_ROWS}x{settings.GRID_COLS}",
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.APP_NAME,
        "version": "1.0.0",
        "docs": "/docs" if settings.DEBUG else None,
        "health": "/health",
    }


# ============================================
# RUN
# ============================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "zippath.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
