import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, HTTPException

from ..core.config import settings
from .middleware import LoggingMiddleware, http_exception_handler
from .routers import auth_router, inventory_router, notifications_router, requests_router
from .state import BackendState

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def create_app(state: Optional[BackendState] = None) -> FastAPI:
    app = FastAPI(title=f"{settings.APP_NAME} stub backend", version=settings.APP_VERSION, debug=settings.DEBUG)
    app.state.backend = state or BackendState()

    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_middleware(LoggingMiddleware)

    app.include_router(auth_router.router, prefix=API_PREFIX)
    app.include_router(auth_router.users_router, prefix=API_PREFIX)
    app.include_router(inventory_router.router, prefix=API_PREFIX)
    app.include_router(requests_router.router, prefix=API_PREFIX)
    app.include_router(notifications_router.router, prefix=API_PREFIX)

    @app.get("/health")
    def health_check():
        return {
            "status": "healthy",
            "service": app.title,
            "version": settings.APP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app
