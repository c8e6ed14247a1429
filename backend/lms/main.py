from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from fastapi import FastAPI, APIRouter, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lms.config import settings
from lms.core.log_config import configure_logging
from lms.core.plugin.manager import plugin_manager
from lms.utils.exceptions import AppError
from lms.api.v1.endpoints import (
    activities,
    auth,
    blocks,
    courses,
    dashboard,
    enrollments,
    i18n,
    plugins,
    profile,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    loaded = plugin_manager.load_plugins()
    logger.info(f"{settings.APP_NAME} started with {len(loaded)} plugins: {', '.join(loaded)}")
    yield


def get_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    # Register health endpoint
    @app.get("/health", tags=["health"])
    def health_check() -> dict:
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": settings.ENVIRONMENT,
        }

    # API v1 routers
    api_router = APIRouter(prefix=settings.API_V1_PREFIX)

    api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
    api_router.include_router(courses.router, prefix="/courses", tags=["courses"])
    api_router.include_router(activities.router, prefix="/courses", tags=["activities"])
    api_router.include_router(enrollments.router, tags=["enrollments"])
    api_router.include_router(profile.router, prefix="/profile", tags=["profile"])
    api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
    api_router.include_router(i18n.router, prefix="/i18n", tags=["i18n"])
    api_router.include_router(plugins.router, prefix="/plugins", tags=["plugins"])
    api_router.include_router(blocks.router, prefix="/blocks", tags=["blocks"])

    app.include_router(api_router)

    return app


app = get_application()
