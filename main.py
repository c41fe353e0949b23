import os
import sys
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Ensure local imports resolve
sys.path.append(os.path.dirname(__file__))

# Core
from core.config import settings
from core.config_validator import validate_config_on_startup
from core.errors import InvalidTransitionError, NotFoundError, PersistenceError
from core.logging_config import logger
from database import create_db_and_tables

# -------------------------------------------------
# Routers
# -------------------------------------------------
from routers.access import router as access_router
from routers.admin import router as admin_router
from routers.audit import router as audit_router
from routers.buildings import router as buildings_router
from routers.cois import router as cois_router
from routers.health import router as health_router
from routers.permissions import router as permissions_router
from routers.reports import router as reports_router


# -------------------------------------------------
# Create the Application
# -------------------------------------------------
def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="COI Access API: building permissions and certificate compliance",
    )

    # -------------------------------------------------
    # CORS
    # -------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------
    # Startup / shutdown
    # -------------------------------------------------
    @app.on_event("startup")
    async def on_startup():
        logger.info("🚀 Starting COI Access API")
        validate_config_on_startup()
        create_db_and_tables()

        if settings.ENABLE_SCHEDULER:
            from core.scheduler import start_scheduler
            app.state.scheduler = start_scheduler()

    @app.on_event("shutdown")
    async def on_shutdown():
        scheduler = getattr(app.state, "scheduler", None)
        if scheduler is not None:
            scheduler.shutdown(wait=False)

    # -------------------------------------------------
    # Error handling
    # -------------------------------------------------
    @app.exception_handler(StarletteHTTPException)
    async def handle_http(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (401, 403, 500):
            logger.warning(
                f"HTTP {exc.status_code} at {request.url}: {exc.detail}"
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(InvalidTransitionError)
    async def handle_invalid_transition(request: Request, exc: InvalidTransitionError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(PersistenceError)
    async def handle_persistence(request: Request, exc: PersistenceError):
        logger.error(f"Persistence failure at {request.url}: {exc}")
        return JSONResponse(status_code=500, content={"detail": "Database operation failed"})

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.error("Unhandled error at %s", request.url, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    # -------------------------------------------------
    # Register Routers
    # -------------------------------------------------
    app.include_router(permissions_router)
    app.include_router(access_router)
    app.include_router(buildings_router)
    app.include_router(cois_router)
    app.include_router(reports_router)
    app.include_router(audit_router)
    app.include_router(admin_router)
    app.include_router(health_router)

    return app


# Create the global FastAPI instance
app = create_app()
