# routers/__init__.py

from fastapi import APIRouter

from .permissions import router as permissions_router
from .access import router as access_router
from .buildings import router as buildings_router
from .cois import router as cois_router
from .reports import router as reports_router
from .audit import router as audit_router
from .admin import router as admin_router
from .health import router as health_router


# Master router for embedding the API in another app
api_router = APIRouter()

api_router.include_router(permissions_router)
api_router.include_router(access_router)
api_router.include_router(buildings_router)
api_router.include_router(cois_router)
api_router.include_router(reports_router)
api_router.include_router(audit_router)
api_router.include_router(admin_router)
api_router.include_router(health_router)

__all__ = ["api_router"]
