"""API routers."""

from app.routers.applications import router as applications_router

__all__ = ["applications_router"]
