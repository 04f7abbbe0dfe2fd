"""
API Routes - Combines all route modules into single router.

Handlers are plain ``def``: pymongo blocks, so FastAPI runs them in its threadpool.
"""

from fastapi import APIRouter

from projectify.api.routes.auth_routes import router as auth_router
from projectify.api.routes.project_routes import router as project_router
from projectify.api.routes.application_routes import router as application_router
from projectify.api.routes.analytics_routes import router as analytics_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(project_router)
api_router.include_router(application_router)
api_router.include_router(analytics_router)
