# This file makes the 'routes' directory a Python package.

from fastapi import APIRouter

from learnhub.core.config import settings

from .auth_routes import router as auth_router
from .learning_routes import router as learning_router
from .quiz_routes import router as quiz_router
from .admin_routes import router as admin_router

api_router_v1 = APIRouter(prefix=settings.API_V1_STR)

# Learner-facing routes
api_router_v1.include_router(auth_router)
api_router_v1.include_router(learning_router)
api_router_v1.include_router(quiz_router)

# Admin routes are prefixed with /admin in admin_routes.py, i.e. /api/v1/admin/...
api_router_v1.include_router(admin_router)

__all__ = [
    "api_router_v1"
]
