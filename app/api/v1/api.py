from fastapi import APIRouter

from app.api.v1.endpoints.auth import router as auth_router
from app.api.v1.endpoints.surveys import router as surveys_router
from app.api.v1.endpoints.admin import router as admin_router
from app.api.v1.endpoints.health import router as health_router

api_router = APIRouter()

# Authentication module (simple-login, simple-register, /auth/me)
api_router.include_router(auth_router)

# Surveys module
api_router.include_router(surveys_router, tags=["surveys"])

# Admin module
api_router.include_router(admin_router, prefix="/admin", tags=["admin"])

# Health
api_router.include_router(health_router, tags=["health"])
