from fastapi import APIRouter

from app.api.v1.endpoints.auth.login import router as login_router
from app.api.v1.endpoints.auth.user_info import router as user_info_router

router = APIRouter()

# Token issuance lives at the API root (/simple-login, /simple-register),
# profile routes under /auth
router.include_router(login_router, tags=["authentication"])
router.include_router(user_info_router, prefix="/auth", tags=["profile"])
