"""Magic-link API router configuration."""

from fastapi import APIRouter

from api.v1.routes.admin_invites import router as admin_invites_router
from api.v1.routes.admin_waitlist import router as admin_waitlist_router
from api.v1.routes.auth import router as auth_router
from api.v1.routes.waitlist import router as waitlist_router

router = APIRouter()
router.include_router(auth_router)
router.include_router(waitlist_router)
router.include_router(admin_invites_router)
router.include_router(admin_waitlist_router)
