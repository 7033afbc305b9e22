from fastapi import APIRouter

from doorlist.api.v1.admin import router as admin_router
from doorlist.api.v1.checkin import router as checkin_router
from doorlist.api.v1.events import router as events_router
from doorlist.api.v1.guests import router as guests_router
from doorlist.api.v1.invitations import router as invitations_router

router = APIRouter()
router.include_router(events_router)
router.include_router(guests_router)
router.include_router(checkin_router)
router.include_router(invitations_router)
router.include_router(admin_router)
