from fastapi import APIRouter
from app.api.v1.endpoints import admin, airtime

router = APIRouter()

router.include_router(airtime.router, prefix="/airtime", tags=["airtime"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
