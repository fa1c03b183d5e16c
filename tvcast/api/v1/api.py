# tvcast/api/v1/api.py
from fastapi import APIRouter

from tvcast.api.routes import (
    media,
    schedule,
    viewers,
    viewer_notifications,
)

api_router = APIRouter()

api_router.include_router(
    media.router,
    prefix="/channels",
    tags=["media"],
)
api_router.include_router(
    schedule.router,
    prefix="/channels",
    tags=["schedule"],
)
api_router.include_router(
    viewers.router,
    prefix="/channels",
    tags=["viewers"],
)
api_router.include_router(
    viewer_notifications.router,
    prefix="/channels",
    tags=["viewer_notifications"],
)
