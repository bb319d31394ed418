from fastapi import APIRouter

from app.api import classes, settings

api_router = APIRouter()

api_router.include_router(classes.router, prefix="/classes", tags=["classes"])
api_router.include_router(settings.router, prefix="/settings", tags=["settings"])
