from fastapi import APIRouter
from jobtracker.api import auth, applications, notes, notifications, profile, stats, storage, functions

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(applications.router, prefix="/applications", tags=["applications"])
api_router.include_router(notes.router, tags=["notes"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(profile.router, prefix="/profile", tags=["profile"])
api_router.include_router(stats.router, prefix="/stats", tags=["stats"])
api_router.include_router(storage.router, prefix="/storage", tags=["storage"])
api_router.include_router(functions.router, prefix="/functions", tags=["functions"])
