"""
Job Application Tracker API - Main Application Entry Point

This module initializes the FastAPI application with:
- Database connection and schema initialization
- Background scheduler for note reminders
- CORS middleware for the browser client
- Prometheus metrics
- API router registration

Architecture:
    FastAPI App
    ├── Lifespan Management (startup/shutdown)
    ├── CORS Middleware
    ├── TrackerError handler ({"error": ...} bodies)
    └── API Router
        ├── /auth - OAuth sign-in and session
        ├── /applications - Application CRUD, CSV export, notes
        ├── /notifications - Notifications and live stream
        ├── /profile - Profile, avatar and resume
        ├── /storage - Signed-URL object reads
        ├── /stats - Dashboard statistics
        └── /functions - Job search and AI analysis proxies
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from jobtracker.config import get_settings
from jobtracker.database import init_db
from jobtracker.api import api_router
from jobtracker.exceptions import TrackerError, tracker_error_handler
from jobtracker.middleware import setup_metrics
from jobtracker.scheduler import start_scheduler, stop_scheduler

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle events.

    Startup:
        1. Initialize database tables
        2. Start the reminder scheduler

    Shutdown:
        1. Gracefully stop the scheduler
    """
    await init_db()
    start_scheduler()
    yield
    stop_scheduler()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Job Application Tracker API",
        description="Track job applications, notes, reminders and AI match analysis",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_metrics(app)
    app.add_exception_handler(TrackerError, tracker_error_handler)
    app.include_router(api_router)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


app = create_app()
