"""
Main FastAPI application entry point.
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from carhub.config import get_settings
from carhub.database import SessionLocal, init_db
from carhub.logging_config import configure_logging, logger
from carhub.routers import (
    auth, customers, dashboard, notifications, payments, photos, service_types, services, users, vehicles,
)
from carhub.services.catalog import seed_admin, seed_service_types
from carhub.services.notifications import build_notification_service
from carhub.services.scheduler import ReminderScheduler

settings = get_settings()
configure_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan events for the application.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info("Starting {} v{}", settings.app_name, settings.app_version)
    await init_db()
    async with SessionLocal() as db:
        await seed_service_types(db)
        await seed_admin(db, settings.admin_username, settings.admin_password)
    logger.info("Database initialized")

    scheduler = None
    if settings.reminders_enabled:
        scheduler = ReminderScheduler(app.state.notifications, settings.reminder_poll_seconds)
        scheduler.start()
    app.state.scheduler = scheduler
    logger.info("API available at {}", settings.api_prefix)

    yield

    # Shutdown
    if scheduler is not None:
        await scheduler.stop()
    logger.info("Shutting down {}", settings.app_name)


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    ## CarHub Workshop Manager API

    Customers, vehicles, services, payments and photos for an auto workshop,
    plus dashboard reports and Web Push service reminders.
    """,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)
app.state.notifications = build_notification_service(settings, SessionLocal)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("Invalid data for {} {}: {}", request.method, request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Invalid data", "errors": jsonable_encoder(exc.errors())},
    )


# Include routers
for module in (auth, customers, vehicles, services, service_types, payments, photos, dashboard, users, notifications):
    app.include_router(module.router, prefix=settings.api_prefix)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": f"Welcome to {settings.app_name} API",
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": settings.app_version,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "carhub.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
