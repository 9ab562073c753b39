# main.py
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import asyncio
import logging
import sys
from duroos.config import settings
from duroos.deps import create_mongo_client, create_cache
from duroos.logging_config import setup_logging
from duroos.middleware.error_handler import ErrorHandlerMiddleware
from duroos.middleware.analytics import PageViewMiddleware
from duroos.repos import lectures, series, sheikhs, sections, schedules, page_views
from duroos.routers.health import router as health_router
from duroos.routers.public import router as public_router
from duroos.routers.homepage_route import homepage
from duroos.routers.content_route import lectures as lectures_route
from duroos.routers.content_route import series as series_route
from duroos.routers.content_route import sheikhs as sheikhs_route
from duroos.routers.analytics_route import analytics
from duroos.routers.admin_route import (
    lectures as admin_lectures,
    series as admin_series,
    sheikhs as admin_sheikhs,
    sections as admin_sections,
    schedule as admin_schedule,
    settings as admin_settings,
    analytics as admin_analytics,
    cache as admin_cache,
    dashboard as admin_dashboard,
)
from duroos.tasks.scheduler import create_scheduler, schedule_jobs, refresh_site_stats
from duroos.services.homepage_service import warm_homepage_cache

# Setup logging
log_level = "DEBUG" if settings.DEBUG else "INFO"
log_file = "logs/app.log" if settings.ENVIRONMENT == "production" else None
setup_logging(log_level=log_level, log_file=log_file)

logger = logging.getLogger(__name__)

INDEXED_REPOS = (lectures, series, sheikhs, sections, schedules, page_views)


app = FastAPI(
    title="Duroos API",
    description="Lecture archive: homepage aggregation, browsing, audio and analytics",
    version="1.0.0"
)


@app.on_event("startup")
async def startup():
    try:
        logger.info("Starting application...")

        # Database connection
        try:
            app.state.mongo_client = create_mongo_client(settings.MONGO_URI)
            app.state.db = app.state.mongo_client.get_default_database()
            logger.info("MongoDB connection established")
        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {str(e)}")
            sys.exit(1)

        app.state.cache = create_cache()

        # Database indexes
        try:
            for repo in INDEXED_REPOS:
                await run_in_threadpool(repo.ensure_indexes, app.state.db)
            logger.info("Database indexes ensured")
        except Exception as e:
            logger.error(f"Failed to ensure database indexes: {str(e)}")
            # Continue startup as this is not critical

        # Scheduler
        try:
            app.state.scheduler = create_scheduler()
            schedule_jobs(app.state.scheduler, app.state.db, app.state.cache)
            app.state.scheduler.start()
            logger.info("Scheduler started")
        except Exception as e:
            logger.error(f"Failed to start scheduler: {str(e)}")
            # Continue startup as this is not critical

        # Fill the stats document and the homepage cache before the first visitor
        task1 = asyncio.create_task(refresh_site_stats(app.state.db))
        task1.add_done_callback(lambda t: logger.error(f"Initial stats refresh failed: {t.exception()}") if t.exception() else None)

        task2 = asyncio.create_task(warm_homepage_cache(app.state.db, app.state.cache))
        task2.add_done_callback(lambda t: logger.error(f"Cache warming failed: {t.exception()}") if t.exception() else None)
        app.state.startup_tasks = (task1, task2)

        logger.info("Application startup completed successfully")

    except Exception as e:
        logger.critical(f"Critical startup failure: {str(e)}")
        sys.exit(1)

@app.on_event("shutdown")
async def shutdown():
    logger.info("Starting application shutdown...")

    # Shutdown scheduler
    try:
        if hasattr(app.state, 'scheduler'):
            app.state.scheduler.shutdown(wait=False)
            logger.info("Scheduler shutdown completed")
    except Exception as e:
        logger.error(f"Error shutting down scheduler: {str(e)}")

    # Drop cached entries and stop the eviction thread
    if hasattr(app.state, 'cache'):
        app.state.cache.close()

    # Close MongoDB connection
    try:
        if hasattr(app.state, 'mongo_client'):
            app.state.mongo_client.close()
            logger.info("MongoDB connection closed")
    except Exception as e:
        logger.error(f"Error closing MongoDB connection: {str(e)}")

    logger.info("Application shutdown completed")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"success": False, "message": "Invalid request", "errors": jsonable_errors(exc)},
    )

def jsonable_errors(exc: RequestValidationError):
    return [{"loc": list(err.get("loc", ())), "msg": err.get("msg")} for err in exc.errors()]


# Page views are recorded after the response is built
app.add_middleware(PageViewMiddleware)

# Error handling middleware (outermost of the custom ones)
app.add_middleware(ErrorHandlerMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(health_router)
app.include_router(public_router)
app.include_router(homepage.router)
app.include_router(lectures_route.router)
app.include_router(series_route.router)
app.include_router(sheikhs_route.router)
app.include_router(analytics.router)
app.include_router(admin_lectures.router)
app.include_router(admin_series.router)
app.include_router(admin_sheikhs.router)
app.include_router(admin_sections.router)
app.include_router(admin_schedule.router)
app.include_router(admin_settings.router)
app.include_router(admin_analytics.router)
app.include_router(admin_cache.router)
app.include_router(admin_dashboard.router)
