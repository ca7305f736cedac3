"""
FastAPI application for the Show Notes Generator.
"""

import time
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shownotes.config import config
from shownotes.api.routes import router
from shownotes.db.database import init_db
from shownotes.utils.caching import setup_redis_cache
from shownotes.utils.error_handling import ShowNotesError, log_exception, user_facing_message
from shownotes.utils.logger import logging

# FastAPI application
app = FastAPI(
    title=config.APP_NAME,
    version=config.APP_VERSION,
    description="An API for turning audio uploads and YouTube videos into show notes",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Initialize the database on startup
@app.on_event("startup")
async def startup_event():
    """Initialize components on application startup."""
    init_db()
    logging.info("Database initialized")

    if config.REDIS_URL:
        setup_redis_cache(config.REDIS_URL)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Middleware to add processing time header to responses."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


@app.exception_handler(ShowNotesError)
async def show_notes_exception_handler(request: Request, exc: ShowNotesError):
    """Answer service errors with their status code and user-facing message."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled exceptions."""
    log_exception(f"Unhandled error on {request.url.path}", exc)
    return JSONResponse(
        status_code=500,
        content={"detail": user_facing_message(exc)},
    )


# Include API router
app.include_router(router)


# Root
@app.get("/")
async def root():
    """Root endpoint returning basic API information."""
    return {
        "name": config.APP_NAME,
        "version": config.APP_VERSION,
        "description": "Show Notes Generator API",
    }


@app.get("/health")
async def health():
    return {"status": "healthy", "version": config.APP_VERSION}
