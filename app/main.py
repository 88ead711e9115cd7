"""
Workify Job Portal - Main Application

FastAPI backend with:
- MongoDB for users, companies, jobs and applications
- JWT access + rotating refresh tokens (Authorization header or httpOnly cookies)
- Password reset over SMTP
- Local storage for uploaded images and resumes, served from /static

Run: uvicorn app.main:app --reload
"""

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.api.error_handling import register_exception_handlers
from app.api.routes import api_router
from app.core.config import get_settings
from app.core.logging_config import setup_logging
from app.db.mongodb import init_mongo_indexes, test_mongo_connection
from app.schemas.schemas import ErrorResponse

setup_logging()
logger = logging.getLogger("app")

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize MongoDB indexes on startup."""
    try:
        init_mongo_indexes()
        logger.info("MongoDB indexes initialized")
    except Exception as e:
        logger.warning("MongoDB index initialization failed: %s", e)
    yield


# Create FastAPI app
app = FastAPI(
    title="Workify Job Portal",
    description="""
    Job portal backend for students and recruiters.

    ## Features
    - **Users**: Register, login, token refresh, logout, password change and reset
    - **Profiles**: Avatar, cover image, resume and structured profile details
    - **Companies**: Recruiters register and manage companies
    - **Jobs**: Post, search, update and delete job postings
    - **Applications**: Apply to jobs, review applicants, update status
    - **Dashboard**: Per-user and portal-wide statistics
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    ms = int((time.time() - start) * 1000)
    logger.info("%s %s -> %s (%dms)", request.method, request.url.path, response.status_code, ms)
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include API routes; every error shares one envelope
app.include_router(
    api_router,
    prefix="/api/v1",
    responses={code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 409, 500)},
)

# Uploaded files
Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
app.mount(settings.upload_url_prefix, StaticFiles(directory=settings.upload_dir), name="uploads")


@app.get("/", tags=["Health"])
def root():
    return {"status": "healthy", "app": "Workify Job Portal"}


@app.get("/health", tags=["Health"])
def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "mongodb": "connected" if test_mongo_connection() else "disconnected",
    }
