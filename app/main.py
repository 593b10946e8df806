from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Depends, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .config import settings
from .database import get_db, init_db
from .core.middleware import ExceptionHandlingMiddleware
from .schemas.result import Result, Error, ErrorCategory

# Import routes
from .api.v1 import auth, user, households, bills

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("%s %s started", settings.PROJECT_NAME, settings.VERSION)
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    description="Bills tracking API with shared households",
    lifespan=lifespan,
)

# Exception handling goes in FIRST
ExceptionHandlingMiddleware.install(app, log_internal_errors=True)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(
    auth.router, prefix=f"{settings.API_V1_STR}/auth", tags=["authentication"]
)
app.include_router(user.router, prefix=f"{settings.API_V1_STR}/users", tags=["users"])
app.include_router(
    households.router,
    prefix=f"{settings.API_V1_STR}/households",
    tags=["households"]
)
app.include_router(
    bills.router,
    prefix=f"{settings.API_V1_STR}/bills",
    tags=["bills"]
)


@app.get("/", response_model=Result[dict])
async def root():
    """Root endpoint with API information"""
    return Result.successful(
        data={
            "message": f"Welcome to {settings.PROJECT_NAME} API",
            "version": settings.VERSION,
            "docs": "/docs",
            "status": "online",
        }
    )


@app.get("/health", response_model=Result[dict])
async def health_check(db: Session = Depends(get_db)):
    """Health check endpoint for monitoring"""
    try:
        db.execute(text("SELECT 1"))
        return Result.successful(data={"status": "healthy", "database": "connected"})
    except SQLAlchemyError:
        logger.exception("Health check failed")
        error = Error.of(
            message="Health check failed: database unavailable",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            category=ErrorCategory.INTERNAL,
        )
        return JSONResponse(
            status_code=error.status_code,
            content=Result.failure(error).model_dump(),
        )
