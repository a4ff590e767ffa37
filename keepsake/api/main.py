"""
FastAPI application entry point.
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from keepsake.core.config import settings
from keepsake.core.database import get_sync_db
from keepsake.core.errors import KeepsakeError
from keepsake.core.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info(f"Starting {settings.app_name} API ({settings.app_env})")
    yield
    logger.info("Shutting down API")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="Trusted contacts and posthumous video release",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.is_development else [settings.app_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(KeepsakeError)
async def keepsake_error_handler(request: Request, exc: KeepsakeError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "keepsake",
        "version": "1.0.0",
        "environment": settings.app_env,
    }


@app.get("/health")
def health_check(db: Session = Depends(get_sync_db)):
    """Detailed health check."""
    try:
        db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError as e:
        logger.error(f"Health check database query failed: {e}")
        database = "unavailable"
    return {
        "status": "healthy" if database == "connected" else "degraded",
        "database": database,
    }


# Include routers
from keepsake.api.routers import admin, contacts, legacy, relationships

app.include_router(contacts.router, prefix="/contacts", tags=["contacts"])
app.include_router(relationships.router, prefix="/relationships", tags=["relationships"])
app.include_router(legacy.router, prefix="/legacy", tags=["legacy"])
app.include_router(admin.router, prefix="/admin", tags=["admin"])
