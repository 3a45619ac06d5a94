"""
FastAPI application entry point
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
import logging

from app.core.config import settings, get_cors_origins
from app.core.logging_config import setup_logging
from app.db.mongodb import connect_to_mongodb, close_mongodb_connection, is_connected
from app.utils.redis_utils import is_redis_available
from app.api.routers import payments, promo_codes, revenue, users

# Setup logging
setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    # Startup
    connect_to_mongodb()

    yield

    # Shutdown
    close_mongodb_connection()


# Create the FastAPI app instance
app = FastAPI(
    title=settings.APP_NAME,
    description="Subscriptions, interview credits and promo codes for Prepvio",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors and log them for debugging"""
    logger.error(f"Validation error on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": {"message": "Invalid request payload", "errors": jsonable_encoder(exc.errors())}},
    )


# Include routers
app.include_router(users.router)
app.include_router(payments.router)
app.include_router(promo_codes.router)
app.include_router(revenue.router)


# Health check endpoints
@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
    }


@app.get("/api/health")
def health_check():
    """Health check endpoint"""
    health_info = {
        "status": "healthy",
        "mongodb": "connected" if is_connected() else "disconnected",
    }
    if settings.REDIS_HOST:
        health_info["redis"] = "connected" if is_redis_available() else "disconnected"
    return health_info
