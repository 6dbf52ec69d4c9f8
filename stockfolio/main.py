"""
FastAPI application entry point.

Run with: uvicorn stockfolio.main:app --reload
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stockfolio import telemetry
from stockfolio._version import VERSION
from stockfolio.database import init_db

# Import models to ensure they're registered with SQLAlchemy
from stockfolio.models import Holding, Transaction, User, WatchlistEntry  # noqa: F401
from stockfolio.routers import auth_router, portfolio_router, stock_router
from stockfolio.services.stock import close_stock_service

logger = logging.getLogger(__name__)

CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS", "http://localhost:3000,http://localhost:5173"
).split(",")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    Startup: Create database tables if they don't exist, initialize telemetry.
    Shutdown: Close the quote cache connection.
    """
    # Startup
    await init_db()
    print("Database initialized")

    if telemetry.setup_telemetry():
        # Attach OTLP handler to root logger for log export
        handler = telemetry.get_log_handler()
        if handler:
            logging.getLogger().addHandler(handler)
            logging.getLogger().setLevel(logging.INFO)
        print("Telemetry initialized (OTLP metrics + logs enabled)")
    else:
        print("Telemetry disabled")

    yield

    # Shutdown
    await close_stock_service()
    print("Application shutting down")


# Create FastAPI application
app = FastAPI(
    title="Stockfolio API",
    description="Stock research, watchlists and portfolio tracking",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in CORS_ORIGINS if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed input as 400 with the first failing field."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else first.get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": message},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc)},
    )


# Register routers
app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
app.include_router(stock_router, prefix="/api/stock", tags=["stock"])
app.include_router(portfolio_router, prefix="/api/portfolio", tags=["portfolio"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/api/version")
async def get_version():
    """Get API version information."""
    return {
        "version": VERSION,
        "api_version": "v1",
    }
