"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from courtbook.api import admin, availability, payments, reservations
from courtbook.core.config import settings
from courtbook.core.database import init_models
from courtbook.services.sweeper import hold_expiry_sweeper

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting court reservation engine")
    logger.info(f"Debug mode: {settings.DEBUG}")

    await init_models()

    # Start the hold expiry sweeper
    await hold_expiry_sweeper.start()

    yield

    # Shutdown
    logger.info("Shutting down court reservation engine")
    await hold_expiry_sweeper.stop()


# Create FastAPI app
app = FastAPI(
    title="Court Reservation Engine",
    description="Slot availability, atomic holds and payment reconciliation for bookable courts",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Answer malformed requests with 400 like every other validation failure."""
    return JSONResponse(
        status_code=400,
        content={"detail": {"error": "validation_error", "message": "Invalid request", "errors": jsonable_encoder(exc.errors())}},
    )


# Include routers
app.include_router(availability.router)
app.include_router(reservations.router)
app.include_router(payments.router)
app.include_router(admin.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "sweeper_running": hold_expiry_sweeper.running,
    }
