"""FastAPI application entry point for the sheet endpoint."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from credupi.config import settings
from credupi.logging_setup import configure_logging
from credupi.sheet.router import router as sheet_router

configure_logging()

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    logger.info(
        "app_starting",
        environment=settings.environment,
        sheet_csv_path=settings.sheet_csv_path,
    )
    yield
    logger.info("app_shutting_down")


app = FastAPI(
    title="CredUPI Waitlist Sheet",
    description="Append-only waitlist sheet endpoint for the CredUPI landing page",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Accept"],
)

app.include_router(sheet_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "CredUPI Waitlist Sheet",
        "version": "0.1.0",
        "status": "running",
    }
