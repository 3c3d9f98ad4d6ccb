"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import connections, institutions, nordigen
from config import settings
from database import init_db
from logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create missing tables on startup."""
    init_db()
    logger.info("Bank link backend started (aggregator: %s)", settings.AGGREGATOR_PROVIDER)
    yield


app = FastAPI(
    title="Bank Link",
    description="Open-banking aggregator configuration and bank connections",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configuration for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(nordigen.router)
app.include_router(institutions.router)
app.include_router(connections.router)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}
