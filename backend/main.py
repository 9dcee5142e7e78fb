"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import holdings, rebalancing, statements, symbol_mappings, targets
from database import init_db
from logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create database tables on startup."""
    try:
        init_db()
    except Exception:
        logger.error("Database initialization failed on startup", exc_info=True)
        raise
    yield


app = FastAPI(
    title="Portfolio Rebalancer",
    description="Statement imports, target allocations and rebalancing suggestions",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configuration for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(statements.router)
app.include_router(holdings.router)
app.include_router(targets.router)
app.include_router(symbol_mappings.router)
app.include_router(rebalancing.router)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}
