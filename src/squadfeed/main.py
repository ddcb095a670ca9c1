# src/squadfeed/main.py
"""Main entry point for the SquadFeed API."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from squadfeed import __version__
from squadfeed.api.v1 import (
    bookmarks_router,
    feed_router,
    posts_router,
    squads_router,
    votes_router,
)
from squadfeed.core.settings import settings

# Initialize FastAPI app
app = FastAPI(
    title="SquadFeed API",
    description="Squad-scoped post feeds with voting and bookmarks",
    version=__version__,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(posts_router, prefix="/api/v1")
app.include_router(feed_router, prefix="/api/v1")
app.include_router(squads_router, prefix="/api/v1")
app.include_router(votes_router, prefix="/api/v1")
app.include_router(bookmarks_router, prefix="/api/v1")


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
    uvicorn.run("squadfeed.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
