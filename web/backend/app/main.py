"""FastAPI application for the contentguard moderation service.

Provides REST API endpoints wrapping the contentguard package for:
- Screening prompts and design selections
- User standing checks
- Violation review, resolution, and manual blocks (admin)
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the contentguard package is importable by adding the project root to sys.path.
_project_root = str(Path(__file__).resolve().parents[3])
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from contentguard import __version__
from web.backend.app.routers import admin, moderation

app = FastAPI(
    title="contentguard API",
    description=(
        "REST API for prompt moderation. Screens user text against the "
        "blocklist, records violations, and exposes admin review endpoints."
    ),
    version=__version__,
)

# ---------------------------------------------------------------------------
# CORS middleware (allow all origins for development)
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------
app.include_router(moderation.router)
app.include_router(admin.router)


# ---------------------------------------------------------------------------
# Root and health-check endpoints
# ---------------------------------------------------------------------------


@app.get("/", tags=["meta"])
async def root():
    """Return basic API information."""
    return {
        "name": "contentguard API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


@app.get("/health", tags=["meta"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
