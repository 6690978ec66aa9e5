"""
Health Routes - System health and status endpoints.
"""

from typing import Any

from fastapi import APIRouter

from rosterscan import __version__

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "rosterscan"}


@router.get("/api")
async def api_info() -> dict[str, Any]:
    """API info endpoint."""
    return {
        "name": "RosterScan API",
        "version": __version__,
        "description": "AI extraction of performance-review rosters from PDF and Word files",
        "docs": "/docs",
    }
