"""
API v1 Router

All data endpoints are scoped to the caller's org through their profile.
"""

from fastapi import APIRouter

from . import memberships, profiles, projects

router = APIRouter()

router.include_router(profiles.router, prefix="/profiles", tags=["Profiles"])
router.include_router(projects.router, prefix="/projects", tags=["Projects"])
router.include_router(memberships.router, prefix="/memberships", tags=["Memberships"])


@router.get("/", tags=["API"])
async def api_root():
    """API root - returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/profiles",
            "/profiles/me",
            "/projects",
            "/memberships",
        ],
    }
