"""API v1 router aggregator.

All v1 endpoint routers are included here and mounted at /api/v1.
"""

from fastapi import APIRouter

from smartapply.api.v1 import admin, preferences, search

router = APIRouter()

# =============================================================================
# Search
# =============================================================================

router.include_router(search.router, tags=["search"])

# =============================================================================
# Preferences & Recommendations
# =============================================================================

router.include_router(preferences.router, tags=["preferences"])

# =============================================================================
# Admin
# =============================================================================

router.include_router(admin.router, prefix="/admin", tags=["admin"])
