"""Preferences and recommendations API router.

Endpoints:
- /preferences - Replace the user's preference text and embedding
- /preferences/initialize - Create default preferences if missing
- /recommendations - Jobs ranked against the preference embedding
"""

from fastapi import APIRouter, Query

from smartapply.api.deps import CurrentUserId, Preferences
from smartapply.core.responses import DataResponse
from smartapply.schemas.search import (
    PreferenceUpdateRequest,
    PreferenceUpdateResponse,
    SearchResultSchema,
)
from smartapply.services.search_types import DEFAULT_RECOMMENDATION_LIMIT

router = APIRouter()


@router.put("/preferences")
async def update_preferences(
    body: PreferenceUpdateRequest,
    user_id: CurrentUserId,
    preferences: Preferences,
) -> DataResponse[PreferenceUpdateResponse]:
    """Embed and store new preference text.

    ``updated`` is false when embedding or the write failed; the stored
    profile is then unchanged.
    """
    updated = await preferences.update(user_id, body.preference_text)
    return DataResponse(data=PreferenceUpdateResponse(updated=updated))


@router.post("/preferences/initialize")
async def initialize_preferences(
    user_id: CurrentUserId,
    preferences: Preferences,
) -> DataResponse[PreferenceUpdateResponse]:
    """Create a default preference embedding if the user has none."""
    initialized = await preferences.ensure_initialized(user_id)
    return DataResponse(data=PreferenceUpdateResponse(updated=initialized))


@router.get("/recommendations")
async def get_recommendations(
    user_id: CurrentUserId,
    preferences: Preferences,
    limit: int = Query(  # noqa: B008
        default=DEFAULT_RECOMMENDATION_LIMIT, ge=0, le=100
    ),
) -> DataResponse[list[SearchResultSchema]]:
    """Personalized job recommendations (keyword results on failure)."""
    results = await preferences.get_recommendations(user_id, limit)
    return DataResponse(data=[SearchResultSchema.from_result(r) for r in results])
