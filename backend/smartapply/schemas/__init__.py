"""Pydantic request/response schemas for API endpoints."""

from smartapply.schemas.search import (
    BackfillFailureSchema,
    BackfillProgressSchema,
    BackfillRequest,
    PreferenceUpdateRequest,
    PreferenceUpdateResponse,
    SearchFiltersSchema,
    SearchRequest,
    SearchResponse,
    SearchResultSchema,
    SetupStatusSchema,
    SimilarJobSchema,
)

__all__ = [
    # Search
    "SearchFiltersSchema",
    "SearchRequest",
    "SearchResponse",
    "SearchResultSchema",
    "SimilarJobSchema",
    # Preferences
    "PreferenceUpdateRequest",
    "PreferenceUpdateResponse",
    # Admin
    "BackfillFailureSchema",
    "BackfillProgressSchema",
    "BackfillRequest",
    "SetupStatusSchema",
]
