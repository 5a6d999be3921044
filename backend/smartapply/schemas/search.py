"""Search API request/response schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from smartapply.services.search_types import (
    DEFAULT_RESULT_LIMIT,
    BackfillProgress,
    SearchOutcome,
    SearchResult,
    SetupStatus,
    SimilarJob,
)

_MAX_QUERY_LENGTH = 2000
_MAX_RESULT_LIMIT = 100

# =============================================================================
# Request Schemas
# =============================================================================


class SearchFiltersSchema(BaseModel):
    """Facet filters for a search request."""

    model_config = ConfigDict(extra="forbid")

    experience_level: str | None = Field(default=None, max_length=100)
    employment_type: str | None = Field(default=None, max_length=100)
    industry: str | None = Field(default=None, max_length=100)
    location: str | None = Field(default=None, max_length=255)


class SearchRequest(BaseModel):
    """Request body for POST /search.

    Attributes:
        query: Free-text query. Required for semantic and hybrid modes.
        mode: Search strategy.
        filters: Facet filters.
        similarity_threshold: Minimum similarity; mode default when omitted.
        limit: Maximum number of results.
    """

    model_config = ConfigDict(extra="forbid")

    query: str = Field(default="", max_length=_MAX_QUERY_LENGTH)
    mode: Literal["keyword", "semantic", "hybrid"] = "semantic"
    filters: SearchFiltersSchema = Field(default_factory=SearchFiltersSchema)
    similarity_threshold: float | None = Field(default=None, ge=0.0, le=1.0)
    limit: int = Field(default=DEFAULT_RESULT_LIMIT, ge=0, le=_MAX_RESULT_LIMIT)


class PreferenceUpdateRequest(BaseModel):
    """Request body for PUT /preferences."""

    model_config = ConfigDict(extra="forbid")

    preference_text: str = Field(..., min_length=1, max_length=_MAX_QUERY_LENGTH)


class BackfillRequest(BaseModel):
    """Request body for POST /admin/embeddings/backfill."""

    model_config = ConfigDict(extra="forbid")

    cursor: str | None = Field(default=None, max_length=100)


# =============================================================================
# Response Schemas
# =============================================================================


class SearchResultSchema(BaseModel):
    """One job in a search response."""

    job_id: str
    title: str
    company: str | None = None
    location: str | None = None
    employment_type: str | None = None
    experience_level: str | None = None
    industry: str | None = None
    salary_min: float | None = None
    salary_max: float | None = None
    semantic_similarity: float | None = None
    combined_score: float | None = None
    match_breakdown: dict[str, float] | None = None

    @classmethod
    def from_result(cls, result: SearchResult) -> "SearchResultSchema":
        """Build from a service-layer SearchResult."""
        return cls(
            job_id=result.job_id,
            title=result.title,
            company=result.company,
            location=result.location,
            employment_type=result.employment_type,
            experience_level=result.experience_level,
            industry=result.industry,
            salary_min=result.salary_min,
            salary_max=result.salary_max,
            semantic_similarity=result.semantic_similarity,
            combined_score=result.combined_score,
            match_breakdown=result.match_breakdown,
        )


class SearchResponse(BaseModel):
    """Search results plus how they were produced."""

    results: list[SearchResultSchema]
    mode: str
    strategy: str
    degraded: bool
    degradation_reason: str | None = None

    @classmethod
    def from_outcome(cls, outcome: SearchOutcome) -> "SearchResponse":
        """Build from a SearchOutcome."""
        return cls(
            results=[SearchResultSchema.from_result(r) for r in outcome.results],
            mode=outcome.requested_mode.value,
            strategy=outcome.strategy.value,
            degraded=outcome.degraded,
            degradation_reason=outcome.degradation_reason,
        )


class SimilarJobSchema(BaseModel):
    """A job similar to the requested one."""

    job_id: str
    title: str
    company: str | None = None
    similarity: float

    @classmethod
    def from_similar(cls, job: SimilarJob) -> "SimilarJobSchema":
        """Build from a SimilarJob."""
        return cls(
            job_id=job.job_id,
            title=job.title,
            company=job.company,
            similarity=job.similarity,
        )


class PreferenceUpdateResponse(BaseModel):
    """Whether the preference profile was written."""

    updated: bool


class BackfillFailureSchema(BaseModel):
    """A job the backfill could not embed."""

    job_id: str
    reason: str


class BackfillProgressSchema(BaseModel):
    """Summary of a backfill run."""

    total_candidates: int
    processed: int
    failed: int
    failures: list[BackfillFailureSchema]
    cursor: str | None = None
    cancelled: bool
    error: str | None = None

    @classmethod
    def from_progress(cls, progress: BackfillProgress) -> "BackfillProgressSchema":
        """Build from BackfillProgress."""
        return cls.model_validate(progress.to_dict())


class SetupStatusSchema(BaseModel):
    """Semantic search setup status."""

    is_setup: bool
    message: str
    details: str | None = None

    @classmethod
    def from_status(cls, status: SetupStatus) -> "SetupStatusSchema":
        """Build from SetupStatus."""
        return cls(is_setup=status.is_setup, message=status.message, details=status.details)
