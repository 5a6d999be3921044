"""Types shared by the job search services.

Value objects passed between the search services, the remote store and
the API layer. None of them hold behaviour beyond small derived values.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from smartapply.providers.embedding.base import Embedding

# =============================================================================
# Constants
# =============================================================================

DEFAULT_RESULT_LIMIT = 20
DEFAULT_SEMANTIC_THRESHOLD = 0.7
DEFAULT_HYBRID_THRESHOLD = 0.6
DEFAULT_SIMILARITY_THRESHOLD = 0.8
DEFAULT_SIMILAR_LIMIT = 10
DEFAULT_RECOMMENDATION_LIMIT = 15


# =============================================================================
# Enums
# =============================================================================


class SearchMode(Enum):
    """Search strategy requested by the caller."""

    KEYWORD = "keyword"
    SEMANTIC = "semantic"
    HYBRID = "hybrid"

    @property
    def needs_embedding(self) -> bool:
        """Whether this mode embeds the query text."""
        return self is not SearchMode.KEYWORD

    @property
    def default_threshold(self) -> float | None:
        """Similarity threshold used when the query does not set one."""
        if self is SearchMode.SEMANTIC:
            return DEFAULT_SEMANTIC_THRESHOLD
        if self is SearchMode.HYBRID:
            return DEFAULT_HYBRID_THRESHOLD
        return None


class SearchStrategy(Enum):
    """Store procedure that actually produced a result set."""

    KEYWORD = "keyword"
    SEMANTIC = "semantic"
    HYBRID = "hybrid"
    KEYWORD_FALLBACK = "keyword_fallback"
    NONE = "none"


# =============================================================================
# Queries and results
# =============================================================================


@dataclass(frozen=True)
class SearchFilters:
    """Optional facet filters applied by every search procedure.

    Attributes:
        experience_level: e.g. "entry", "mid", "senior".
        employment_type: e.g. "full-time", "internship".
        industry: Industry name.
        location: Free-text location.
    """

    experience_level: str | None = None
    employment_type: str | None = None
    industry: str | None = None
    location: str | None = None

    def as_params(self) -> dict[str, str | None]:
        """Render as stored-procedure parameters (empty strings become NULL)."""
        return {
            "filter_experience_level": self.experience_level or None,
            "filter_employment_type": self.employment_type or None,
            "filter_industry": self.industry or None,
            "filter_location": self.location or None,
        }


@dataclass(frozen=True)
class SearchQuery:
    """A single search request.

    Attributes:
        raw_text: Free-text query. Required for semantic and hybrid modes.
        mode: Requested search strategy.
        filters: Facet filters, reused unchanged by the keyword fallback.
        requester_id: User issuing the search, for match scoring.
        similarity_threshold: Minimum similarity in [0, 1]. None means the
            mode's default.
        result_limit: Maximum number of results. Zero means no search.
    """

    raw_text: str = ""
    mode: SearchMode = SearchMode.SEMANTIC
    filters: SearchFilters = field(default_factory=SearchFilters)
    requester_id: uuid.UUID | None = None
    similarity_threshold: float | None = None
    result_limit: int = DEFAULT_RESULT_LIMIT

    @property
    def effective_threshold(self) -> float | None:
        """Threshold sent to the store for this query's mode."""
        if self.similarity_threshold is not None:
            return self.similarity_threshold
        return self.mode.default_threshold


@dataclass
class SearchResult:
    """One job returned by a search procedure.

    Attributes:
        job_id: Job identifier.
        title: Job title.
        company: Company name.
        location: Job location.
        employment_type: Employment type.
        experience_level: Required experience level.
        industry: Industry.
        salary_min: Lower salary bound, if published.
        salary_max: Upper salary bound, if published.
        semantic_similarity: Cosine similarity from the vector search.
        combined_score: Blended lexical + vector score (hybrid search).
        match_breakdown: Sub-score name to percentage.
    """

    job_id: str
    title: str = ""
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

    @property
    def has_relevance_score(self) -> bool:
        """Whether a vector-derived score is present."""
        return self.semantic_similarity is not None or self.combined_score is not None


@dataclass
class SearchOutcome:
    """Results of one search plus how they were obtained.

    Attributes:
        results: Ordered results, best first.
        requested_mode: Mode the caller asked for.
        strategy: Procedure that produced ``results``.
        degradation_reason: Why the primary strategy was abandoned, if it was.
    """

    results: list[SearchResult]
    requested_mode: SearchMode
    strategy: SearchStrategy
    degradation_reason: str | None = None

    @property
    def degraded(self) -> bool:
        """True when the keyword fallback replaced a semantic/hybrid search."""
        return self.strategy is SearchStrategy.KEYWORD_FALLBACK


@dataclass
class SimilarJob:
    """Job summary returned by the nearest-neighbour procedure."""

    job_id: str
    title: str
    company: str | None
    similarity: float


# =============================================================================
# Preferences
# =============================================================================


@dataclass
class PreferenceProfile:
    """A user's stored preference text and its embedding.

    Attributes:
        owner_id: User the profile belongs to.
        preference_text: Text describing what the user is looking for.
        preference_embedding: Embedding of ``preference_text``, if generated.
        last_updated: When the embedding was last written.
    """

    owner_id: uuid.UUID
    preference_text: str | None
    preference_embedding: Embedding | None
    last_updated: datetime | None = None

    @property
    def has_embedding(self) -> bool:
        """Whether a preference embedding is stored."""
        return bool(self.preference_embedding)


# =============================================================================
# Backfill
# =============================================================================


@dataclass(frozen=True)
class JobEmbeddingCandidate:
    """Active job that has no embedding yet.

    Attributes:
        job_id: Job identifier.
        title: Job title.
        description: Job description.
        skills: Required and nice-to-have skill names, in that order.
    """

    job_id: str
    title: str
    description: str
    skills: tuple[str, ...] = ()

    def embedding_text(self) -> str:
        """Title, description and skill names as one blob."""
        return f"{self.title} {self.description} {' '.join(self.skills)}"


@dataclass(frozen=True)
class BackfillFailure:
    """A candidate that could not be embedded or written."""

    job_id: str
    reason: str


@dataclass
class BackfillProgress:
    """Aggregate progress of one backfill run.

    Attributes:
        total_candidates: Candidates in the fetched page.
        processed: Candidates whose embedding was written.
        failures: Failed candidates, in processing order.
        cursor: Last job id visited. Pass it to the next run to resume.
        cancelled: Whether the run stopped on a cancellation request.
        error: Run-level failure (the candidate page could not be fetched).
    """

    total_candidates: int = 0
    processed: int = 0
    failures: list[BackfillFailure] = field(default_factory=list)
    cursor: str | None = None
    cancelled: bool = False
    error: str | None = None

    @property
    def failed(self) -> int:
        """Number of failed candidates."""
        return len(self.failures)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses and log lines."""
        return {
            "total_candidates": self.total_candidates,
            "processed": self.processed,
            "failed": self.failed,
            "failures": [
                {"job_id": f.job_id, "reason": f.reason} for f in self.failures
            ],
            "cursor": self.cursor,
            "cancelled": self.cancelled,
            "error": self.error,
        }


# =============================================================================
# Setup check
# =============================================================================


@dataclass
class SetupStatus:
    """Whether the store has the vector schema installed."""

    is_setup: bool
    message: str
    details: str | None = None
