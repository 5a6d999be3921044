"""Search API router.

Endpoints:
- /search - Keyword, semantic or hybrid search with keyword fallback
- /jobs/{job_id}/similar - Jobs similar to an existing job
"""

from fastapi import APIRouter, Query

from smartapply.api.deps import CurrentUserId, Orchestrator, Similarity
from smartapply.api.errors import to_api_error
from smartapply.core.responses import DataResponse
from smartapply.providers.errors import InvalidInputError
from smartapply.repositories.errors import StoreError
from smartapply.schemas.search import (
    SearchRequest,
    SearchResponse,
    SimilarJobSchema,
)
from smartapply.services.search_types import (
    DEFAULT_SIMILAR_LIMIT,
    DEFAULT_SIMILARITY_THRESHOLD,
    SearchFilters,
    SearchMode,
    SearchQuery,
)

router = APIRouter()


@router.post("/search")
async def search_jobs(
    body: SearchRequest,
    user_id: CurrentUserId,
    orchestrator: Orchestrator,
) -> DataResponse[SearchResponse]:
    """Search jobs.

    Semantic and hybrid searches fall back to keyword results when the
    embedding provider or the vector procedures fail; ``degraded`` is set
    on the response when that happens.
    """
    query = SearchQuery(
        raw_text=body.query,
        mode=SearchMode(body.mode),
        filters=SearchFilters(**body.filters.model_dump()),
        requester_id=user_id,
        similarity_threshold=body.similarity_threshold,
        result_limit=body.limit,
    )
    try:
        outcome = await orchestrator.search(query)
    except InvalidInputError as e:
        raise to_api_error(e) from e

    return DataResponse(data=SearchResponse.from_outcome(outcome))


@router.get("/jobs/{job_id}/similar")
async def get_similar_jobs(
    job_id: str,
    _user_id: CurrentUserId,
    finder: Similarity,
    threshold: float = Query(  # noqa: B008
        default=DEFAULT_SIMILARITY_THRESHOLD, ge=0.0, le=1.0
    ),
    limit: int = Query(default=DEFAULT_SIMILAR_LIMIT, ge=0, le=50),  # noqa: B008
) -> DataResponse[list[SimilarJobSchema]]:
    """Jobs whose embedding is close to ``job_id``'s."""
    try:
        similar = await finder.find_similar(job_id, threshold, limit)
    except (InvalidInputError, StoreError) as e:
        raise to_api_error(e) from e

    return DataResponse(data=[SimilarJobSchema.from_similar(j) for j in similar])
