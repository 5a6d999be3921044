"""Nearest-neighbour lookup for an existing job.

A single delegation to the store. Nothing here is retried: a job without
an embedding is a data problem, so NotFoundError reaches the caller on the
first attempt.
"""

import logging

from smartapply.providers.errors import InvalidInputError
from smartapply.services.search_store import SearchStore
from smartapply.services.search_types import (
    DEFAULT_SIMILAR_LIMIT,
    DEFAULT_SIMILARITY_THRESHOLD,
    SimilarJob,
)

logger = logging.getLogger(__name__)


class SimilarityFinder:
    """Find jobs similar to a given job.

    Args:
        store: Remote store exposing the nearest-neighbour procedure.
    """

    def __init__(self, store: SearchStore) -> None:
        self._store = store

    async def find_similar(
        self,
        job_id: str,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
        limit: int = DEFAULT_SIMILAR_LIMIT,
    ) -> list[SimilarJob]:
        """Return jobs whose similarity to ``job_id`` meets the threshold.

        Args:
            job_id: Job to compare against.
            similarity_threshold: Minimum similarity in [0, 1].
            limit: Maximum number of jobs.

        Returns:
            Similar jobs, most similar first (possibly empty).

        Raises:
            InvalidInputError: Blank job id, threshold outside [0, 1] or
                negative limit.
            NotFoundError: If the job has no embedding.
            StoreError: Any other store failure.
        """
        if not job_id or not job_id.strip():
            raise InvalidInputError("job_id is required")
        if not 0.0 <= similarity_threshold <= 1.0:
            raise InvalidInputError("similarity_threshold must be between 0 and 1")
        if limit < 0:
            raise InvalidInputError("limit must be zero or positive")
        if limit == 0:
            return []

        similar = await self._store.nearest_neighbors(
            job_id, similarity_threshold, limit
        )
        logger.debug("Found %d jobs similar to %s", len(similar), job_id)
        return similar[:limit]
