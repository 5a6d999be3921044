"""Remote store interface consumed by the search services.

The services depend on this protocol, not on SQLAlchemy. The production
implementation is JobSearchRepository; tests use an in-memory fake.
Every method raises a StoreError subclass on failure.
"""

import uuid
from typing import Protocol

from smartapply.providers.embedding.base import Embedding
from smartapply.services.search_types import (
    JobEmbeddingCandidate,
    PreferenceProfile,
    SearchFilters,
    SearchResult,
    SimilarJob,
)


class SearchStore(Protocol):
    """Stored procedures and queries behind the search orchestration layer."""

    async def semantic_search(
        self,
        embedding: Embedding,
        filters: SearchFilters,
        threshold: float,
        limit: int,
        user_id: uuid.UUID | None = None,
    ) -> list[SearchResult]: ...

    async def hybrid_search(
        self,
        query_text: str,
        embedding: Embedding,
        filters: SearchFilters,
        threshold: float,
        limit: int,
        user_id: uuid.UUID | None = None,
    ) -> list[SearchResult]: ...

    async def keyword_fallback_search(
        self,
        filters: SearchFilters,
        limit: int,
        user_id: uuid.UUID | None = None,
    ) -> list[SearchResult]: ...

    async def nearest_neighbors(
        self,
        job_id: str,
        threshold: float,
        limit: int,
    ) -> list[SimilarJob]: ...

    async def personalized_recommendations(
        self,
        user_id: uuid.UUID,
        limit: int,
    ) -> list[SearchResult]: ...

    async def upsert_preference_embedding(
        self,
        user_id: uuid.UUID,
        preference_text: str,
        embedding: Embedding,
    ) -> None: ...

    async def initialize_default_preferences(self, user_id: uuid.UUID) -> str: ...

    async def create_default_profile(self, user_id: uuid.UUID) -> None: ...

    async def get_preference_profile(
        self,
        user_id: uuid.UUID,
    ) -> PreferenceProfile | None: ...

    async def jobs_missing_embedding(
        self,
        page_size: int,
        after: str | None = None,
    ) -> list[JobEmbeddingCandidate]: ...

    async def write_job_embedding(self, job_id: str, embedding: Embedding) -> None: ...

    async def has_job_embedding_column(self) -> bool: ...

    async def has_preference_embedding_column(self) -> bool: ...

    async def has_semantic_search_procedure(self) -> bool: ...
