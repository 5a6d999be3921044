"""Shared fixtures for service unit tests.

FakeSearchStore implements the SearchStore protocol in memory. Every call
is recorded in order, canned results can be set per method, and failures
are scripted per method as a queue (an exception is raised, None lets the
call through).
"""

import uuid
from typing import Any

import pytest

from smartapply.providers.embedding.base import Embedding
from smartapply.repositories.errors import AlreadyExistsError, ProfileMissingError
from smartapply.services.search_types import (
    JobEmbeddingCandidate,
    PreferenceProfile,
    SearchFilters,
    SearchResult,
    SimilarJob,
)


def make_result(job_id: str, **overrides: Any) -> SearchResult:
    """Build a SearchResult with a similarity score unless overridden."""
    fields: dict[str, Any] = {
        "job_id": job_id,
        "title": f"Job {job_id}",
        "company": "Acme",
        "semantic_similarity": 0.9,
    }
    fields.update(overrides)
    return SearchResult(**fields)


class FakeSearchStore:
    """In-memory SearchStore that records calls."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.results: dict[str, list[Any]] = {}
        self.errors: dict[str, list[Exception | None]] = {}

        # Preference state
        self.profile_owners: set[uuid.UUID] = set()
        self.profiles: dict[uuid.UUID, PreferenceProfile] = {}
        self.default_preference_text = "Software engineer, remote, full-time"

        # Backfill state
        self.candidates: list[JobEmbeddingCandidate] = []
        self.job_embeddings: dict[str, Embedding] = {}

        # Schema probes
        self.job_embedding_column = True
        self.preference_embedding_column = True
        self.semantic_search_procedure = True

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def fail(self, method: str, *errors: Exception | None) -> None:
        """Script the next outcomes of ``method``."""
        self.errors.setdefault(method, []).extend(errors)

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def calls_to(self, method: str) -> list[dict[str, Any]]:
        return [kwargs for name, kwargs in self.calls if name == method]

    def _record(self, method: str, **kwargs: Any) -> None:
        self.calls.append((method, kwargs))
        queue = self.errors.get(method)
        if queue:
            error = queue.pop(0)
            if error is not None:
                raise error

    # -------------------------------------------------------------------------
    # Searches
    # -------------------------------------------------------------------------

    async def semantic_search(
        self,
        embedding: Embedding,
        filters: SearchFilters,
        threshold: float,
        limit: int,
        user_id: uuid.UUID | None = None,
    ) -> list[SearchResult]:
        self._record(
            "semantic_search",
            embedding=embedding,
            filters=filters,
            threshold=threshold,
            limit=limit,
            user_id=user_id,
        )
        return list(self.results.get("semantic_search", []))

    async def hybrid_search(
        self,
        query_text: str,
        embedding: Embedding,
        filters: SearchFilters,
        threshold: float,
        limit: int,
        user_id: uuid.UUID | None = None,
    ) -> list[SearchResult]:
        self._record(
            "hybrid_search",
            query_text=query_text,
            embedding=embedding,
            filters=filters,
            threshold=threshold,
            limit=limit,
            user_id=user_id,
        )
        return list(self.results.get("hybrid_search", []))

    async def keyword_fallback_search(
        self,
        filters: SearchFilters,
        limit: int,
        user_id: uuid.UUID | None = None,
    ) -> list[SearchResult]:
        self._record(
            "keyword_fallback_search", filters=filters, limit=limit, user_id=user_id
        )
        return list(self.results.get("keyword_fallback_search", []))

    async def nearest_neighbors(
        self,
        job_id: str,
        threshold: float,
        limit: int,
    ) -> list[SimilarJob]:
        self._record("nearest_neighbors", job_id=job_id, threshold=threshold, limit=limit)
        return list(self.results.get("nearest_neighbors", []))

    async def personalized_recommendations(
        self,
        user_id: uuid.UUID,
        limit: int,
    ) -> list[SearchResult]:
        self._record("personalized_recommendations", user_id=user_id, limit=limit)
        return list(self.results.get("personalized_recommendations", []))

    # -------------------------------------------------------------------------
    # Preferences
    # -------------------------------------------------------------------------

    async def upsert_preference_embedding(
        self,
        user_id: uuid.UUID,
        preference_text: str,
        embedding: Embedding,
    ) -> None:
        self._record(
            "upsert_preference_embedding",
            user_id=user_id,
            preference_text=preference_text,
            embedding=embedding,
        )
        self.profile_owners.add(user_id)
        self.profiles[user_id] = PreferenceProfile(
            owner_id=user_id,
            preference_text=preference_text,
            preference_embedding=embedding,
        )

    async def initialize_default_preferences(self, user_id: uuid.UUID) -> str:
        self._record("initialize_default_preferences", user_id=user_id)
        if user_id not in self.profile_owners:
            raise ProfileMissingError(f"profile not found for user {user_id}")
        return self.default_preference_text

    async def create_default_profile(self, user_id: uuid.UUID) -> None:
        self._record("create_default_profile", user_id=user_id)
        if user_id in self.profile_owners:
            raise AlreadyExistsError("duplicate key value violates unique constraint")
        self.profile_owners.add(user_id)

    async def get_preference_profile(
        self,
        user_id: uuid.UUID,
    ) -> PreferenceProfile | None:
        self._record("get_preference_profile", user_id=user_id)
        return self.profiles.get(user_id)

    # -------------------------------------------------------------------------
    # Backfill
    # -------------------------------------------------------------------------

    async def jobs_missing_embedding(
        self,
        page_size: int,
        after: str | None = None,
    ) -> list[JobEmbeddingCandidate]:
        self._record("jobs_missing_embedding", page_size=page_size, after=after)
        pending = sorted(
            (c for c in self.candidates if c.job_id not in self.job_embeddings),
            key=lambda c: c.job_id,
        )
        if after is not None:
            pending = [c for c in pending if c.job_id > after]
        return pending[:page_size]

    async def write_job_embedding(self, job_id: str, embedding: Embedding) -> None:
        self._record("write_job_embedding", job_id=job_id, embedding=embedding)
        self.job_embeddings[job_id] = embedding

    # -------------------------------------------------------------------------
    # Schema probes
    # -------------------------------------------------------------------------

    async def has_job_embedding_column(self) -> bool:
        self._record("has_job_embedding_column")
        return self.job_embedding_column

    async def has_preference_embedding_column(self) -> bool:
        self._record("has_preference_embedding_column")
        return self.preference_embedding_column

    async def has_semantic_search_procedure(self) -> bool:
        self._record("has_semantic_search_procedure")
        return self.semantic_search_procedure


@pytest.fixture
def store() -> FakeSearchStore:
    """Fresh in-memory search store."""
    return FakeSearchStore()
