"""Shared dependencies for API endpoints.

Local-first mode: the current user comes from DEFAULT_USER_ID. Services are
built per request around the request's database session and the shared
embedding provider.
"""

import uuid
from typing import Annotated

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from smartapply.core.config import settings
from smartapply.core.database import get_db
from smartapply.providers import factory
from smartapply.providers.embedding.client import EmbeddingClient
from smartapply.repositories.job_search_repository import JobSearchRepository
from smartapply.services.embedding_backfill import BackfillCoordinator
from smartapply.services.preference_manager import PreferenceManager
from smartapply.services.search_setup import SetupChecker
from smartapply.services.semantic_search import SearchOrchestrator
from smartapply.services.similar_jobs import SimilarityFinder

# Generic 401 detail. Never include specifics about why auth failed.
_UNAUTHORIZED_DETAIL = {
    "code": "UNAUTHORIZED",
    "message": "Authentication required",
}


async def get_current_user_id() -> uuid.UUID:
    """Get current user ID from the local-first configuration.

    Returns:
        UUID of the configured default user.

    Raises:
        HTTPException: 401 if DEFAULT_USER_ID is not set.
    """
    if settings.default_user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=_UNAUTHORIZED_DETAIL,
        )
    return settings.default_user_id


CurrentUserId = Annotated[uuid.UUID, Depends(get_current_user_id)]
DbSession = Annotated[AsyncSession, Depends(get_db)]


def get_search_repository(db: DbSession) -> JobSearchRepository:
    """Repository bound to the request's session."""
    return JobSearchRepository(db)


def get_embedding_client() -> EmbeddingClient:
    """Embedding client around the provider singleton."""
    return factory.get_embedding_client(settings.provider_config())


SearchRepository = Annotated[JobSearchRepository, Depends(get_search_repository)]
Embeddings = Annotated[EmbeddingClient, Depends(get_embedding_client)]


def get_search_orchestrator(
    embedding_client: Embeddings,
    repository: SearchRepository,
) -> SearchOrchestrator:
    return SearchOrchestrator(embedding_client, repository)


def get_preference_manager(
    embedding_client: Embeddings,
    repository: SearchRepository,
) -> PreferenceManager:
    return PreferenceManager(embedding_client, repository)


def get_similarity_finder(repository: SearchRepository) -> SimilarityFinder:
    return SimilarityFinder(repository)


def get_backfill_coordinator(
    embedding_client: Embeddings,
    repository: SearchRepository,
) -> BackfillCoordinator:
    """Backfill coordinator using the configured delay and page size."""
    return BackfillCoordinator(
        embedding_client,
        repository,
        delay_seconds=settings.backfill_delay_seconds,
        page_size=settings.backfill_page_size,
    )


def get_setup_checker(repository: SearchRepository) -> SetupChecker:
    return SetupChecker(repository)


Orchestrator = Annotated[SearchOrchestrator, Depends(get_search_orchestrator)]
Preferences = Annotated[PreferenceManager, Depends(get_preference_manager)]
Similarity = Annotated[SimilarityFinder, Depends(get_similarity_finder)]
Backfill = Annotated[BackfillCoordinator, Depends(get_backfill_coordinator)]
Setup = Annotated[SetupChecker, Depends(get_setup_checker)]
