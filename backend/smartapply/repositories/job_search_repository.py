"""Repository for job search stored procedures.

Implements the SearchStore protocol over an async SQLAlchemy session.
Vector search, hybrid scoring and nearest-neighbour lookup run inside
Postgres functions (pgvector); this class only binds parameters, maps rows
and translates driver errors into the store error taxonomy.

Any failed statement is rolled back before the error is re-raised, so the
same session stays usable for a fallback query.
"""

import logging
import uuid
from collections.abc import Callable, Iterable, Mapping
from typing import Any, TypeVar

from pgvector.sqlalchemy import Vector
from sqlalchemy import bindparam, text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from smartapply.providers.embedding.base import Embedding
from smartapply.repositories.errors import (
    AlreadyExistsError,
    NotFoundError,
    PreferenceMissingError,
    ProfileMissingError,
    RemoteUnavailableError,
    StoreError,
)
from smartapply.services.search_types import (
    JobEmbeddingCandidate,
    PreferenceProfile,
    SearchFilters,
    SearchResult,
    SimilarJob,
)

logger = logging.getLogger(__name__)

_T = TypeVar("_T")

# =============================================================================
# Error classification
# =============================================================================

# Postgres SQLSTATE codes
_UNDEFINED_FUNCTION = "42883"
_UNDEFINED_COLUMN = "42703"
_UNDEFINED_TABLE = "42P01"
_UNIQUE_VIOLATION = "23505"
_INVALID_TEXT_REPRESENTATION = "22P02"

_SCHEMA_MISSING_CODES = frozenset(
    {_UNDEFINED_FUNCTION, _UNDEFINED_COLUMN, _UNDEFINED_TABLE}
)

# Connection-level failures that reach us unwrapped: refused connection,
# connect timeout, closed pool. Checked after DBAPIError.
_CONNECTION_ERRORS = (OSError, TimeoutError, SQLAlchemyError)


def _sqlstate(error: DBAPIError) -> str | None:
    """Extract the SQLSTATE code from a wrapped driver exception."""
    orig = error.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _classify_db_error(error: DBAPIError) -> StoreError:
    """Map a driver error to the store error taxonomy.

    Returns a StoreError subclass instance (does not raise).

    Args:
        error: SQLAlchemy-wrapped DBAPI error.

    Returns:
        The matching StoreError subclass instance.
    """
    code = _sqlstate(error)
    message = str(error.orig) if error.orig is not None else str(error)
    lowered = message.lower()

    if code in _SCHEMA_MISSING_CODES or (
        "does not exist" in lowered
        and any(word in lowered for word in ("function", "column", "relation"))
    ):
        return RemoteUnavailableError(message)
    if "preference embedding not found" in lowered:
        return PreferenceMissingError(message)
    if "profile not found" in lowered:
        return ProfileMissingError(message)
    if code == _UNIQUE_VIOLATION or "already exists" in lowered:
        return AlreadyExistsError(message)
    return StoreError(message)


# =============================================================================
# Row mapping
# =============================================================================


def _opt_float(value: Any) -> float | None:
    return None if value is None else float(value)


def _to_search_result(row: Mapping[str, Any]) -> SearchResult:
    """Build a SearchResult from a procedure row.

    Accepts the column spellings used by the search procedures
    (``id``/``job_id``, ``company``/``company_name``,
    ``similarity``/``semantic_similarity``).
    """
    job_id = row.get("id", row.get("job_id"))
    breakdown = row.get("match_breakdown")
    return SearchResult(
        job_id=str(job_id),
        title=row.get("title") or "",
        company=row.get("company", row.get("company_name")),
        location=row.get("location"),
        employment_type=row.get("employment_type"),
        experience_level=row.get("experience_level"),
        industry=row.get("industry"),
        salary_min=_opt_float(row.get("salary_min")),
        salary_max=_opt_float(row.get("salary_max")),
        semantic_similarity=_opt_float(
            row.get("similarity", row.get("semantic_similarity"))
        ),
        combined_score=_opt_float(row.get("combined_score")),
        match_breakdown=(
            {str(k): float(v) for k, v in breakdown.items()} if breakdown else None
        ),
    )


def _to_similar_job(row: Mapping[str, Any]) -> SimilarJob:
    return SimilarJob(
        job_id=str(row.get("id", row.get("job_id"))),
        title=row.get("title") or "",
        company=row.get("company", row.get("company_name")),
        similarity=float(row.get("similarity") or 0.0),
    )


def _to_candidate(row: Mapping[str, Any]) -> JobEmbeddingCandidate:
    return JobEmbeddingCandidate(
        job_id=str(row["id"]),
        title=row["title"] or "",
        description=row["description"] or "",
        skills=tuple(
            _skill_names(row["required_skills"])
            + _skill_names(row["nice_to_have_skills"])
        ),
    )


def _map_rows(
    rows: Iterable[Mapping[str, Any]],
    mapper: Callable[[Mapping[str, Any]], _T],
) -> list[_T]:
    """Map procedure rows, skipping any row with malformed values.

    A bad row (non-numeric score, missing column) is logged and dropped so
    the rest of the page is still served.
    """
    mapped: list[_T] = []
    for row in rows:
        try:
            mapped.append(mapper(row))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(
                "Skipping malformed row for job %s: %s",
                row.get("id", row.get("job_id")),
                e,
            )
    return mapped


def _skill_names(skills: Any) -> list[str]:
    """Extract skill names from a JSON skills array.

    Entries are either plain strings or objects with a ``name`` key.
    """
    names: list[str] = []
    for skill in skills or []:
        if isinstance(skill, Mapping):
            name = skill.get("name")
        else:
            name = skill
        if name:
            names.append(str(name))
    return names


def _vector_param(name: str) -> Any:
    return bindparam(name, type_=Vector())


# =============================================================================
# SQL
# =============================================================================

_FILTER_ARGS = (
    "filter_experience_level => :filter_experience_level, "
    "filter_employment_type => :filter_employment_type, "
    "filter_industry => :filter_industry, "
    "filter_location => :filter_location"
)

_SEMANTIC_SEARCH_SQL = text(
    "SELECT * FROM semantic_job_search("
    "query_embedding => :query_embedding, "
    "user_id_param => :user_id, "
    "match_threshold => :match_threshold, "
    "match_count => :match_count, " + _FILTER_ARGS + ")"
).bindparams(_vector_param("query_embedding"))

_HYBRID_SEARCH_SQL = text(
    "SELECT * FROM hybrid_job_search("
    "search_query => :search_query, "
    "query_embedding => :query_embedding, "
    "user_id_param => :user_id, "
    "match_threshold => :match_threshold, "
    "match_count => :match_count, " + _FILTER_ARGS + ")"
).bindparams(_vector_param("query_embedding"))

_FALLBACK_SEARCH_SQL = text(
    "SELECT * FROM fallback_job_search("
    "user_id_param => :user_id, "
    "match_count => :match_count, " + _FILTER_ARGS + ")"
)

_JOB_EMBEDDING_STATE_SQL = text(
    "SELECT embedding IS NOT NULL AS has_embedding FROM jobs WHERE id = :job_id"
)

_FIND_SIMILAR_SQL = text(
    "SELECT * FROM find_similar_jobs("
    "job_id_param => :job_id, "
    "similarity_threshold => :similarity_threshold, "
    "limit_count => :limit_count)"
)

_RECOMMENDATIONS_SQL = text(
    "SELECT * FROM get_personalized_recommendations("
    "user_id_param => :user_id, "
    "recommendation_count => :recommendation_count)"
)

_UPSERT_PREFERENCE_SQL = text(
    "SELECT update_user_preference_embedding("
    "user_id_param => :user_id, "
    "preference_text_param => :preference_text, "
    "preference_embedding_param => :preference_embedding)"
).bindparams(_vector_param("preference_embedding"))

_INITIALIZE_PREFERENCES_SQL = text(
    "SELECT initialize_user_preferences(user_id_param => :user_id) "
    "AS preference_text"
)

_CREATE_PROFILE_SQL = text(
    "SELECT create_default_user_profile(user_id_param => :user_id)"
)

_GET_PREFERENCE_PROFILE_SQL = text(
    "SELECT user_id, preference_text, preference_embedding, "
    "preference_updated_at FROM user_profiles WHERE user_id = :user_id"
).columns(preference_embedding=Vector())

_MISSING_EMBEDDINGS_SQL = text(
    "SELECT id, title, description, required_skills, nice_to_have_skills "
    "FROM jobs "
    "WHERE embedding IS NULL AND is_active = true "
    "AND (CAST(:after AS text) IS NULL OR id::text > CAST(:after AS text)) "
    "ORDER BY id::text "
    "LIMIT :page_size"
)

_WRITE_JOB_EMBEDDING_SQL = text(
    "UPDATE jobs SET embedding = :embedding, embedding_updated_at = now() "
    "WHERE id = :job_id"
).bindparams(_vector_param("embedding"))

_COLUMN_EXISTS_SQL = text(
    "SELECT EXISTS (SELECT 1 FROM information_schema.columns "
    "WHERE table_name = :table_name AND column_name = :column_name)"
)

_FUNCTION_EXISTS_SQL = text(
    "SELECT EXISTS (SELECT 1 FROM pg_proc WHERE proname = :function_name)"
)


# =============================================================================
# Repository
# =============================================================================


class JobSearchRepository:
    """Remote store client for the job search services.

    Args:
        db: Async session. Write methods commit their own single-statement
            transaction so that backfill progress survives later failures.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def _execute(self, statement: Any, params: dict[str, Any]) -> Any:
        """Execute a statement, rolling back and classifying on failure.

        Raises:
            StoreError: Classified driver failure.
        """
        try:
            return await self._db.execute(statement, params)
        except DBAPIError as e:
            await self._db.rollback()
            error = _classify_db_error(e)
            if isinstance(error, RemoteUnavailableError):
                logger.error("Search schema missing in remote store: %s", error)
            raise error from e
        except _CONNECTION_ERRORS as e:
            await self._discard()
            logger.error("Remote store unreachable: %s", e)
            raise StoreError(f"{type(e).__name__}: {e}") from e

    async def _commit(self) -> None:
        """Commit the current transaction, classifying failures like _execute.

        Raises:
            StoreError: Classified driver or connection failure.
        """
        try:
            await self._db.commit()
        except DBAPIError as e:
            await self._discard()
            raise _classify_db_error(e) from e
        except _CONNECTION_ERRORS as e:
            await self._discard()
            logger.error("Remote store unreachable on commit: %s", e)
            raise StoreError(f"{type(e).__name__}: {e}") from e

    async def _discard(self) -> None:
        """Roll back after a failure; the connection itself may be gone."""
        try:
            await self._db.rollback()
        except _CONNECTION_ERRORS as e:
            logger.warning("Rollback after store failure also failed: %s", e)

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
        """Vector similarity search with facet filters."""
        result = await self._execute(
            _SEMANTIC_SEARCH_SQL,
            {
                "query_embedding": list(embedding),
                "user_id": user_id,
                "match_threshold": threshold,
                "match_count": limit,
                **filters.as_params(),
            },
        )
        return _map_rows(result.mappings().all(), _to_search_result)

    async def hybrid_search(
        self,
        query_text: str,
        embedding: Embedding,
        filters: SearchFilters,
        threshold: float,
        limit: int,
        user_id: uuid.UUID | None = None,
    ) -> list[SearchResult]:
        """Blended lexical and vector search with facet filters."""
        result = await self._execute(
            _HYBRID_SEARCH_SQL,
            {
                "search_query": query_text,
                "query_embedding": list(embedding),
                "user_id": user_id,
                "match_threshold": threshold,
                "match_count": limit,
                **filters.as_params(),
            },
        )
        return _map_rows(result.mappings().all(), _to_search_result)

    async def keyword_fallback_search(
        self,
        filters: SearchFilters,
        limit: int,
        user_id: uuid.UUID | None = None,
    ) -> list[SearchResult]:
        """Filter-only search ordered by the store's default relevance."""
        result = await self._execute(
            _FALLBACK_SEARCH_SQL,
            {"user_id": user_id, "match_count": limit, **filters.as_params()},
        )
        return _map_rows(result.mappings().all(), _to_search_result)

    async def nearest_neighbors(
        self,
        job_id: str,
        threshold: float,
        limit: int,
    ) -> list[SimilarJob]:
        """Jobs most similar to an embedded job.

        Raises:
            NotFoundError: If the job does not exist or has no embedding.
        """
        try:
            state = await self._execute(_JOB_EMBEDDING_STATE_SQL, {"job_id": job_id})
        except StoreError as e:
            # A malformed id cannot match any job
            cause = e.__cause__
            if (
                isinstance(cause, DBAPIError)
                and _sqlstate(cause) == _INVALID_TEXT_REPRESENTATION
            ):
                raise NotFoundError("Embedded job", job_id) from e
            raise

        has_embedding = state.scalar_one_or_none()
        if not has_embedding:
            raise NotFoundError("Embedded job", job_id)

        result = await self._execute(
            _FIND_SIMILAR_SQL,
            {
                "job_id": job_id,
                "similarity_threshold": threshold,
                "limit_count": limit,
            },
        )
        return _map_rows(result.mappings().all(), _to_similar_job)

    async def personalized_recommendations(
        self,
        user_id: uuid.UUID,
        limit: int,
    ) -> list[SearchResult]:
        """Jobs ranked against the user's preference embedding.

        Raises:
            PreferenceMissingError: If the user has no preference embedding.
        """
        result = await self._execute(
            _RECOMMENDATIONS_SQL,
            {"user_id": user_id, "recommendation_count": limit},
        )
        return _map_rows(result.mappings().all(), _to_search_result)

    # -------------------------------------------------------------------------
    # Preferences
    # -------------------------------------------------------------------------

    async def upsert_preference_embedding(
        self,
        user_id: uuid.UUID,
        preference_text: str,
        embedding: Embedding,
    ) -> None:
        """Write preference text and embedding in one statement."""
        await self._execute(
            _UPSERT_PREFERENCE_SQL,
            {
                "user_id": user_id,
                "preference_text": preference_text,
                "preference_embedding": list(embedding),
            },
        )
        await self._commit()

    async def initialize_default_preferences(self, user_id: uuid.UUID) -> str:
        """Derive default preference text from the stored profile.

        Raises:
            ProfileMissingError: If the user has no profile row.
        """
        result = await self._execute(_INITIALIZE_PREFERENCES_SQL, {"user_id": user_id})
        preference_text = result.scalar_one_or_none()
        await self._commit()
        if preference_text is None:
            raise ProfileMissingError(f"profile not found for user {user_id}")
        return str(preference_text)

    async def create_default_profile(self, user_id: uuid.UUID) -> None:
        """Create a profile row with placeholder defaults.

        Raises:
            AlreadyExistsError: If a concurrent request created it first.
        """
        await self._execute(_CREATE_PROFILE_SQL, {"user_id": user_id})
        await self._commit()

    async def get_preference_profile(
        self,
        user_id: uuid.UUID,
    ) -> PreferenceProfile | None:
        """Read the stored preference profile, if any."""
        result = await self._execute(_GET_PREFERENCE_PROFILE_SQL, {"user_id": user_id})
        row = result.mappings().one_or_none()
        if row is None:
            return None
        embedding = row["preference_embedding"]
        return PreferenceProfile(
            owner_id=user_id,
            preference_text=row["preference_text"],
            preference_embedding=(
                tuple(float(v) for v in embedding) if embedding is not None else None
            ),
            last_updated=row["preference_updated_at"],
        )

    # -------------------------------------------------------------------------
    # Backfill
    # -------------------------------------------------------------------------

    async def jobs_missing_embedding(
        self,
        page_size: int,
        after: str | None = None,
    ) -> list[JobEmbeddingCandidate]:
        """One page of active jobs without an embedding, ordered by id."""
        result = await self._execute(
            _MISSING_EMBEDDINGS_SQL,
            {"page_size": page_size, "after": after},
        )
        return _map_rows(result.mappings().all(), _to_candidate)

    async def write_job_embedding(self, job_id: str, embedding: Embedding) -> None:
        """Store a job's embedding.

        Raises:
            NotFoundError: If no job row was updated.
        """
        result = await self._execute(
            _WRITE_JOB_EMBEDDING_SQL,
            {"job_id": job_id, "embedding": list(embedding)},
        )
        if result.rowcount == 0:
            await self._db.rollback()
            raise NotFoundError("Job", job_id)
        await self._commit()

    # -------------------------------------------------------------------------
    # Schema probes
    # -------------------------------------------------------------------------

    async def _column_exists(self, table_name: str, column_name: str) -> bool:
        result = await self._execute(
            _COLUMN_EXISTS_SQL,
            {"table_name": table_name, "column_name": column_name},
        )
        return bool(result.scalar_one())

    async def has_job_embedding_column(self) -> bool:
        """Whether jobs.embedding exists."""
        return await self._column_exists("jobs", "embedding")

    async def has_preference_embedding_column(self) -> bool:
        """Whether user_profiles.preference_embedding exists."""
        return await self._column_exists("user_profiles", "preference_embedding")

    async def has_semantic_search_procedure(self) -> bool:
        """Whether the semantic_job_search function is installed."""
        result = await self._execute(
            _FUNCTION_EXISTS_SQL, {"function_name": "semantic_job_search"}
        )
        return bool(result.scalar_one())
