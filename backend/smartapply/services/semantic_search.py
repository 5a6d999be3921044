"""Search orchestration across keyword, semantic and hybrid strategies.

Dispatch is an explicit transition table over
``{keyword, semantic, hybrid} x {primary success, primary failure}``:

    keyword  + success -> keyword results
    keyword  + failure -> empty results
    semantic + success -> semantic results
    semantic + failure -> keyword fallback (same filters)
    hybrid   + success -> hybrid results
    hybrid   + failure -> keyword fallback (same filters)

The primary path is strictly sequential: embed the query, then query the
store. The fallback runs only after the primary path has failed, never in
parallel with it. Apart from an empty semantic/hybrid query (rejected up
front) and cancellation, search never raises.
"""

import logging
from enum import Enum

from smartapply.core.cancellation import CancellationToken, OperationCancelledError
from smartapply.providers.embedding.client import EmbeddingClient
from smartapply.providers.errors import InvalidInputError
from smartapply.repositories.errors import RemoteUnavailableError
from smartapply.services.search_store import SearchStore
from smartapply.services.search_types import (
    SearchMode,
    SearchOutcome,
    SearchQuery,
    SearchResult,
    SearchStrategy,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Transition table
# =============================================================================


class PrimaryOutcome(Enum):
    """Result of running a mode's primary strategy."""

    SUCCESS = "success"
    FAILURE = "failure"


SEARCH_TRANSITIONS: dict[tuple[SearchMode, PrimaryOutcome], SearchStrategy] = {
    (SearchMode.KEYWORD, PrimaryOutcome.SUCCESS): SearchStrategy.KEYWORD,
    (SearchMode.KEYWORD, PrimaryOutcome.FAILURE): SearchStrategy.NONE,
    (SearchMode.SEMANTIC, PrimaryOutcome.SUCCESS): SearchStrategy.SEMANTIC,
    (SearchMode.SEMANTIC, PrimaryOutcome.FAILURE): SearchStrategy.KEYWORD_FALLBACK,
    (SearchMode.HYBRID, PrimaryOutcome.SUCCESS): SearchStrategy.HYBRID,
    (SearchMode.HYBRID, PrimaryOutcome.FAILURE): SearchStrategy.KEYWORD_FALLBACK,
}


def next_strategy(mode: SearchMode, outcome: PrimaryOutcome) -> SearchStrategy:
    """Look up which result set to serve after the primary attempt.

    Args:
        mode: Requested search mode.
        outcome: Whether the mode's primary strategy succeeded.

    Returns:
        Strategy whose results are returned to the caller.
    """
    return SEARCH_TRANSITIONS[(mode, outcome)]


# =============================================================================
# Validation
# =============================================================================


def validate_query(query: SearchQuery) -> None:
    """Reject malformed queries before any network call.

    Raises:
        InvalidInputError: Empty text under semantic/hybrid mode, threshold
            outside [0, 1], or negative limit.
    """
    if query.result_limit < 0:
        raise InvalidInputError("result_limit must be zero or positive")

    threshold = query.similarity_threshold
    if threshold is not None and not 0.0 <= threshold <= 1.0:
        raise InvalidInputError("similarity_threshold must be between 0 and 1")

    if query.mode.needs_embedding and not query.raw_text.strip():
        raise InvalidInputError(
            f"A search query is required for {query.mode.value} search"
        )


# =============================================================================
# Orchestrator
# =============================================================================


class SearchOrchestrator:
    """Route a search to the right store procedure and degrade on failure.

    Args:
        embedding_client: Client used to embed query text.
        store: Remote store exposing the search procedures.
    """

    def __init__(self, embedding_client: EmbeddingClient, store: SearchStore) -> None:
        self._embedding_client = embedding_client
        self._store = store

    async def search(
        self,
        query: SearchQuery,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> SearchOutcome:
        """Run a search.

        Args:
            query: Search request.
            cancel_token: Optional token observed during embedding retries.

        Returns:
            SearchOutcome with at most ``query.result_limit`` results.

        Raises:
            InvalidInputError: For an invalid query (no network call made).
            OperationCancelledError: If the token was cancelled.
        """
        validate_query(query)

        if query.result_limit == 0:
            return SearchOutcome(
                results=[],
                requested_mode=query.mode,
                strategy=SearchStrategy.NONE,
            )

        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        reason: str | None = None
        results: list[SearchResult] = []
        try:
            results = await self._run_primary(query, cancel_token)
            outcome = PrimaryOutcome.SUCCESS
        except OperationCancelledError:
            raise
        except Exception as e:  # noqa: BLE001
            outcome = PrimaryOutcome.FAILURE
            reason = f"{type(e).__name__}: {e}"
            self._log_degradation(query, e)

        strategy = next_strategy(query.mode, outcome)

        if strategy is SearchStrategy.KEYWORD_FALLBACK:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            try:
                results = await self._store.keyword_fallback_search(
                    query.filters,
                    query.result_limit,
                    user_id=query.requester_id,
                )
            except Exception as e:  # noqa: BLE001
                logger.error(
                    "Keyword fallback failed after %s search degraded: %s",
                    query.mode.value,
                    e,
                )
                strategy = SearchStrategy.NONE
                results = []
        elif strategy is SearchStrategy.NONE:
            results = []

        return SearchOutcome(
            results=results[: query.result_limit],
            requested_mode=query.mode,
            strategy=strategy,
            degradation_reason=reason,
        )

    async def _run_primary(
        self,
        query: SearchQuery,
        cancel_token: CancellationToken | None,
    ) -> list[SearchResult]:
        """Run the mode's primary strategy; failures propagate to search()."""
        if query.mode is SearchMode.KEYWORD:
            return await self._store.keyword_fallback_search(
                query.filters,
                query.result_limit,
                user_id=query.requester_id,
            )

        embedding = await self._embedding_client.embed(
            query.raw_text,
            cancel_token=cancel_token,
        )
        # effective_threshold is always set for embedding modes
        threshold = query.effective_threshold or 0.0

        if query.mode is SearchMode.HYBRID:
            results = await self._store.hybrid_search(
                query.raw_text,
                embedding,
                query.filters,
                threshold,
                query.result_limit,
                user_id=query.requester_id,
            )
        else:
            results = await self._store.semantic_search(
                embedding,
                query.filters,
                threshold,
                query.result_limit,
                user_id=query.requester_id,
            )
        return _drop_unscored(results, query.mode)

    @staticmethod
    def _log_degradation(query: SearchQuery, error: Exception) -> None:
        if query.mode is SearchMode.KEYWORD:
            logger.error("Keyword search failed: %s", error)
        elif isinstance(error, RemoteUnavailableError):
            logger.error(
                "Vector search unavailable, serving keyword results for %s search: %s",
                query.mode.value,
                error,
            )
        else:
            logger.warning(
                "%s search degraded to keyword fallback: %s",
                query.mode.value.capitalize(),
                error,
            )


def _drop_unscored(results: list[SearchResult], mode: SearchMode) -> list[SearchResult]:
    """Drop rows from a vector procedure that carry no relevance score."""
    scored = [r for r in results if r.has_relevance_score]
    if len(scored) != len(results):
        logger.warning(
            "Dropped %d %s results without a similarity or combined score",
            len(results) - len(scored),
            mode.value,
        )
    return scored
