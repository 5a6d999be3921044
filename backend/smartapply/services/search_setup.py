"""Check that the remote store has the vector search schema installed."""

import logging

from smartapply.repositories.errors import StoreError
from smartapply.services.search_store import SearchStore
from smartapply.services.search_types import SetupStatus

logger = logging.getLogger(__name__)

_SETUP_HINT = "Apply the semantic search migration to the database."


class SetupChecker:
    """Probe the store for the pieces semantic search depends on.

    Args:
        store: Remote store exposing schema probes.
    """

    def __init__(self, store: SearchStore) -> None:
        self._store = store

    async def check_setup(self) -> SetupStatus:
        """Report whether semantic search can run.

        Returns:
            SetupStatus naming the first missing piece, if any. Never raises
            for store failures.
        """
        try:
            if not await self._store.has_job_embedding_column():
                return SetupStatus(
                    is_setup=False,
                    message="Embedding column does not exist on jobs",
                    details=_SETUP_HINT,
                )
            if not await self._store.has_preference_embedding_column():
                return SetupStatus(
                    is_setup=False,
                    message="Preference embedding column does not exist on user_profiles",
                    details=_SETUP_HINT,
                )
            if not await self._store.has_semantic_search_procedure():
                return SetupStatus(
                    is_setup=False,
                    message="Semantic search functions do not exist",
                    details=_SETUP_HINT,
                )
        except StoreError as e:
            logger.error("Semantic search setup check failed: %s", e)
            return SetupStatus(
                is_setup=False,
                message=str(e),
                details="Error occurred while checking setup",
            )

        return SetupStatus(
            is_setup=True,
            message="Semantic search is properly configured",
        )
