"""User preference embeddings and personalized recommendations.

PreferenceManager is the only writer of a user's preference embedding.
Updates are all-or-nothing: the text is embedded first and written with a
single upsert only if embedding succeeded, so a failure never leaves a
profile with new text and a stale (or missing) vector.
"""

import logging
import uuid

from smartapply.core.cancellation import CancellationToken
from smartapply.providers.embedding.client import EmbeddingClient
from smartapply.providers.errors import ProviderError
from smartapply.repositories.errors import (
    AlreadyExistsError,
    PreferenceMissingError,
    ProfileMissingError,
    RemoteUnavailableError,
)
from smartapply.services.search_store import SearchStore
from smartapply.services.search_types import (
    DEFAULT_RECOMMENDATION_LIMIT,
    SearchFilters,
    SearchResult,
)

logger = logging.getLogger(__name__)


class PreferenceManager:
    """Create, update and use a user's preference profile.

    Args:
        embedding_client: Client used to embed preference text.
        store: Remote store holding user profiles.
    """

    def __init__(self, embedding_client: EmbeddingClient, store: SearchStore) -> None:
        self._embedding_client = embedding_client
        self._store = store

    async def update(
        self,
        user_id: uuid.UUID,
        preference_text: str,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> bool:
        """Embed preference text and store it with its embedding.

        Args:
            user_id: Profile owner.
            preference_text: New preference text.
            cancel_token: Optional token observed during embedding retries.

        Returns:
            True if the profile was updated, False if nothing was written.
        """
        if not preference_text or not preference_text.strip():
            logger.warning("Ignoring empty preference text for user %s", user_id)
            return False

        try:
            embedding = await self._embedding_client.embed(
                preference_text,
                cancel_token=cancel_token,
            )
        except ProviderError as e:
            logger.warning(
                "Preference update for user %s failed, profile unchanged: %s",
                user_id,
                e,
            )
            return False

        try:
            await self._store.upsert_preference_embedding(
                user_id, preference_text, embedding
            )
        except Exception as e:  # noqa: BLE001
            logger.error("Could not store preference embedding for %s: %s", user_id, e)
            return False

        logger.info("Updated preference embedding for user %s", user_id)
        return True

    async def ensure_initialized(
        self,
        user_id: uuid.UUID,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> bool:
        """Create a default preference profile if the user has none.

        Idempotent: returns immediately when an embedding is already stored.
        Tolerates a concurrent request creating the profile first.

        Args:
            user_id: Profile owner.
            cancel_token: Optional token observed during embedding retries.

        Returns:
            True if the user ends up with a preference embedding.
        """
        try:
            profile = await self._store.get_preference_profile(user_id)
            if profile is not None and profile.has_embedding:
                return True
            preference_text = await self._default_preference_text(user_id)
        except Exception as e:  # noqa: BLE001
            logger.error("Could not initialize preferences for %s: %s", user_id, e)
            return False

        logger.info("Initialized default preference text for user %s", user_id)
        return await self.update(user_id, preference_text, cancel_token=cancel_token)

    async def _default_preference_text(self, user_id: uuid.UUID) -> str:
        """Ask the store for preference text derived from the user's profile.

        If the profile is missing entirely, create one with placeholder
        defaults first. "Already exists" from a racing request is success.
        """
        try:
            return await self._store.initialize_default_preferences(user_id)
        except ProfileMissingError:
            logger.info("No profile for user %s, creating defaults", user_id)
            try:
                await self._store.create_default_profile(user_id)
            except AlreadyExistsError:
                logger.info("Profile for user %s was created concurrently", user_id)
        except AlreadyExistsError:
            logger.info("Preferences for user %s were initialized concurrently", user_id)

        return await self._store.initialize_default_preferences(user_id)

    async def get_recommendations(
        self,
        user_id: uuid.UUID,
        limit: int = DEFAULT_RECOMMENDATION_LIMIT,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> list[SearchResult]:
        """Jobs ranked against the user's preference embedding.

        A missing preference embedding is created on first request and the
        recommendation retried once. Any other failure serves the keyword
        fallback instead. Never raises for store or provider failures.

        Args:
            user_id: User to recommend jobs for.
            limit: Maximum number of results.
            cancel_token: Optional token observed during initialization.

        Returns:
            Recommended jobs, best first (possibly empty).
        """
        if limit <= 0:
            return []

        try:
            return await self._store.personalized_recommendations(user_id, limit)
        except PreferenceMissingError:
            logger.info("No preference embedding for user %s, initializing", user_id)
            if await self.ensure_initialized(user_id, cancel_token=cancel_token):
                try:
                    return await self._store.personalized_recommendations(
                        user_id, limit
                    )
                except Exception as e:  # noqa: BLE001
                    logger.warning("Recommendations failed after init: %s", e)
        except RemoteUnavailableError as e:
            logger.error("Recommendations unavailable, using fallback: %s", e)
        except Exception as e:  # noqa: BLE001
            logger.warning("Recommendations failed, using fallback: %s", e)

        try:
            return await self._store.keyword_fallback_search(
                SearchFilters(), limit, user_id=user_id
            )
        except Exception as e:  # noqa: BLE001
            logger.error("Recommendation fallback failed for %s: %s", user_id, e)
            return []
