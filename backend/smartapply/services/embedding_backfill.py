"""Backfill embeddings for active jobs that have none.

The embedding provider enforces a requests-per-minute ceiling shared with
everything else using the same key. A run therefore embeds one job at a
time, in store order, with a fixed delay between consecutive jobs, and
covers a single bounded page. Continuing requires a fresh run, which can
resume from ``BackfillProgress.cursor``.

Per-job failures are recorded and the run moves on. A run never raises;
even a failure to fetch the candidate page is reported on the progress.
"""

import logging
from collections.abc import Callable

from smartapply.core.cancellation import (
    CancellationToken,
    OperationCancelledError,
    cancellable_sleep,
)
from smartapply.providers.embedding.client import EmbeddingClient
from smartapply.repositories.errors import RemoteUnavailableError
from smartapply.services.search_store import SearchStore
from smartapply.services.search_types import (
    BackfillFailure,
    BackfillProgress,
    JobEmbeddingCandidate,
)

logger = logging.getLogger(__name__)

# Free-tier embedding keys allow roughly three requests per minute
DEFAULT_DELAY_SECONDS = 25.0
DEFAULT_PAGE_SIZE = 10


class BackfillCoordinator:
    """Sequentially embed jobs that are missing an embedding.

    Args:
        embedding_client: Client used to embed job text.
        store: Remote store listing candidates and storing embeddings.
        delay_seconds: Wait between consecutive candidates.
        page_size: Maximum candidates per run.
        on_progress: Optional callback invoked after each candidate.
    """

    def __init__(
        self,
        embedding_client: EmbeddingClient,
        store: SearchStore,
        *,
        delay_seconds: float = DEFAULT_DELAY_SECONDS,
        page_size: int = DEFAULT_PAGE_SIZE,
        on_progress: Callable[[BackfillProgress], None] | None = None,
    ) -> None:
        if delay_seconds < 0:
            raise ValueError("delay_seconds must be zero or positive")
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self._embedding_client = embedding_client
        self._store = store
        self._delay_seconds = delay_seconds
        self._page_size = page_size
        self._on_progress = on_progress

    async def embed_job(
        self,
        candidate: JobEmbeddingCandidate,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        """Embed one job and write the vector back.

        Args:
            candidate: Job to embed.
            cancel_token: Optional token observed during embedding retries.

        Raises:
            ProviderError: If embedding failed after retries.
            StoreError: If the write failed.
            OperationCancelledError: If the token was cancelled.
        """
        text = candidate.embedding_text()
        logger.debug(
            "Embedding job %s (%d characters)", candidate.job_id, len(text)
        )
        embedding = await self._embedding_client.embed(text, cancel_token=cancel_token)
        await self._store.write_job_embedding(candidate.job_id, embedding)

    async def run_backfill(
        self,
        *,
        cancel_token: CancellationToken | None = None,
        cursor: str | None = None,
    ) -> BackfillProgress:
        """Embed one page of jobs that lack embeddings.

        Args:
            cancel_token: Optional token checked before each candidate and
                observed during the inter-request delay.
            cursor: Job id to resume after, from a previous run's progress.

        Returns:
            BackfillProgress for this run.
        """
        progress = BackfillProgress(cursor=cursor)

        try:
            candidates = await self._store.jobs_missing_embedding(
                self._page_size, after=cursor
            )
        except Exception as e:  # noqa: BLE001
            if isinstance(e, RemoteUnavailableError):
                logger.error("Embedding schema missing, backfill aborted: %s", e)
            else:
                logger.error("Could not list jobs missing embeddings: %s", e)
            progress.error = str(e)
            return progress

        progress.total_candidates = len(candidates)
        if not candidates:
            logger.info("No active jobs need embedding generation")
            return progress

        logger.info("Backfilling embeddings for %d jobs", len(candidates))

        try:
            for index, candidate in enumerate(candidates):
                if index > 0:
                    await cancellable_sleep(self._delay_seconds, cancel_token)
                elif cancel_token is not None:
                    cancel_token.raise_if_cancelled()

                await self._process(candidate, progress, cancel_token)
                progress.cursor = candidate.job_id
                if self._on_progress is not None:
                    self._on_progress(progress)
        except OperationCancelledError:
            progress.cancelled = True
            logger.info("Backfill cancelled at cursor %s", progress.cursor)

        logger.info(
            "Backfill finished: %d/%d processed, %d failed",
            progress.processed,
            progress.total_candidates,
            progress.failed,
        )
        return progress

    async def _process(
        self,
        candidate: JobEmbeddingCandidate,
        progress: BackfillProgress,
        cancel_token: CancellationToken | None,
    ) -> None:
        try:
            await self.embed_job(candidate, cancel_token=cancel_token)
        except OperationCancelledError:
            raise
        except Exception as e:  # noqa: BLE001
            reason = f"{type(e).__name__}: {e}"
            progress.failures.append(
                BackfillFailure(job_id=candidate.job_id, reason=reason)
            )
            logger.warning("Failed to embed job %s: %s", candidate.job_id, reason)
        else:
            progress.processed += 1
            logger.info("Stored embedding for job %s", candidate.job_id)
