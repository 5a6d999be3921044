"""Admin API router.

Endpoints:
- /admin/embeddings/backfill - Embed one page of jobs missing embeddings
- /admin/semantic-search/setup - Check the vector search schema

The backfill runs inside the request. With the default 25s spacing a full
page takes several minutes, so callers should use a generous timeout.
"""

import structlog
from fastapi import APIRouter

from smartapply.api.deps import Backfill, CurrentUserId, Setup
from smartapply.core.responses import DataResponse
from smartapply.schemas.search import (
    BackfillProgressSchema,
    BackfillRequest,
    SetupStatusSchema,
)

logger = structlog.get_logger()

router = APIRouter()


@router.post("/embeddings/backfill")
async def run_embedding_backfill(
    user_id: CurrentUserId,
    coordinator: Backfill,
    body: BackfillRequest | None = None,
) -> DataResponse[BackfillProgressSchema]:
    """Embed active jobs that have no embedding yet.

    Pass the returned ``cursor`` back to continue with the next page.
    """
    cursor = body.cursor if body is not None else None
    logger.info("embedding_backfill_requested", user_id=str(user_id), cursor=cursor)
    progress = await coordinator.run_backfill(cursor=cursor)
    return DataResponse(data=BackfillProgressSchema.from_progress(progress))


@router.get("/semantic-search/setup")
async def get_semantic_search_setup(
    _user_id: CurrentUserId,
    checker: Setup,
) -> DataResponse[SetupStatusSchema]:
    """Report whether the vector search schema is installed."""
    status = await checker.check_setup()
    return DataResponse(data=SetupStatusSchema.from_status(status))
