# backend/portfolio_tracker/routers/snapshots.py
"""
Snapshot trigger endpoint.

Meant to be called by an external scheduler (cron, uptime pinger) every
15 minutes. GET is accepted as well as POST because simple schedulers can
only issue GETs. The shared secret is passed as the `secret` query
parameter and compared to SNAPSHOT_SECRET.
"""

import logging
import secrets
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from portfolio_tracker.config import settings
from portfolio_tracker.database import get_db
from portfolio_tracker.dependencies import get_snapshot_service
from portfolio_tracker.middleware.rate_limit import limiter, RATE_LIMIT_SNAPSHOT
from portfolio_tracker.schemas.snapshots import SnapshotSummary, SnapshotTriggerResponse
from portfolio_tracker.services.snapshot_service import SnapshotService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/snapshots",
    tags=["Snapshots"],
)


def require_snapshot_secret(
        secret: str = Query(default="", description="Shared snapshot secret"),
) -> None:
    """
    Reject the request unless `secret` matches SNAPSHOT_SECRET.

    Raises:
        HTTPException: 401 on a missing or wrong secret
    """
    if not secrets.compare_digest(secret.encode(), settings.snapshot_secret.encode()):
        logger.warning("Rejected snapshot trigger with invalid secret")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid snapshot secret",
        )


@router.api_route(
    "/",
    methods=["GET", "POST"],
    response_model=SnapshotTriggerResponse,
    summary="Capture a portfolio snapshot",
    dependencies=[Depends(require_snapshot_secret)],
)
@limiter.limit(RATE_LIMIT_SNAPSHOT)
def trigger_snapshot(
        request: Request,  # Required for rate limiting
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[SnapshotService, Depends(get_snapshot_service)],
) -> SnapshotTriggerResponse:
    """
    Value the portfolio and store the snapshot of the current 15-minute
    bucket. Calling again within the same bucket overwrites it.
    """
    snapshot = service.capture_snapshot(db)
    return SnapshotTriggerResponse(
        success=True,
        snapshot=SnapshotSummary(
            date=snapshot.date,
            portfolio_value=snapshot.total_value,
            invested=snapshot.total_invested,
        ),
    )
