from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.rate_limit import maybe_limit
from app.schemas.log_entry import (
    LogBulkIn,
    LogBulkOut,
    LogCleanupOut,
    LogCreate,
    LogCreatedOut,
    LogDeletedOut,
    LogDetailOut,
    LogListOut,
    LogStatsOut,
    TimelineOut,
)
from app.services.activity import (
    LogFilters,
    bulk_create,
    create_log,
    delete_log,
    delete_older_than,
    get_log,
    log_stats,
    query_logs,
    to_record,
)
from app.services.timeline import build_timeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/logs", tags=["logs"])


def get_log_filters(
    action: Optional[str] = None,
    company: Optional[str] = None,
    username: Optional[str] = None,
    startDate: Optional[str] = None,  # noqa: N803
    endDate: Optional[str] = None,  # noqa: N803
    search: Optional[str] = None,
    days: Optional[int] = None,
    jobId: Optional[int] = None,  # noqa: N803
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> LogFilters:
    # Empty query values ("?company=") behave as if absent.
    return LogFilters(
        action=action or None,
        company=company or None,
        username=username or None,
        start_date=startDate or None,
        end_date=endDate or None,
        search=search or None,
        days=days or None,
        job_id=jobId,
        limit=limit or None,
        offset=offset or None,
    )


def _query_or_400(db: Session, filters: LogFilters):
    try:
        return query_logs(db, filters)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.post("", response_model=LogCreatedOut, status_code=201)
@maybe_limit("30/minute")
def create_log_entry(
    request: Request,
    payload: LogCreate,
    db: Session = Depends(get_db),
):
    if not payload.timestamp or not payload.action or not payload.username:
        raise HTTPException(
            status_code=400,
            detail="Missing required fields: timestamp, action, and username are required",
        )

    try:
        entry = create_log(db, payload.model_dump())
    except ValueError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc))

    db.commit()
    return LogCreatedOut(id=entry.id)


@router.post("/bulk", response_model=LogBulkOut, response_model_exclude_none=True)
def bulk_create_logs(payload: LogBulkIn, db: Session = Depends(get_db)):
    if not isinstance(payload.logs, list):
        raise HTTPException(status_code=400, detail="logs must be an array")

    imported, errors = bulk_create(db, payload.logs)
    db.commit()
    return LogBulkOut(imported=imported, total=len(payload.logs), errors=errors or None)


@router.get("", response_model=LogListOut)
def list_logs(
    filters: LogFilters = Depends(get_log_filters),
    db: Session = Depends(get_db),
):
    data = [to_record(e).to_dict() for e in _query_or_400(db, filters)]
    return {"success": True, "count": len(data), "data": data}


@router.get("/stats", response_model=LogStatsOut)
def get_log_stats(db: Session = Depends(get_db)):
    return {"success": True, "data": log_stats(db)}


@router.get("/timeline", response_model=TimelineOut)
def get_timeline(
    filters: LogFilters = Depends(get_log_filters),
    db: Session = Depends(get_db),
):
    records = [to_record(e) for e in _query_or_400(db, filters)]
    return build_timeline(records)


@router.get("/{log_id}", response_model=LogDetailOut)
def get_log_by_id(log_id: int, db: Session = Depends(get_db)):
    entry = get_log(db, log_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Log not found")
    return {"success": True, "data": to_record(entry).to_dict()}


@router.delete("/cleanup/{days}", response_model=LogCleanupOut)
def cleanup_old_logs(days: int, db: Session = Depends(get_db)):
    if days < 0:
        raise HTTPException(status_code=400, detail="days must be non-negative")
    try:
        deleted = delete_older_than(db, days)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    db.commit()
    logger.info("Deleted %d log entries older than %d days", deleted, days)
    return LogCleanupOut(deleted=deleted, message=f"Deleted {deleted} log entries older than {days} days")


@router.delete("/{log_id}", response_model=LogDeletedOut)
def delete_log_by_id(log_id: int, db: Session = Depends(get_db)):
    if not delete_log(db, log_id):
        raise HTTPException(status_code=404, detail="Log not found")
    db.commit()
    return LogDeletedOut(message="Log deleted successfully")
