from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping, Optional

from sqlalchemy import desc, func, or_
from sqlalchemy.orm import Session, joinedload

from app.models.job_application import JobApplication
from app.models.log_entry import LogEntry
from app.models.user import User
from app.services.records import LogRecord, parse_timestamp

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


def _utc(dt: datetime) -> datetime:
    # SQLite drops tzinfo on write, so everything is stored (and compared) as UTC.
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def days_cutoff(days: int, now: Optional[datetime] = None) -> datetime:
    """Start of the `days` window ending at `now`. Raises ValueError when the window is out of range."""
    try:
        return _utc((now or datetime.now(timezone.utc)) - timedelta(days=int(days)))
    except (OverflowError, ValueError) as exc:
        raise ValueError(f"Invalid days value: {days}") from exc


def _date_bound(value: str, name: str) -> datetime:
    try:
        return _utc(parse_timestamp(value))
    except (OverflowError, ValueError) as exc:
        raise ValueError(f"Invalid {name}: {value}") from exc


@dataclass
class LogFilters:
    action: Optional[str] = None
    company: Optional[str] = None
    username: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    search: Optional[str] = None
    days: Optional[int] = None
    job_id: Optional[int] = None
    user_id: Optional[int] = None
    limit: Optional[int] = None
    offset: Optional[int] = None


def ensure_user(db: Session, username: str) -> User:
    name = (username or "").strip()
    user = db.query(User).filter(User.username == name).first()
    if user:
        return user
    user = User(username=name, password_hash=None, is_active=True)
    db.add(user)
    db.flush()
    return user


def _linked_job_id(db: Session, raw_job_id: Any, user_id: int) -> Optional[int]:
    """Only link to jobs the user owns; browser-local ids (epoch millis) stay unlinked."""
    if raw_job_id is None or raw_job_id == "":
        return None
    try:
        job_id = int(raw_job_id)
    except (TypeError, ValueError):
        return None
    job = (
        db.query(JobApplication.id)
        .filter(JobApplication.id == job_id, JobApplication.user_id == user_id)
        .first()
    )
    return job_id if job else None


def create_log(db: Session, payload: Mapping[str, Any]) -> LogEntry:
    """
    Persist one log entry from an API payload (snake_case keys).

    Raises ValueError for an unparseable timestamp; the caller decides how to report it.
    """
    raw_ts = payload.get("timestamp")
    created_at = parse_timestamp(raw_ts) if raw_ts not in (None, "") else datetime.now(timezone.utc)
    metadata = payload.get("metadata")
    user = ensure_user(db, str(payload.get("username") or ""))

    entry = LogEntry(
        job_id=_linked_job_id(db, payload.get("job_id"), user.id),
        user_id=user.id,
        action=str(payload.get("action")),
        details=payload.get("details") or None,
        meta=dict(metadata) if metadata else None,
        company_snapshot=payload.get("company") or None,
        job_title_snapshot=payload.get("job_title") or None,
        hiring_manager_snapshot=payload.get("hiring_manager") or None,
        created_at=_utc(created_at),
    )
    db.add(entry)
    # Let caller decide commit timing; flush so `id` can be used.
    db.flush()
    return entry


def log_job_activity(
    db: Session,
    *,
    job: JobApplication,
    user: User,
    action: str,
    details: str,
    metadata: Optional[Dict[str, Any]] = None,
    link_job: bool = True,
) -> LogEntry:
    entry = LogEntry(
        job_id=job.id if link_job else None,
        user_id=user.id,
        action=action,
        details=details,
        meta=metadata,
        company_snapshot=job.company,
        job_title_snapshot=job.position,
        hiring_manager_snapshot=job.hiring_manager or None,
        created_at=datetime.now(timezone.utc),
    )
    db.add(entry)
    db.flush()
    return entry


def _base_query(db: Session):
    return (
        db.query(LogEntry)
        .join(User, User.id == LogEntry.user_id)
        .outerjoin(JobApplication, JobApplication.id == LogEntry.job_id)
        .options(joinedload(LogEntry.user), joinedload(LogEntry.job))
    )


def query_logs(db: Session, filters: LogFilters, now: Optional[datetime] = None) -> list[LogEntry]:
    """
    Newest-first. Filters combine with AND; company/search are case-insensitive substrings.

    Raises ValueError for an unparseable date bound or an out-of-range `days` window.
    """
    qry = _base_query(db)
    company_col = func.coalesce(JobApplication.company, LogEntry.company_snapshot)
    title_col = func.coalesce(JobApplication.position, LogEntry.job_title_snapshot)

    if filters.user_id is not None:
        qry = qry.filter(LogEntry.user_id == filters.user_id)
    if filters.action:
        qry = qry.filter(LogEntry.action == filters.action)
    if filters.company:
        qry = qry.filter(company_col.ilike(f"%{filters.company}%"))
    if filters.username:
        qry = qry.filter(User.username == filters.username)
    if filters.start_date and filters.end_date:
        start = _date_bound(filters.start_date, "startDate")
        end = _date_bound(filters.end_date, "endDate")
        qry = qry.filter(LogEntry.created_at.between(start, end))
    if filters.search:
        like = f"%{filters.search}%"
        qry = qry.filter(
            or_(
                LogEntry.details.ilike(like),
                title_col.ilike(like),
                company_col.ilike(like),
            )
        )
    if filters.days:
        qry = qry.filter(LogEntry.created_at >= days_cutoff(filters.days, now))
    if filters.job_id is not None:
        qry = qry.filter(LogEntry.job_id == filters.job_id)

    qry = qry.order_by(desc(LogEntry.created_at), desc(LogEntry.id))

    if filters.limit:
        limit = max(1, min(int(filters.limit), MAX_PAGE_SIZE))
        offset = max(0, int(filters.offset or 0))
        qry = qry.limit(limit).offset(offset)

    return qry.all()


def get_log(db: Session, log_id: int) -> Optional[LogEntry]:
    return _base_query(db).filter(LogEntry.id == log_id).first()


def delete_log(db: Session, log_id: int) -> bool:
    entry = db.query(LogEntry).filter(LogEntry.id == log_id).first()
    if not entry:
        return False
    db.delete(entry)
    db.flush()
    return True


def delete_older_than(db: Session, days: int, now: Optional[datetime] = None) -> int:
    cutoff = days_cutoff(days, now)
    deleted = (
        db.query(LogEntry)
        .filter(LogEntry.created_at < cutoff)
        .delete(synchronize_session=False)
    )
    db.flush()
    return int(deleted or 0)


def log_stats(db: Session) -> list[dict[str, Any]]:
    rows = (
        db.query(LogEntry.action, func.count(LogEntry.id))
        .group_by(LogEntry.action)
        .order_by(LogEntry.action.asc())
        .all()
    )
    return [{"action": action, "count": int(count)} for action, count in rows]


def bulk_create(db: Session, logs: list[Any]) -> tuple[int, list[dict[str, Any]]]:
    """
    Import many entries (local-storage migration). One bad item doesn't abort the rest.
    """
    imported = 0
    errors: list[dict[str, Any]] = []
    for index, item in enumerate(logs):
        try:
            if not isinstance(item, Mapping):
                raise ValueError("log must be an object")
            data = {
                "timestamp": item.get("timestamp") or item.get("createdAt"),
                "action": item.get("action"),
                "username": item.get("username"),
                "job_title": item.get("jobTitle"),
                "company": item.get("company"),
                "details": item.get("details"),
                "job_id": item.get("jobId"),
                "hiring_manager": item.get("hiringManager"),
                "metadata": item.get("metadata") if isinstance(item.get("metadata"), Mapping) else None,
            }
            if not data["action"] or not data["username"]:
                raise ValueError("action and username are required")
            # Validate before touching the session so a bad item leaves nothing behind.
            data["timestamp"] = parse_timestamp(data["timestamp"]) if data["timestamp"] else None
            create_log(db, data)
            imported += 1
        except ValueError as exc:
            errors.append({"index": index, "error": str(exc)})
    if errors:
        logger.warning("Bulk log import: %d of %d entries failed", len(errors), len(logs))
    return imported, errors


def to_record(entry: LogEntry) -> LogRecord:
    return LogRecord(
        id=entry.id,
        timestamp=_utc(entry.created_at),
        action=entry.action,
        username=entry.username or "",
        company=entry.company or "",
        job_title=entry.job_title or "",
        details=entry.details or "",
        job_id=entry.job_id,
        hiring_manager=entry.hiring_manager or "",
        metadata=entry.meta if isinstance(entry.meta, dict) else None,
    )
