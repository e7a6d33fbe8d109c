from __future__ import annotations

from typing import Any

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.models.job_application import JobApplication
from app.services.records import (
    STAGE_FIELD_NAMES,
    JobRecord,
    check_stage,
    normalize_job,
    stage_default,
)

_TEXT_FIELDS = ("company", "position", "recruiter_name", "hiring_manager", "notes", "hiring_manager_notes")


def get_job_for_user(db: Session, job_id: int, user_id: int) -> JobApplication:
    job = (
        db.query(JobApplication)
        .filter(JobApplication.id == job_id, JobApplication.user_id == user_id)
        .first()
    )
    if not job:
        raise HTTPException(status_code=404, detail="Job application not found")
    return job


def list_jobs_for_user(db: Session, user_id: int) -> list[JobApplication]:
    # Insertion order: the summary's "recent companies" relies on it.
    return (
        db.query(JobApplication)
        .filter(JobApplication.user_id == user_id)
        .order_by(JobApplication.created_at.asc(), JobApplication.id.asc())
        .all()
    )


def job_to_record(job: JobApplication) -> JobRecord:
    raw: dict[str, Any] = {"id": job.id, "created_at": job.created_at}
    for name in _TEXT_FIELDS + STAGE_FIELD_NAMES:
        raw[name] = getattr(job, name, None)
    return normalize_job(raw)


def validate_stage(field: str, value: str) -> str:
    if field not in STAGE_FIELD_NAMES:
        raise HTTPException(status_code=400, detail=f"Unknown stage field: {field}")
    try:
        _, v = check_stage(field, value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return v


def clean_job_payload(data: dict[str, Any]) -> dict[str, Any]:
    """
    Trim strings and apply stage defaults so the row never holds an empty stage.
    """
    out: dict[str, Any] = {}
    for name in _TEXT_FIELDS:
        v = data.get(name)
        out[name] = str(v).strip() if v is not None else ""

    for name in STAGE_FIELD_NAMES:
        v = data.get(name)
        s = str(v).strip() if v is not None else ""
        out[name] = validate_stage(name, s) if s else stage_default(name)

    if not out["company"]:
        raise HTTPException(status_code=400, detail="Company is required")
    if not out["position"]:
        raise HTTPException(status_code=400, detail="Position is required")
    return out


def search_jobs(jobs: list[JobApplication], search: str | None) -> list[JobApplication]:
    term = (search or "").strip().lower()
    if not term:
        return jobs
    return [
        j
        for j in jobs
        if term in (j.company or "").lower()
        or term in (j.position or "").lower()
        or term in (j.recruiter_name or "").lower()
    ]
