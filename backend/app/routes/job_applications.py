from collections import Counter

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.dependencies.auth import get_current_user
from app.core.database import get_db
from app.models.job_application import JobApplication
from app.models.user import User
from app.services.activity import log_job_activity
from app.services.jobs import (
    clean_job_payload,
    get_job_for_user,
    job_to_record,
    list_jobs_for_user,
    search_jobs,
    validate_stage,
)
from app.services.records import DECISIONS, celebration_for
from app.services.summary import status_breakdown
from app.schemas.job_application import (
    DecisionCount,
    JobApplicationCreate,
    JobApplicationOut,
    JobApplicationUpdate,
    JobStatsOut,
    StageUpdate,
    StageUpdateOut,
)

router = APIRouter(prefix="/api/jobs", tags=["jobs"], dependencies=[Depends(get_current_user)])


@router.post("", response_model=JobApplicationOut, status_code=201)
def create_job(
    payload: JobApplicationCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    data = clean_job_payload(payload.model_dump())

    job = JobApplication(**data)
    job.user_id = user.id  # ✅ ownership
    db.add(job)
    db.flush()

    log_job_activity(db, job=job, user=user, action="created", details="New job application added")

    db.commit()
    db.refresh(job)
    return job


@router.get("", response_model=list[JobApplicationOut])
def list_jobs(
    search: str | None = None,
    decision: str | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    jobs = search_jobs(list_jobs_for_user(db, user.id), search)
    if decision:
        d = decision.strip()
        jobs = [j for j in jobs if j.decision == d]
    return jobs


@router.get("/stats", response_model=JobStatsOut)
def job_stats(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    records = [job_to_record(j) for j in list_jobs_for_user(db, user.id)]
    by_decision = Counter(r.decision for r in records)
    breakdown = status_breakdown(records)
    return JobStatsOut(
        total=len(records),
        by_decision=[DecisionCount(decision=d, count=by_decision.get(d, 0)) for d in DECISIONS],
        in_progress=breakdown["In Progress"],
        completed_interviews=breakdown["Completed Interviews"],
        rejected=breakdown["Rejected"],
        offers=breakdown["Offers"],
    )


@router.get("/{job_id}", response_model=JobApplicationOut)
def get_job(
    job_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return get_job_for_user(db, job_id, user.id)


@router.put("/{job_id}", response_model=JobApplicationOut)
def update_job(
    job_id: int,
    payload: JobApplicationUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    job = get_job_for_user(db, job_id, user.id)

    data = clean_job_payload(payload.model_dump())
    for k, v in data.items():
        setattr(job, k, v)
    db.flush()

    log_job_activity(db, job=job, user=user, action="updated", details="Job details updated")

    db.commit()
    db.refresh(job)
    return job


@router.patch("/{job_id}/stage", response_model=StageUpdateOut)
def update_stage(
    job_id: int,
    payload: StageUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    job = get_job_for_user(db, job_id, user.id)
    value = validate_stage(payload.field, payload.value)

    previous = getattr(job, payload.field)
    setattr(job, payload.field, value)
    db.flush()

    log_job_activity(
        db,
        job=job,
        user=user,
        action="status_update",
        details=f"{payload.field} updated to: {value}",
        metadata={"field": payload.field, "from": previous, "to": value},
    )

    db.commit()
    db.refresh(job)
    return StageUpdateOut(job=JobApplicationOut.model_validate(job), celebration=celebration_for(value))


@router.delete("/{job_id}")
def delete_job(
    job_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    job = get_job_for_user(db, job_id, user.id)

    # Logged unlinked: the row is about to go, the snapshots keep company/title.
    log_job_activity(
        db,
        job=job,
        user=user,
        action="deleted",
        details="Job application removed",
        link_job=False,
    )
    db.delete(job)
    db.commit()
    return {"deleted": True}
