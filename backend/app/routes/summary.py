from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.dependencies.auth import get_current_user
from app.models.user import User
from app.schemas.summary import SummaryOut, SummaryQueryIn, SuggestionsOut
from app.services.activity import LogFilters, query_logs, to_record
from app.services.jobs import job_to_record, list_jobs_for_user
from app.services.summary import EXAMPLE_QUERIES, QUICK_QUERIES, SummaryGenerator

router = APIRouter(prefix="/api/summary", tags=["summary"], dependencies=[Depends(get_current_user)])


def get_summary_generator() -> SummaryGenerator:
    return SummaryGenerator(settings.SUMMARY_DELAY_SECONDS)


@router.post("", response_model=SummaryOut)
def ask_summary(
    payload: SummaryQueryIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    generator: SummaryGenerator = Depends(get_summary_generator),
):
    if not payload.query.strip():
        raise HTTPException(status_code=400, detail="Query is required")

    # Snapshot both lists before generating; the generator never touches the session.
    jobs = [job_to_record(j) for j in list_jobs_for_user(db, user.id)]
    logs = [to_record(e) for e in query_logs(db, LogFilters(user_id=user.id))]

    report = generator.generate(payload.query, jobs, logs)
    return SummaryOut(
        outcome=report.outcome,
        company=report.company,
        lines=[
            {"kind": line.kind, "text": line.text, "label": line.label, "number": line.number}
            for line in report.lines
        ],
        text=report.to_text(),
    )


@router.get("/suggestions", response_model=SuggestionsOut)
def suggestions():
    return SuggestionsOut(quick_queries=list(QUICK_QUERIES), examples=list(EXAMPLE_QUERIES))
