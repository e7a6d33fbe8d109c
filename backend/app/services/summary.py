"""
Rule-based "AI summary" over a snapshot of jobs and activity logs.

A query resolves to exactly one outcome, checked in order:

1. company  - the first job (list order) whose company contains the query, or is contained in
   it, case-insensitively. Companies that are substrings of each other ("Meta" / "MetaCorp")
   resolve to whichever comes first; there is no tie-break.
2. overview - the query mentions "summary" or "overview".
3. no_match - guidance text echoing the query.

The generator is pure: inputs are never mutated and the same inputs give the same report.
"""
from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Callable, Sequence

from app.services.records import JobRecord, LogRecord, sort_newest_first
from app.services.timeline import format_long_datetime, format_short_datetime

logger = logging.getLogger(__name__)

OUTCOME_COMPANY = "company"
OUTCOME_OVERVIEW = "overview"
OUTCOME_NO_MATCH = "no_match"

RECENT_ACTIVITY_LIMIT = 5
RECENT_COMPANIES_LIMIT = 5
MOST_ACTIVE_LIMIT = 3

EXAMPLE_QUERIES = (
    "What's the status for [company name]?",
    "Give me an overview",
    "Summary of my applications",
    "What's the latest on [company name]?",
)

QUICK_QUERIES = (
    "Give me an overview",
    "What companies am I interviewing with?",
    "Show me recent activity",
)


@dataclass(frozen=True)
class ReportLine:
    # heading | subheading | bold | paragraph | list_item | numbered
    kind: str
    text: str
    label: str | None = None
    number: int | None = None

    def to_text(self) -> str:
        body = f"{self.label}: {self.text}" if self.label else self.text
        if self.kind == "heading":
            return f"## {body}"
        if self.kind == "subheading":
            return f"### {body}"
        if self.kind == "bold":
            return f"**{self.label}:** {self.text}" if self.label else f"**{self.text}**"
        if self.kind == "list_item":
            return f"- {body}"
        if self.kind == "numbered":
            return f"{self.number}. {body}"
        return body


@dataclass(frozen=True)
class Report:
    outcome: str
    lines: list[ReportLine] = field(default_factory=list)
    company: str | None = None

    def to_text(self) -> str:
        return "\n".join(line.to_text() for line in self.lines)


def _heading(text: str) -> ReportLine:
    return ReportLine("heading", text)


def _subheading(text: str) -> ReportLine:
    return ReportLine("subheading", text)


def _bold(label: str, value: object) -> ReportLine:
    return ReportLine("bold", str(value), label=label)


def _paragraph(text: str) -> ReportLine:
    return ReportLine("paragraph", text)


def find_company_match(query: str, jobs: Sequence[JobRecord]) -> JobRecord | None:
    q = query.lower()
    for job in jobs:
        company = job.company.lower()
        if not company:
            # An empty company name is "contained" in every query; never let it win.
            continue
        if q in company or company in q:
            return job
    return None


def is_overview_query(query: str) -> bool:
    q = query.lower()
    return "summary" in q or "overview" in q


def company_report(job: JobRecord, logs: Sequence[LogRecord], tz: tzinfo | None = None) -> Report:
    lines: list[ReportLine] = [
        _heading(f"Summary for {job.company}"),
        _bold("Position", job.position),
        _bold("Recruiter", job.recruiter_name),
    ]
    if job.hiring_manager:
        lines.append(_bold("Hiring Manager", job.hiring_manager))

    lines.append(_subheading("Current Status"))
    for _, label, value in job.stages():
        lines.append(ReportLine("list_item", value, label=label))

    if job.notes:
        lines.append(_subheading("Notes"))
        lines.append(_paragraph(job.notes))

    company = job.company.lower()
    company_logs = sort_newest_first([log for log in logs if log.company.lower() == company])

    if not company_logs:
        lines.append(_subheading("Activity"))
        lines.append(_paragraph("No updates recorded yet for this application."))
        return Report(OUTCOME_COMPANY, lines, company=job.company)

    total = len(company_logs)
    lines.append(_subheading(f"Recent Activity ({total} updates)"))
    for idx, log in enumerate(company_logs[:RECENT_ACTIVITY_LIMIT], start=1):
        lines.append(
            ReportLine("numbered", f"{format_short_datetime(log.timestamp, tz)} - {log.details}", number=idx)
        )
    if total > RECENT_ACTIVITY_LIMIT:
        lines.append(_paragraph(f"...and {total - RECENT_ACTIVITY_LIMIT} more updates"))

    last = company_logs[0]
    lines.append(_subheading("Last Updated"))
    lines.append(_paragraph(f"{format_long_datetime(last.timestamp, tz)} by {last.username}"))
    lines.append(_bold("Action", last.details))
    return Report(OUTCOME_COMPANY, lines, company=job.company)


def status_breakdown(jobs: Sequence[JobRecord]) -> dict[str, int]:
    # Categories overlap on purpose; each is counted independently.
    return {
        "In Progress": sum(
            1 for j in jobs if j.recruiter_screen == "In Progress" or j.technical_screen == "In Progress"
        ),
        "Completed Interviews": sum(
            1 for j in jobs if j.recruiter_screen == "Completed" and j.technical_screen == "Completed"
        ),
        "Rejected": sum(1 for j in jobs if j.decision == "Rejected"),
        "Offers": sum(1 for j in jobs if j.decision in ("Offer Extended", "Accepted")),
    }


def most_active_companies(logs: Sequence[LogRecord], limit: int = MOST_ACTIVE_LIMIT) -> list[tuple[str, int]]:
    # Counter keeps first-seen order and sorted() is stable, so ties stay in encounter order.
    counts = Counter(log.company for log in logs)
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return ranked[:limit]


def overview_report(jobs: Sequence[JobRecord], logs: Sequence[LogRecord]) -> Report:
    lines: list[ReportLine] = [
        _heading("Overall Job Search Summary"),
        _bold("Total Applications", len(jobs)),
        _bold("Total Activities", len(logs)),
        _subheading("Application Status Breakdown"),
    ]
    for status, count in status_breakdown(jobs).items():
        lines.append(ReportLine("list_item", str(count), label=status))

    lines.append(_subheading("Recent Companies"))
    recent = list(jobs[-RECENT_COMPANIES_LIMIT:])[::-1]
    for idx, job in enumerate(recent, start=1):
        lines.append(ReportLine("numbered", f"{job.company} - {job.position} ({job.decision})", number=idx))

    lines.append(_subheading("Most Active Companies"))
    for idx, (company, count) in enumerate(most_active_companies(logs), start=1):
        lines.append(ReportLine("numbered", f"{company} - {count} updates", number=idx))

    return Report(OUTCOME_OVERVIEW, lines)


def no_match_report(query: str) -> Report:
    lines = [
        _paragraph(f'I couldn\'t find specific information about "{query}".'),
        _paragraph("Try asking:"),
    ]
    lines.extend(ReportLine("list_item", f'"{example}"') for example in EXAMPLE_QUERIES)
    return Report(OUTCOME_NO_MATCH, lines)


def generate_summary(
    query: str,
    jobs: Sequence[JobRecord],
    logs: Sequence[LogRecord],
    tz: tzinfo | None = None,
) -> Report:
    """
    Callers must not pass an empty/whitespace query; that is rejected at the API boundary.
    """
    job = find_company_match(query, jobs)
    if job is not None:
        return company_report(job, logs, tz)
    if is_overview_query(query):
        return overview_report(jobs, logs)
    return no_match_report(query)


class SummaryGenerator:
    """
    `generate_summary` behind the artificial "Analyzing your data..." delay.

    `delay_seconds=0` skips the sleep entirely; tests inject `sleep`.
    """

    def __init__(
        self,
        delay_seconds: float = 0.0,
        *,
        sleep: Callable[[float], None] = time.sleep,
        tz: tzinfo | None = None,
    ) -> None:
        self.delay_seconds = max(0.0, float(delay_seconds))
        self._sleep = sleep
        self.tz = tz

    def generate(self, query: str, jobs: Sequence[JobRecord], logs: Sequence[LogRecord]) -> Report:
        if self.delay_seconds > 0:
            self._sleep(self.delay_seconds)
        report = generate_summary(query, jobs, logs, self.tz)
        logger.info(
            "Summary generated outcome=%s jobs=%d logs=%d lines=%d",
            report.outcome,
            len(jobs),
            len(logs),
            len(report.lines),
        )
        return report
