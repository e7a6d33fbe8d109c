from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.services.summary import (
    EXAMPLE_QUERIES,
    OUTCOME_COMPANY,
    OUTCOME_NO_MATCH,
    OUTCOME_OVERVIEW,
    ReportLine,
    SummaryGenerator,
    generate_summary,
    most_active_companies,
    status_breakdown,
)
from tests.factories import make_job, make_log

T0 = datetime(2025, 1, 15, 14, 30, tzinfo=timezone.utc)


def _numbered(report):
    return [line for line in report.lines if line.kind == "numbered"]


@pytest.mark.parametrize("query", ["Microsoft", "microsoft", "MICROSOFT"])
def test_exact_company_name_any_case_uses_stored_name(query):
    jobs = [make_job(company="Google"), make_job(company="Microsoft")]
    report = generate_summary(query, jobs, [])
    assert report.outcome == OUTCOME_COMPANY
    assert report.lines[0] == ReportLine("heading", "Summary for Microsoft")
    assert report.to_text().startswith("## Summary for Microsoft\n")


def test_substring_query_matches_company():
    jobs = [make_job(company="Microsoft")]
    report = generate_summary("micro", jobs, [])
    assert report.company == "Microsoft"


def test_company_contained_in_query_matches():
    jobs = [make_job(company="Stripe")]
    report = generate_summary("What's the latest on stripe?", jobs, [])
    assert report.outcome == OUTCOME_COMPANY


def test_first_matching_job_wins():
    jobs = [make_job(company="MetaCorp", position="First"), make_job(company="Meta", position="Second")]
    report = generate_summary("meta", jobs, [])
    assert report.company == "MetaCorp"
    assert "**Position:** First" in report.to_text()


def test_company_match_beats_overview_keyword():
    jobs = [make_job(company="Overview Labs")]
    assert generate_summary("overview", jobs, []).outcome == OUTCOME_COMPANY


def test_jobs_without_company_never_match():
    jobs = [make_job(company="")]
    assert generate_summary("anything", jobs, []).outcome == OUTCOME_NO_MATCH


def test_company_report_layout():
    job = make_job(company="Acme", hiringManager="Hank", notes="Great team", technicalScreen="Completed")
    text = generate_summary("acme", [job], []).to_text()
    assert text.splitlines() == [
        "## Summary for Acme",
        "**Position:** Engineer",
        "**Recruiter:** Rita",
        "**Hiring Manager:** Hank",
        "### Current Status",
        "- Recruiter Screen: Not Started",
        "- Technical Screen: Completed",
        "- On-site Round 1: Not Started",
        "- On-site Round 2: Not Started",
        "- On-site Round 3: Not Started",
        "- On-site Round 4: Not Started",
        "- Decision: Pending",
        "### Notes",
        "Great team",
        "### Activity",
        "No updates recorded yet for this application.",
    ]


def test_optional_blocks_are_omitted():
    text = generate_summary("acme", [make_job(company="Acme")], []).to_text()
    assert "Hiring Manager" not in text
    assert "### Notes" not in text


def test_zero_logs_reports_no_updates():
    job = make_job(company="Acme")
    other = make_log(T0, company="Globex")
    text = generate_summary("acme", [job], [other]).to_text()
    assert "No updates recorded yet" in text


def test_more_than_five_logs_shows_five_newest_and_remainder():
    job = make_job(company="Acme")
    # Deliberately shuffled: the report must sort newest-first itself.
    offsets = [3, 0, 6, 1, 5, 2, 4]
    logs = [make_log(T0 - timedelta(hours=h), details=f"update {h}") for h in offsets]
    report = generate_summary("acme", [job], logs)

    numbered = _numbered(report)
    assert [line.number for line in numbered] == [1, 2, 3, 4, 5]
    assert [line.text.split(" - ", 1)[1] for line in numbered] == [f"update {h}" for h in range(5)]
    text = report.to_text()
    assert "### Recent Activity (7 updates)" in text
    assert "...and 2 more updates" in text


def test_company_logs_match_case_insensitively_but_exactly():
    job = make_job(company="Acme")
    logs = [make_log(T0, company="ACME"), make_log(T0, company="Acme Corp")]
    assert "(1 updates)" in generate_summary("acme", [job], logs).to_text()


def test_last_updated_block_uses_newest_log():
    job = make_job(company="Acme")
    logs = [
        make_log(T0 - timedelta(days=1), details="older", username="alice"),
        make_log(T0, details="Decision updated to: Accepted", username="bob"),
    ]
    text = generate_summary("acme", [job], logs).to_text()
    assert "1. Jan 15, 02:30 PM - Decision updated to: Accepted" in text
    assert "January 15, 2025, 02:30 PM by bob" in text
    assert text.endswith("**Action:** Decision updated to: Accepted")


@pytest.mark.parametrize("query", ["overview", "Give me an overview", "SUMMARY please"])
def test_overview_totals(query):
    # Single-letter companies would be "contained" in the query and win as a company match.
    jobs = [make_job(company="Initech"), make_job(company="Globex"), make_job(company="Umbrella")]
    logs = [make_log(T0, company="Initech"), make_log(T0, company="Globex")]
    report = generate_summary(query, jobs, logs)
    assert report.outcome == OUTCOME_OVERVIEW
    text = report.to_text()
    assert "**Total Applications:** 3" in text
    assert "**Total Activities:** 2" in text


def test_status_breakdown_categories_overlap():
    jobs = [
        make_job(recruiterScreen="In Progress", technicalScreen="In Progress"),
        make_job(recruiterScreen="Completed", technicalScreen="Completed", decision="Offer Extended"),
        make_job(recruiterScreen="Completed", technicalScreen="Completed", decision="Accepted"),
        make_job(decision="Rejected", technicalScreen="In Progress"),
    ]
    assert status_breakdown(jobs) == {
        "In Progress": 2,
        "Completed Interviews": 2,
        "Rejected": 1,
        "Offers": 2,
    }


def test_overview_recent_companies_are_last_five_reversed():
    jobs = [make_job(company=f"Co{i}", position=f"P{i}") for i in range(7)]
    report = generate_summary("overview", jobs, [])
    recent = [line.text for line in _numbered(report)]
    assert recent == [
        "Co6 - P6 (Pending)",
        "Co5 - P5 (Pending)",
        "Co4 - P4 (Pending)",
        "Co3 - P3 (Pending)",
        "Co2 - P2 (Pending)",
    ]


def test_most_active_companies_sorted_descending():
    logs = (
        [make_log(T0, company="A")] * 1
        + [make_log(T0, company="B")] * 4
        + [make_log(T0, company="C")] * 2
        + [make_log(T0, company="D")] * 3
    )
    assert most_active_companies(logs) == [("B", 4), ("D", 3), ("C", 2)]


def test_most_active_companies_ties_keep_encounter_order():
    logs = [make_log(T0, company=c) for c in ["X", "Y", "Z", "W", "Z", "Y", "X"]]
    assert most_active_companies(logs) == [("X", 2), ("Y", 2), ("Z", 2)]


def test_overview_renders_most_active_block():
    logs = [make_log(T0, company="A"), make_log(T0, company="B"), make_log(T0, company="B")]
    text = generate_summary("overview", [], logs).to_text()
    assert "### Most Active Companies\n1. B - 2 updates\n2. A - 1 updates" in text


def test_no_match_echoes_query_and_lists_examples():
    report = generate_summary("Who is hiring in Berlin?", [make_job(company="Acme")], [])
    assert report.outcome == OUTCOME_NO_MATCH
    text = report.to_text()
    assert 'I couldn\'t find specific information about "Who is hiring in Berlin?".' in text
    items = [line for line in report.lines if line.kind == "list_item"]
    assert len(items) == 4
    assert [line.text for line in items] == [f'"{q}"' for q in EXAMPLE_QUERIES]


def test_generation_is_idempotent_and_does_not_mutate_inputs():
    jobs = [make_job(company="Acme"), make_job(company="Globex")]
    logs = [make_log(T0 - timedelta(minutes=m), details=f"d{m}") for m in (5, 1, 3)]
    jobs_before, logs_before = list(jobs), list(logs)

    for query in ("acme", "overview", "nothing here"):
        first = generate_summary(query, jobs, logs).to_text()
        second = generate_summary(query, jobs, logs).to_text()
        assert first == second

    assert jobs == jobs_before
    assert logs == logs_before


def test_generator_sleeps_for_configured_delay():
    calls = []
    generator = SummaryGenerator(1.5, sleep=calls.append)
    generator.generate("overview", [], [])
    assert calls == [1.5]


def test_generator_zero_delay_skips_sleep():
    calls = []
    SummaryGenerator(0, sleep=calls.append).generate("overview", [], [])
    assert calls == []
