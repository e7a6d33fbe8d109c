from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.services.records import (
    LogRecord,
    celebration_for,
    check_stage,
    isoformat_utc,
    normalize_job,
    parse_timestamp,
    sort_newest_first,
    stage_tone,
)
from tests.factories import make_log


def test_normalize_job_applies_defaults():
    job = normalize_job({"company": "Acme"})
    assert job.position == ""
    assert job.recruiter_screen == "Not Started"
    assert job.onsite_round4 == "Not Started"
    assert job.decision == "Pending"
    assert job.notes == ""


def test_normalize_job_accepts_browser_camel_case():
    job = normalize_job(
        {
            "id": 1736000000000,
            "createdAt": "2025-01-04T14:13:20.000Z",
            "company": "Acme",
            "recruiterName": "Rita",
            "hiringManager": "Hank",
            "technicalScreen": "In Progress",
            "onsiteRound2": "Scheduled",
        }
    )
    assert job.id == 1736000000000
    assert job.created_at == "2025-01-04T14:13:20.000Z"
    assert job.recruiter_name == "Rita"
    assert job.hiring_manager == "Hank"
    assert job.technical_screen == "In Progress"
    assert job.onsite_round2 == "Scheduled"


def test_normalize_job_empty_stage_falls_back_to_default():
    job = normalize_job({"company": "Acme", "decision": "  ", "recruiterScreen": None})
    assert job.decision == "Pending"
    assert job.recruiter_screen == "Not Started"


def test_job_record_to_dict_round_trips_keys():
    data = normalize_job({"company": "Acme", "onsite_round1": "Passed"}).to_dict()
    assert data["onsiteRound1"] == "Passed"
    assert data["recruiterName"] == ""
    assert "onsite_round1" not in data


def test_job_stages_in_display_order():
    labels = [label for _, label, _ in normalize_job({}).stages()]
    assert labels == [
        "Recruiter Screen",
        "Technical Screen",
        "On-site Round 1",
        "On-site Round 2",
        "On-site Round 3",
        "On-site Round 4",
        "Decision",
    ]


@pytest.mark.parametrize(
    "raw",
    [
        "2025-01-05T10:00:00Z",
        "2025-01-05T10:00:00+00:00",
        "2025-01-05 10:00:00",
        datetime(2025, 1, 5, 10, 0),
        1736071200000,
    ],
)
def test_parse_timestamp_variants(raw):
    assert parse_timestamp(raw) == datetime(2025, 1, 5, 10, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("raw", ["", "   ", None, "not a date", [1, 2]])
def test_parse_timestamp_rejects_garbage(raw):
    with pytest.raises(ValueError):
        parse_timestamp(raw)


def test_isoformat_utc_uses_z_suffix():
    assert isoformat_utc(datetime(2025, 1, 5, 10, 0, tzinfo=timezone.utc)) == "2025-01-05T10:00:00Z"


def test_log_record_from_mapping_and_back():
    log = LogRecord.from_mapping(
        {
            "id": 7,
            "timestamp": "2025-01-05T10:00:00Z",
            "action": "status_update",
            "username": "alice",
            "company": "Acme",
            "jobTitle": "Engineer",
            "jobId": 3,
            "hiringManager": "Hank",
            "metadata": {"field": "decision"},
        }
    )
    assert log.job_title == "Engineer"
    assert log.to_dict() == {
        "id": 7,
        "timestamp": "2025-01-05T10:00:00Z",
        "action": "status_update",
        "username": "alice",
        "company": "Acme",
        "jobTitle": "Engineer",
        "details": "",
        "jobId": 3,
        "hiringManager": "Hank",
        "metadata": {"field": "decision"},
    }


def test_sort_newest_first_is_stable():
    logs = [
        make_log("2025-01-01T00:00:00Z", id=1),
        make_log("2025-01-03T00:00:00Z", id=2),
        make_log("2025-01-01T00:00:00Z", id=3),
        make_log("2025-01-02T00:00:00Z", id=4),
    ]
    assert [log.id for log in sort_newest_first(logs)] == [2, 4, 1, 3]


@pytest.mark.parametrize(
    "value, tone, celebration",
    [
        ("Completed", "positive", "success"),
        ("Offer Extended", "positive", "success"),
        ("Scheduled", "pending", None),
        ("In Progress", "pending", None),
        ("Failed", "negative", "error"),
        ("Declined", "negative", "error"),
        ("Not Started", "neutral", None),
        ("Pending", "neutral", None),
    ],
)
def test_stage_tone_and_celebration(value, tone, celebration):
    assert stage_tone(value) == tone
    assert celebration_for(value) == celebration


def test_check_stage_accepts_camel_case_field():
    assert check_stage("onsiteRound3", " Passed ") == ("onsite_round3", "Passed")


def test_check_stage_rejects_value_outside_vocabulary():
    # "Passed" is a round value, not a screen value.
    with pytest.raises(ValueError):
        check_stage("recruiter_screen", "Passed")
    with pytest.raises(ValueError):
        check_stage("salary", "100k")
