"""
Value types shared by the API, the summary generator, the timeline and the local stores.

Jobs and log entries arrive from three places (the database, the log API, and the browser's
local-storage JSON), so everything funnels through `JobRecord.from_mapping` /
`LogRecord.from_mapping` and downstream code never sees a missing field.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Mapping

SCREEN_STAGES = ("Not Started", "In Progress", "Completed", "Rejected")
ROUND_STAGES = ("Not Started", "Scheduled", "Completed", "Passed", "Failed")
DECISIONS = ("Pending", "Offer Extended", "Accepted", "Rejected", "Declined")

# Stage fields in display order, with their labels and allowed values.
STAGE_FIELDS: tuple[tuple[str, str, tuple[str, ...]], ...] = (
    ("recruiter_screen", "Recruiter Screen", SCREEN_STAGES),
    ("technical_screen", "Technical Screen", SCREEN_STAGES),
    ("onsite_round1", "On-site Round 1", ROUND_STAGES),
    ("onsite_round2", "On-site Round 2", ROUND_STAGES),
    ("onsite_round3", "On-site Round 3", ROUND_STAGES),
    ("onsite_round4", "On-site Round 4", ROUND_STAGES),
    ("decision", "Decision", DECISIONS),
)
STAGE_FIELD_NAMES = tuple(name for name, _, _ in STAGE_FIELDS)

CANONICAL_ACTIONS = ("created", "updated", "deleted", "status_update")

_CAMEL_ALIASES = {
    "createdAt": "created_at",
    "recruiterName": "recruiter_name",
    "hiringManager": "hiring_manager",
    "recruiterScreen": "recruiter_screen",
    "technicalScreen": "technical_screen",
    "onsiteRound1": "onsite_round1",
    "onsiteRound2": "onsite_round2",
    "onsiteRound3": "onsite_round3",
    "onsiteRound4": "onsite_round4",
    "hiringManagerNotes": "hiring_manager_notes",
    "jobTitle": "job_title",
    "jobId": "job_id",
}
_SNAKE_TO_CAMEL = {v: k for k, v in _CAMEL_ALIASES.items()}


def _snake_keys(raw: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for k, v in raw.items():
        out[_CAMEL_ALIASES.get(k, k)] = v
    return out


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def stage_default(name: str) -> str:
    return "Pending" if name == "decision" else "Not Started"


def parse_timestamp(value: Any) -> datetime:
    """
    Parse ISO 8601 strings, SQLite "YYYY-MM-DD HH:MM:SS" strings, epoch milliseconds, or datetimes.

    Naive values are treated as UTC.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        dt = datetime.fromtimestamp(float(value) / 1000.0, tz=timezone.utc)
    elif isinstance(value, str) and value.strip():
        s = value.strip()
        if s.endswith("Z") or s.endswith("z"):
            s = s[:-1] + "+00:00"
        dt = datetime.fromisoformat(s)
    else:
        raise ValueError(f"Invalid timestamp: {value!r}")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def isoformat_utc(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class JobRecord:
    id: Any = None
    created_at: str = ""
    company: str = ""
    position: str = ""
    recruiter_name: str = ""
    hiring_manager: str = ""
    recruiter_screen: str = "Not Started"
    technical_screen: str = "Not Started"
    onsite_round1: str = "Not Started"
    onsite_round2: str = "Not Started"
    onsite_round3: str = "Not Started"
    onsite_round4: str = "Not Started"
    decision: str = "Pending"
    notes: str = ""
    hiring_manager_notes: str = ""

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "JobRecord":
        return normalize_job(raw)

    def stages(self) -> list[tuple[str, str, str]]:
        """(field, label, value) for every stage field in display order."""
        return [(name, label, getattr(self, name)) for name, label, _ in STAGE_FIELDS]

    def to_dict(self, *, camel: bool = True) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for f in fields(self):
            key = _SNAKE_TO_CAMEL.get(f.name, f.name) if camel else f.name
            out[key] = getattr(self, f.name)
        return out


def normalize_job(raw: Mapping[str, Any]) -> JobRecord:
    """
    Build a fully-populated JobRecord.

    Accepts camelCase (browser local storage) or snake_case keys. Missing or empty stage
    fields get "Not Started" ("Pending" for decision); missing strings become "".
    """
    data = _snake_keys(raw)
    values: dict[str, Any] = {}
    for f in fields(JobRecord):
        v = data.get(f.name)
        if f.name == "id":
            values["id"] = v
        elif f.name == "created_at":
            if isinstance(v, datetime):
                values["created_at"] = isoformat_utc(v)
            else:
                values["created_at"] = _text(v)
        elif f.name in STAGE_FIELD_NAMES:
            s = _text(v).strip()
            values[f.name] = s or stage_default(f.name)
        else:
            values[f.name] = _text(v)
    return JobRecord(**values)


@dataclass(frozen=True)
class LogRecord:
    id: Any
    timestamp: datetime
    action: str
    username: str = ""
    company: str = ""
    job_title: str = ""
    details: str = ""
    job_id: Any = None
    hiring_manager: str = ""
    metadata: dict[str, Any] | None = field(default=None)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "LogRecord":
        data = _snake_keys(raw)
        ts = data.get("timestamp") or data.get("created_at")
        meta = data.get("metadata")
        return cls(
            id=data.get("id"),
            timestamp=parse_timestamp(ts),
            action=_text(data.get("action")),
            username=_text(data.get("username")),
            company=_text(data.get("company")),
            job_title=_text(data.get("job_title")),
            details=_text(data.get("details")),
            job_id=data.get("job_id"),
            hiring_manager=_text(data.get("hiring_manager")),
            metadata=dict(meta) if isinstance(meta, Mapping) else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": isoformat_utc(self.timestamp),
            "action": self.action,
            "username": self.username,
            "company": self.company,
            "jobTitle": self.job_title,
            "details": self.details,
            "jobId": self.job_id,
            "hiringManager": self.hiring_manager,
            "metadata": self.metadata,
        }


def sort_newest_first(logs: list[LogRecord]) -> list[LogRecord]:
    # sorted() is stable, so equal timestamps keep their input order.
    return sorted(logs, key=lambda log: log.timestamp, reverse=True)


_POSITIVE = {"Completed", "Passed", "Accepted", "Offer Extended"}
_PENDING = {"In Progress", "Scheduled"}
_NEGATIVE = {"Rejected", "Failed", "Declined"}


def stage_tone(value: str) -> str:
    """Status pill tone: positive | pending | negative | neutral."""
    if value in _POSITIVE:
        return "positive"
    if value in _PENDING:
        return "pending"
    if value in _NEGATIVE:
        return "negative"
    return "neutral"


def celebration_for(value: str) -> str | None:
    """Animation played after a stage change: "success", "error", or None."""
    if value in _POSITIVE:
        return "success"
    if value in _NEGATIVE:
        return "error"
    return None


def stage_pills(job: Any) -> dict[str, str]:
    return {name: stage_tone(getattr(job, name, "") or "") for name in STAGE_FIELD_NAMES}


_ALLOWED_BY_FIELD = {name: allowed for name, _, allowed in STAGE_FIELDS}


def check_stage(field_name: str, value: str) -> tuple[str, str]:
    """
    Resolve a stage field (snake_case or camelCase) and validate its value.

    Returns the (snake_case field, trimmed value) pair; raises ValueError otherwise.
    """
    name = _CAMEL_ALIASES.get(field_name, field_name)
    allowed = _ALLOWED_BY_FIELD.get(name)
    if allowed is None:
        raise ValueError(f"Unknown stage field: {field_name}")
    v = (value or "").strip()
    if v not in allowed:
        raise ValueError(f"Invalid value for {field_name}: {value!r} (allowed: {', '.join(allowed)})")
    return name, v


def camel_name(name: str) -> str:
    return _SNAKE_TO_CAMEL.get(name, name)
