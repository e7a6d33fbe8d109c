from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from typing import Any, Iterable, Mapping, Sequence

from app.services.records import CANONICAL_ACTIONS, LogRecord, parse_timestamp

# action -> (color, icon)
_ACTION_TONES: dict[str, tuple[str, str]] = {
    "created": ("green", "plus"),
    "updated": ("blue", "edit"),
    "deleted": ("red", "trash"),
    "status_update": ("purple", "trending-up"),
}
_DEFAULT_TONE = ("gray", "clock")


def _as_local(dt: datetime, tz: tzinfo | None) -> datetime:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(tz or timezone.utc)


def _clock(dt: datetime) -> str:
    return dt.strftime("%I:%M %p")


def format_short_datetime(value: Any, tz: tzinfo | None = None) -> str:
    """`Jan 5, 02:30 PM`"""
    dt = _as_local(parse_timestamp(value), tz)
    return f"{dt.strftime('%b')} {dt.day}, {_clock(dt)}"


def format_absolute_datetime(value: Any, tz: tzinfo | None = None) -> str:
    """`Jan 5, 2025, 02:30 PM`"""
    dt = _as_local(parse_timestamp(value), tz)
    return f"{dt.strftime('%b')} {dt.day}, {dt.year}, {_clock(dt)}"


def format_long_datetime(value: Any, tz: tzinfo | None = None) -> str:
    """`January 5, 2025, 02:30 PM`"""
    dt = _as_local(parse_timestamp(value), tz)
    return f"{dt.strftime('%B')} {dt.day}, {dt.year}, {_clock(dt)}"


def format_relative_time(value: Any, now: datetime | None = None, tz: tzinfo | None = None) -> str:
    ts = parse_timestamp(value)
    current = parse_timestamp(now) if now is not None else datetime.now(timezone.utc)

    diff_seconds = (current - ts).total_seconds()
    # Floor, not round: 59m59s is still "59 minutes ago".
    diff_mins = int(diff_seconds // 60)
    diff_hours = int(diff_seconds // 3600)
    diff_days = int(diff_seconds // 86400)

    if diff_mins < 1:
        return "Just now"
    if diff_mins < 60:
        return f"{diff_mins} minutes ago"
    if diff_hours < 24:
        return f"{diff_hours} hours ago"
    if diff_days < 7:
        return f"{diff_days} days ago"
    return format_absolute_datetime(ts, tz)


def action_label(action: str) -> str:
    return (action or "").replace("_", " ", 1)


def action_tone(action: str) -> dict[str, str]:
    color, icon = _ACTION_TONES.get(action, _DEFAULT_TONE)
    return {"color": color, "icon": icon}


def metadata_chips(metadata: Mapping[str, Any] | None) -> list[tuple[str, str]]:
    if not metadata:
        return []
    return [(str(k), str(v)) for k, v in metadata.items()]


def action_counts(logs: Iterable[LogRecord]) -> dict[str, int]:
    counts = {action: 0 for action in CANONICAL_ACTIONS}
    for log in logs:
        if log.action in counts:
            counts[log.action] += 1
    return counts


@dataclass(frozen=True)
class TimelineEntry:
    id: Any
    title: str
    details: str
    username: str
    action: str
    action_label: str
    tone: dict[str, str]
    relative_time: str
    chips: list[tuple[str, str]] = field(default_factory=list)
    is_last: bool = False


@dataclass(frozen=True)
class Timeline:
    total: int
    counts: dict[str, int]
    entries: list[TimelineEntry]


def build_timeline(
    logs: Sequence[LogRecord],
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> Timeline:
    """
    Display-ready timeline in the order given.

    Sorting is the caller's job (the log store hands out newest-first lists).
    """
    current = now or datetime.now(timezone.utc)
    entries: list[TimelineEntry] = []
    last_index = len(logs) - 1
    for idx, log in enumerate(logs):
        entries.append(
            TimelineEntry(
                id=log.id,
                title=f"{log.job_title} at {log.company}",
                details=log.details,
                username=log.username,
                action=log.action,
                action_label=action_label(log.action),
                tone=action_tone(log.action),
                relative_time=format_relative_time(log.timestamp, now=current, tz=tz),
                chips=metadata_chips(log.metadata),
                is_last=idx == last_index,
            )
        )
    return Timeline(total=len(logs), counts=action_counts(logs), entries=entries)
