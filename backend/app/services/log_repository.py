from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Mapping, Protocol

from app.core.config import settings
from app.services.log_api_client import LogApiClient, LogApiError, clean_params
from app.services.records import LogRecord, isoformat_utc, parse_timestamp, sort_newest_first

logger = logging.getLogger(__name__)

LOGS_FILE = "logs.json"
MAX_PAGE_SIZE = 200


class LogRepository(Protocol):
    def list(self, filters: Mapping[str, Any] | None = None) -> list[LogRecord]: ...

    def add(self, log: Mapping[str, Any]) -> LogRecord: ...


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def _matches(
    log: LogRecord,
    filters: Mapping[str, Any],
    window: tuple[datetime, datetime] | None,
    cutoff: datetime | None,
) -> bool:
    action = filters.get("action")
    if action and log.action != action:
        return False
    company = filters.get("company")
    if company and str(company).lower() not in log.company.lower():
        return False
    username = filters.get("username")
    if username and log.username != username:
        return False
    job_id = filters.get("jobId")
    if job_id not in (None, "") and str(log.job_id) != str(job_id):
        return False
    search = str(filters.get("search") or "").lower()
    if search and not any(search in text.lower() for text in (log.details, log.job_title, log.company)):
        return False
    if window is not None and not window[0] <= log.timestamp <= window[1]:
        return False
    if cutoff is not None and log.timestamp < cutoff:
        return False
    return True


def filter_logs(
    logs: list[LogRecord], filters: Mapping[str, Any] | None, now: datetime | None = None
) -> list[LogRecord]:
    """
    Apply the log API's flat filters to an in-memory list, preserving order.

    Same semantics as `GET /api/logs`: filters combine with AND, company and search are
    case-insensitive substrings, the date range applies only when both ends are given,
    and `limit` is clamped to 1..200. Raises ValueError for an unparseable date bound.
    """
    filters = clean_params(filters)
    if not filters:
        return list(logs)

    window = None
    if filters.get("startDate") and filters.get("endDate"):
        window = (parse_timestamp(filters["startDate"]), parse_timestamp(filters["endDate"]))

    cutoff = None
    if filters.get("days"):
        try:
            cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=int(filters["days"]))
        except OverflowError as exc:
            raise ValueError(f"Invalid days value: {filters['days']}") from exc

    out = [log for log in logs if _matches(log, filters, window, cutoff)]
    if filters.get("limit"):
        limit = max(1, min(int(filters["limit"]), MAX_PAGE_SIZE))
        offset = max(0, int(filters.get("offset") or 0))
        out = out[offset : offset + limit]
    return out


def _records(raw_logs: list[Any]) -> list[LogRecord]:
    out: list[LogRecord] = []
    for raw in raw_logs:
        if not isinstance(raw, Mapping):
            continue
        try:
            out.append(LogRecord.from_mapping(raw))
        except ValueError:
            logger.warning("Skipping log entry with an unreadable timestamp: %r", raw.get("timestamp"))
    return out


class RemoteLogRepository:
    def __init__(self, client: LogApiClient) -> None:
        self.client = client

    def list(self, filters: Mapping[str, Any] | None = None) -> list[LogRecord]:
        return sort_newest_first(_records(self.client.list(filters)))

    def add(self, log: Mapping[str, Any]) -> LogRecord:
        created = self.client.create(log)
        return LogRecord.from_mapping({**log, "id": created.get("id")})

    def close(self) -> None:
        self.client.close()


class LocalCacheLogRepository:
    """Newest-first JSON cache of the activity log (the browser's `jobTracker_logs`)."""

    def __init__(self, cache_dir: str | Path | None = None) -> None:
        self.path = Path(cache_dir or settings.LOCAL_CACHE_DIR).expanduser() / LOGS_FILE

    def _read(self) -> list[Any]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable log cache at %s", self.path)
            return []
        return data if isinstance(data, list) else []

    def _write(self, raw_logs: list[dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(raw_logs, indent=2), encoding="utf-8")

    def list(self, filters: Mapping[str, Any] | None = None) -> list[LogRecord]:
        return filter_logs(_records(self._read()), filters)

    def replace(self, logs: list[LogRecord]) -> None:
        self._write([log.to_dict() for log in logs])

    def add(self, log: Mapping[str, Any]) -> LogRecord:
        data = dict(log)
        if data.get("id") is None:
            data["id"] = _epoch_ms()
        if not data.get("timestamp"):
            data["timestamp"] = isoformat_utc(parse_timestamp(data["id"]))
        record = LogRecord.from_mapping(data)
        self._write([record.to_dict()] + [r for r in self._read() if isinstance(r, dict)])
        return record


class FallbackLogRepository:
    """Remote first; the local cache answers when the API is unreachable."""

    def __init__(self, primary: RemoteLogRepository, fallback: LocalCacheLogRepository) -> None:
        self.primary = primary
        self.fallback = fallback

    def list(self, filters: Mapping[str, Any] | None = None) -> list[LogRecord]:
        try:
            logs = self.primary.list(filters)
        except LogApiError as exc:
            logger.warning("Log API unavailable, using cached logs: %s", exc)
            return self.fallback.list(filters)
        if not filters:
            self.fallback.replace(logs)
        return logs

    def add(self, log: Mapping[str, Any]) -> LogRecord:
        try:
            return self.primary.add(log)
        except LogApiError as exc:
            logger.warning("Log API unavailable, caching entry locally: %s", exc)
            return self.fallback.add({**log, "id": _epoch_ms()})

    def close(self) -> None:
        self.primary.close()

    def __enter__(self) -> "FallbackLogRepository":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def build_log_repository(cache_dir: str | Path | None = None, base_url: str | None = None) -> FallbackLogRepository:
    return FallbackLogRepository(
        RemoteLogRepository(LogApiClient(base_url)),
        LocalCacheLogRepository(cache_dir),
    )
