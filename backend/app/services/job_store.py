"""
File-backed equivalents of the browser's local storage.

Each `LocalState` key is one JSON file in the cache directory (`jobs.json`, `logs.json`, ...).
`STORAGE_KEYS` maps them to the browser's local-storage names so an exported
localStorage dump can be imported as-is.
"""
from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

from app.core.config import settings
from app.services.log_repository import LogRepository
from app.services.records import JobRecord, camel_name, check_stage, isoformat_utc, normalize_job

logger = logging.getLogger(__name__)

STORAGE_KEYS = {
    "user": "jobTracker_user",
    "jobs": "jobTracker_jobs",
    "logs": "jobTracker_logs",
    "theme": "jobTracker_theme",
}


class LocalState:
    def __init__(self, cache_dir: str | Path | None = None) -> None:
        self.root = Path(cache_dir or settings.LOCAL_CACHE_DIR).expanduser()

    def path_for(self, key: str) -> Path:
        if key not in STORAGE_KEYS:
            raise KeyError(f"Unknown local state key: {key}")
        return self.root / f"{key}.json"

    def get(self, key: str, default: Any = None) -> Any:
        path = self.path_for(key)
        if not path.exists():
            return default
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Failed to parse saved %s at %s", key, path)
            return default

    def set(self, key: str, value: Any) -> None:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(value, indent=2), encoding="utf-8")

    def remove(self, key: str) -> None:
        path = self.path_for(key)
        if path.exists():
            path.unlink()

    def import_browser_storage(self, storage: Mapping[str, Any]) -> list[str]:
        """
        Load a `localStorage` dump ({"jobTracker_jobs": "<json>", ...}).

        Values may be JSON strings (as the browser stores them) or already-decoded objects;
        plain strings that are not JSON (the username, the theme) are kept as-is.
        Returns the imported keys.
        """
        imported: list[str] = []
        for key, browser_key in STORAGE_KEYS.items():
            if browser_key not in storage:
                continue
            value = storage[browser_key]
            if isinstance(value, str):
                try:
                    value = json.loads(value)
                except ValueError:
                    pass
            self.set(key, value)
            imported.append(key)
        return imported


def _require_company_and_position(data: Mapping[str, Any]) -> None:
    missing = [k for k in ("company", "position") if not str(data.get(k) or "").strip()]
    if missing:
        raise ValueError(f"Missing required fields: {', '.join(missing)}")


class JobStore:
    """
    Jobs kept locally, in insertion order. Every change is recorded through the log repository.
    """

    def __init__(self, state: LocalState, logs: LogRepository | None = None) -> None:
        self.state = state
        self.logs = logs

    def _raw(self) -> list[dict[str, Any]]:
        data = self.state.get("jobs", [])
        return [j for j in data if isinstance(j, dict)] if isinstance(data, list) else []

    def _save(self, jobs: list[dict[str, Any]]) -> None:
        self.state.set("jobs", jobs)

    def _log(self, action: str, job: Mapping[str, Any], details: str) -> None:
        if self.logs is None:
            return
        record = normalize_job(job)
        self.logs.add(
            {
                "timestamp": isoformat_utc(datetime.now(timezone.utc)),
                "action": action,
                "jobTitle": record.position,
                "company": record.company,
                "details": details,
                "username": self.state.get("user") or "",
            }
        )

    def list(self) -> list[JobRecord]:
        return [normalize_job(j) for j in self._raw()]

    def get(self, job_id: Any) -> JobRecord | None:
        for j in self._raw():
            if j.get("id") == job_id:
                return normalize_job(j)
        return None

    def add(self, data: Mapping[str, Any]) -> JobRecord:
        _require_company_and_position(data)
        jobs = self._raw()
        now = datetime.now(timezone.utc)
        new_job = {**dict(data), "id": int(time.time() * 1000), "createdAt": isoformat_utc(now)}
        # Two adds within the same millisecond would otherwise share an id.
        existing = {j.get("id") for j in jobs}
        while new_job["id"] in existing:
            new_job["id"] += 1
        jobs.append(new_job)
        self._save(jobs)
        self._log("created", new_job, "New job application added")
        return normalize_job(new_job)

    def update(self, job_id: Any, data: Mapping[str, Any]) -> JobRecord:
        jobs = self._raw()
        for i, j in enumerate(jobs):
            if j.get("id") == job_id:
                _require_company_and_position(data)
                updated = {**dict(data), "id": j.get("id")}
                if "createdAt" in j and "createdAt" not in updated:
                    updated["createdAt"] = j["createdAt"]
                jobs[i] = updated
                self._save(jobs)
                self._log("updated", updated, "Job details updated")
                return normalize_job(updated)
        raise KeyError(job_id)

    def update_stage(self, job_id: Any, field_name: str, value: str) -> JobRecord:
        name, v = check_stage(field_name, value)
        key = camel_name(name)
        jobs = self._raw()
        for i, j in enumerate(jobs):
            if j.get("id") == job_id:
                updated = {k: val for k, val in j.items() if k != name}
                updated[key] = v
                jobs[i] = updated
                self._save(jobs)
                self._log("status_update", updated, f"{key} updated to: {v}")
                return normalize_job(updated)
        raise KeyError(job_id)

    def remove(self, job_id: Any) -> bool:
        jobs = self._raw()
        remaining = [j for j in jobs if j.get("id") != job_id]
        if len(remaining) == len(jobs):
            return False
        removed = next(j for j in jobs if j.get("id") == job_id)
        self._save(remaining)
        self._log("deleted", removed, "Job application removed")
        return True
