from __future__ import annotations

import json

from app.services.log_api_client import LogApiError
from app.services.log_repository import (
    FallbackLogRepository,
    LocalCacheLogRepository,
    RemoteLogRepository,
)


class _FakeApi:
    """Stands in for LogApiClient; flips between working and failing."""

    def __init__(self, logs=None, *, fail=False):
        self.logs = list(logs or [])
        self.fail = fail
        self.created = []

    def list(self, filters=None):
        if self.fail:
            raise LogApiError("connection refused")
        return list(self.logs)

    def create(self, log):
        if self.fail:
            raise LogApiError("connection refused")
        self.created.append(dict(log))
        return {"success": True, "id": len(self.created)}


def _raw(id_, timestamp, **extra):
    data = {"id": id_, "timestamp": timestamp, "action": "created", "username": "alice", "company": "Acme"}
    data.update(extra)
    return data


def _repo(tmp_path, api):
    return FallbackLogRepository(RemoteLogRepository(api), LocalCacheLogRepository(tmp_path))


def test_remote_list_is_sorted_newest_first(tmp_path):
    api = _FakeApi([_raw(1, "2025-01-01T00:00:00Z"), _raw(2, "2025-01-03T00:00:00Z"), _raw(3, "2025-01-02T00:00:00Z")])
    logs = RemoteLogRepository(api).list()
    assert [log.id for log in logs] == [2, 3, 1]


def test_fallback_list_refreshes_cache_then_serves_it_offline(tmp_path):
    api = _FakeApi([_raw(1, "2025-01-01T00:00:00Z"), _raw(2, "2025-01-02T00:00:00Z")])
    repo = _repo(tmp_path, api)

    online = repo.list()
    assert [log.id for log in online] == [2, 1]
    cached = json.loads((tmp_path / "logs.json").read_text(encoding="utf-8"))
    assert [entry["id"] for entry in cached] == [2, 1]

    api.fail = True
    offline = repo.list()
    assert offline == online


def test_filtered_list_does_not_overwrite_cache(tmp_path):
    api = _FakeApi([_raw(1, "2025-01-01T00:00:00Z")])
    repo = _repo(tmp_path, api)
    repo.list({"company": "Acme"})
    assert not (tmp_path / "logs.json").exists()


def test_filtered_list_offline_applies_filters_to_cache(tmp_path):
    api = _FakeApi(
        [
            _raw(1, "2025-01-01T00:00:00Z", details="Applied"),
            _raw(2, "2025-01-02T00:00:00Z", company="Globex", action="status_update", jobId=7),
            _raw(3, "2025-01-03T00:00:00Z", company="Acme Labs", username="bob", details="Onsite booked"),
        ]
    )
    repo = _repo(tmp_path, api)
    repo.list()
    api.fail = True

    assert {log.company for log in repo.list({"company": "acme"})} == {"Acme", "Acme Labs"}
    assert [log.id for log in repo.list({"action": "status_update"})] == [2]
    assert [log.id for log in repo.list({"username": "bob"})] == [3]
    assert [log.id for log in repo.list({"jobId": 7})] == [2]
    assert [log.id for log in repo.list({"search": "ONSITE"})] == [3]
    assert [log.id for log in repo.list({"startDate": "2025-01-01T12:00:00Z", "endDate": "2025-01-02T12:00:00Z"})] == [2]
    assert [log.id for log in repo.list({"company": "acme", "limit": 1, "offset": 1})] == [1]
    # Empty values are ignored, as by the API.
    assert len(repo.list({"company": "", "action": None})) == 3


def test_cache_days_filter_uses_now(tmp_path):
    from datetime import datetime, timezone

    from app.services.log_repository import filter_logs

    cache = LocalCacheLogRepository(tmp_path)
    cache.replace([])
    cache.add(_raw(1, "2025-01-01T00:00:00Z"))
    cache.add(_raw(2, "2025-01-09T00:00:00Z"))

    now = datetime(2025, 1, 10, tzinfo=timezone.utc)
    assert [log.id for log in filter_logs(cache.list(), {"days": 3}, now=now)] == [2]


def test_close_closes_the_api_client(tmp_path):
    closed = []
    api = _FakeApi()
    api.close = lambda: closed.append(True)

    with _repo(tmp_path, api) as repo:
        repo.list()
    assert closed == [True]


def test_fallback_list_with_empty_cache(tmp_path):
    repo = _repo(tmp_path, _FakeApi(fail=True))
    assert repo.list() == []


def test_add_goes_to_api_when_available(tmp_path):
    api = _FakeApi()
    repo = _repo(tmp_path, api)
    record = repo.add({"timestamp": "2025-01-05T10:00:00Z", "action": "created", "username": "alice"})
    assert record.id == 1
    assert api.created[0]["action"] == "created"
    assert not (tmp_path / "logs.json").exists()


def test_add_falls_back_to_cache_with_epoch_id(tmp_path, monkeypatch):
    from app.services import log_repository

    monkeypatch.setattr(log_repository.time, "time", lambda: 1736071200.5)
    cache = LocalCacheLogRepository(tmp_path)
    cache.replace([])
    repo = FallbackLogRepository(RemoteLogRepository(_FakeApi(fail=True)), cache)

    repo.add({"timestamp": "2025-01-04T00:00:00Z", "action": "created", "username": "alice", "company": "Acme"})
    record = repo.add({"timestamp": "2025-01-05T10:00:00Z", "action": "updated", "username": "alice"})

    assert record.id == 1736071200500
    cached = json.loads((tmp_path / "logs.json").read_text(encoding="utf-8"))
    # Newest entry is prepended.
    assert [entry["action"] for entry in cached] == ["updated", "created"]


def test_cache_skips_unreadable_entries(tmp_path):
    (tmp_path / "logs.json").write_text(
        json.dumps([_raw(1, "2025-01-01T00:00:00Z"), _raw(2, "not-a-date"), "junk"]),
        encoding="utf-8",
    )
    logs = LocalCacheLogRepository(tmp_path).list()
    assert [log.id for log in logs] == [1]


def test_corrupt_cache_file_reads_as_empty(tmp_path):
    (tmp_path / "logs.json").write_text("{not json", encoding="utf-8")
    assert LocalCacheLogRepository(tmp_path).list() == []
