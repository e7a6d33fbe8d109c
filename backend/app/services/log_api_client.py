from __future__ import annotations

import logging
import time
from typing import Any, Callable, Mapping

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = {408, 429}


class LogApiError(RuntimeError):
    """Base error for log API calls."""


class LogApiTimeoutError(LogApiError):
    """Raised when the overall time budget runs out."""


class LogApiResponseError(LogApiError):
    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


def clean_params(filters: Mapping[str, Any] | None) -> dict[str, Any]:
    """Flat query params; None and empty strings are dropped."""
    if not filters:
        return {}
    return {k: v for k, v in filters.items() if v is not None and v != ""}


class LogApiClient:
    """
    HTTP client for the activity log API.

    Transport errors, timeouts, 5xx, 408 and 429 are retried with exponential backoff,
    bounded by both `max_retries` and an overall `timeout` budget.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_base: float | None = None,
        backoff_max: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = (base_url or settings.LOG_API_BASE_URL).rstrip("/")
        self.timeout = settings.LOG_API_TIMEOUT_SECONDS if timeout is None else timeout
        self.max_retries = max(1, settings.LOG_API_MAX_RETRIES if max_retries is None else max_retries)
        self.backoff_base = settings.LOG_API_BACKOFF_BASE_SECONDS if backoff_base is None else backoff_base
        self.backoff_max = settings.LOG_API_BACKOFF_MAX_SECONDS if backoff_max is None else backoff_max
        self._sleep = sleep
        self._clock = clock
        self._client = client or httpx.Client(timeout=self.timeout)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "LogApiClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # --- endpoints ---

    def create(self, log: Mapping[str, Any]) -> dict[str, Any]:
        return self._request("POST", "/logs", json=dict(log))

    def list(self, filters: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        payload = self._request("GET", "/logs", params=clean_params(filters))
        data = payload.get("data")
        return list(data) if isinstance(data, list) else []

    def stats(self) -> list[dict[str, Any]]:
        payload = self._request("GET", "/logs/stats")
        data = payload.get("data")
        return list(data) if isinstance(data, list) else []

    def get(self, log_id: Any) -> dict[str, Any]:
        return self._request("GET", f"/logs/{log_id}").get("data") or {}

    def delete(self, log_id: Any) -> dict[str, Any]:
        return self._request("DELETE", f"/logs/{log_id}")

    def bulk_create(self, logs: list[Mapping[str, Any]]) -> dict[str, Any]:
        return self._request("POST", "/logs/bulk", json={"logs": [dict(log) for log in logs]})

    def health(self) -> dict[str, Any]:
        # The health endpoint is mounted at the server root, not under /api.
        root = self.base_url[: -len("/api")] if self.base_url.endswith("/api") else self.base_url
        try:
            response = self._client.get(f"{root}/health", timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Log API health check failed: %s", exc)
            return {"status": "unhealthy", "error": str(exc)}

    # --- transport ---

    def _backoff(self, attempt: int) -> float:
        return min(self.backoff_base * (2 ** (attempt - 1)), self.backoff_max)

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        deadline = self._clock() + self.timeout
        last_exc: LogApiError | None = None

        for attempt in range(1, self.max_retries + 1):
            remaining = deadline - self._clock()
            if remaining <= 0:
                raise LogApiTimeoutError(f"{method} {path} exceeded {self.timeout}s") from last_exc

            try:
                response = self._client.request(method, url, timeout=remaining, **kwargs)
            except httpx.TimeoutException as exc:
                last_exc = LogApiTimeoutError(f"{method} {path} timed out")
                last_exc.__cause__ = exc
            except httpx.TransportError as exc:
                last_exc = LogApiError(f"{method} {path} failed: {exc}")
                last_exc.__cause__ = exc
            else:
                if response.status_code < 400:
                    try:
                        payload = response.json()
                    except ValueError as exc:
                        raise LogApiError(f"{method} {path} returned invalid JSON") from exc
                    return payload if isinstance(payload, dict) else {"data": payload}

                error = LogApiResponseError(_error_message(response), response.status_code)
                if response.status_code < 500 and response.status_code not in RETRYABLE_STATUSES:
                    raise error
                last_exc = error

            if attempt == self.max_retries:
                break

            delay = self._backoff(attempt)
            if self._clock() + delay >= deadline:
                raise LogApiTimeoutError(f"{method} {path} exceeded {self.timeout}s") from last_exc
            logger.info("Retrying %s %s in %.2fs (attempt %d): %s", method, path, delay, attempt, last_exc)
            self._sleep(delay)

        assert last_exc is not None
        raise last_exc


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(payload, dict):
        msg = payload.get("message") or payload.get("error")
        if isinstance(msg, str) and msg:
            return msg
    return f"HTTP {response.status_code}"
