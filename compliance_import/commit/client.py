from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

import requests

"""Batch commit collaborators.

The orchestrator only knows the BatchCommitter protocol: one call submitting
all accepted rows, returning ``{success, failed, errors: [{row, error}]}``
where ``row`` is the 1-based position inside the submitted batch.

- HttpBatchCommitter: POST to the console's import endpoint via requests
- DryRunCommitter: accepts everything without I/O (CLI --dry-run)

Nothing here retries. A partially applied batch may already have created
records, so a blind retry could duplicate them.
"""

__all__ = [
    "CommitError",
    "ServerRowError",
    "CommitResponse",
    "CommitMetrics",
    "BatchCommitter",
    "parse_commit_response",
    "HttpBatchCommitter",
    "DryRunCommitter",
]

logger = logging.getLogger(__name__)


class CommitError(Exception):
    """Transport or backend failure while submitting a batch.

    Distinct from validation problems so a caller can retry the commit
    without re-running validation.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class ServerRowError:
    row: int  # 1-based position within the submitted batch
    error: str


@dataclass(frozen=True)
class CommitResponse:
    success: int
    failed: int
    errors: list[ServerRowError] = field(default_factory=list)


@dataclass(frozen=True)
class CommitMetrics:
    """Timing data for a single batch submit."""
    batch_size: int  # Number of rows in this batch
    elapsed_seconds: float
    start_time: float  # time.time()
    end_time: float  # time.time()


class BatchCommitter(Protocol):
    def commit_batch(
        self, rows: Sequence[Mapping[str, Any]], context_params: Mapping[str, Any] | None = None
    ) -> CommitResponse: ...


def _as_count(payload: Mapping[str, Any], key: str) -> int:
    value = payload.get(key, 0)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise CommitError(f"malformed commit response: '{key}' must be a non-negative integer")
    return value


def parse_commit_response(payload: Any) -> CommitResponse:
    """Validate and convert a decoded commit endpoint response.

    Raises:
        CommitError: if the payload does not have the expected shape
    """
    if not isinstance(payload, Mapping):
        raise CommitError("malformed commit response: expected a JSON object")
    success = _as_count(payload, "success")
    failed = _as_count(payload, "failed")
    raw_errors = payload.get("errors") or []
    if not isinstance(raw_errors, list):
        raise CommitError("malformed commit response: 'errors' must be a list")
    errors: list[ServerRowError] = []
    for entry in raw_errors:
        if not isinstance(entry, Mapping):
            raise CommitError("malformed commit response: error entries must be objects")
        row = entry.get("row")
        if isinstance(row, bool) or not isinstance(row, int):
            raise CommitError("malformed commit response: error entry without integer 'row'")
        errors.append(ServerRowError(row=row, error=str(entry.get("error") or "rejected")))
    return CommitResponse(success=success, failed=failed, errors=errors)


class HttpBatchCommitter:
    """Submit a batch to the console's bulk import endpoint.

    Body: ``{"rows": [...], **context_params}``; context keys such as
    system_id / framework_id sit next to ``rows``.
    """

    def __init__(
        self,
        base_url: str,
        endpoint: str,
        *,
        token: str | None = None,
        timeout_seconds: float | None = None,
        session: requests.Session | None = None,
        metrics_callback: Callable[[CommitMetrics], None] | None = None,
    ) -> None:
        self.url = base_url.rstrip("/") + "/" + endpoint.lstrip("/")
        self._token = token
        self._timeout_seconds = timeout_seconds
        self._owns_session = session is None
        self._session = session or requests.Session()
        self._metrics_callback = metrics_callback

    def close(self) -> None:
        """Close the HTTP session if this committer created it."""
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> HttpBatchCommitter:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def commit_batch(
        self, rows: Sequence[Mapping[str, Any]], context_params: Mapping[str, Any] | None = None
    ) -> CommitResponse:
        body: dict[str, Any] = {"rows": [dict(r) for r in rows]}
        if context_params:
            body.update(context_params)

        start_time = time.time()
        try:
            response = self._session.post(
                self.url, json=body, headers=self._headers(), timeout=self._timeout_seconds
            )
        except (requests.Timeout, requests.ConnectionError) as e:
            logger.error("commit request failed url=%s error=%s", self.url, e)
            raise CommitError(f"commit request failed: {e}") from e
        except requests.RequestException as e:
            raise CommitError(f"commit request failed: {e}") from e
        finally:
            end_time = time.time()
            if self._metrics_callback is not None:
                self._metrics_callback(
                    CommitMetrics(
                        batch_size=len(body["rows"]),
                        elapsed_seconds=end_time - start_time,
                        start_time=start_time,
                        end_time=end_time,
                    )
                )

        if response.status_code >= 400:
            detail = _error_detail(response)
            logger.error("commit rejected url=%s status=%s detail=%s", self.url, response.status_code, detail)
            raise CommitError(
                f"commit endpoint returned HTTP {response.status_code}: {detail}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as e:
            raise CommitError("commit response was not valid JSON", status_code=response.status_code) from e
        return parse_commit_response(payload)


def _error_detail(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return (response.text or "").strip()[:200] or response.reason or "error"
    if isinstance(payload, Mapping) and payload.get("error"):
        return str(payload["error"])
    return str(payload)[:200]


class DryRunCommitter:
    """Accept every row without any network I/O."""

    def __init__(self) -> None:
        self.submitted: list[dict[str, Any]] = []
        self.context_params: dict[str, Any] | None = None

    def commit_batch(
        self, rows: Sequence[Mapping[str, Any]], context_params: Mapping[str, Any] | None = None
    ) -> CommitResponse:
        self.submitted = [dict(r) for r in rows]
        self.context_params = dict(context_params) if context_params else None
        return CommitResponse(success=len(self.submitted), failed=0, errors=[])
