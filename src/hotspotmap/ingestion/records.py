"""
Record-store client.

The hotspot catalog lives in a NocoDB-style row store (`/api/v2/tables/{id}/records`).
The map engine only ever *lists* records; create/update/delete exist for the
admin tooling.

Failure policy:
- `list_records`, `create_record`, `delete_record` raise `DataError`.
- `update_record` returns a tagged outcome (`UpdateOk | RetryableError | FatalError`)
  so callers decide whether to retry; this module never retries on its own.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, Union

import httpx

from hotspotmap.catalog.loader import load_records, unwrap_records
from hotspotmap.config.settings import Settings
from hotspotmap.core.errors import DataError
from hotspotmap.core.http import request_json

logger = logging.getLogger(__name__)

PK_FIELD = "Id"


class RecordSource(Protocol):
    def list_records(self) -> list[dict[str, Any]]: ...


@dataclass(frozen=True)
class UpdateOk:
    record: dict[str, Any]


@dataclass(frozen=True)
class RetryableError:
    status_code: int | None
    message: str


@dataclass(frozen=True)
class FatalError:
    status_code: int | None
    message: str


UpdateOutcome = Union[UpdateOk, RetryableError, FatalError]


def _is_retryable_status(status: int) -> bool:
    return status == 429 or status >= 500


def _error_message(exc: httpx.HTTPStatusError) -> str:
    try:
        body = exc.response.json()
    except ValueError:
        body = exc.response.text
    if isinstance(body, dict):
        msg = body.get("message")
        nested = body.get("error")
        if not msg and isinstance(nested, dict):
            msg = nested.get("message")
        if msg:
            return str(msg)
    if isinstance(body, str) and body.strip():
        return body.strip()
    return f"HTTP {exc.response.status_code}"


class RecordsClient:
    """Thin CRUD client for the hotspot table."""

    def __init__(self, settings: Settings, *, transport: httpx.BaseTransport | None = None):
        cfg = settings.records
        if not cfg.base_url:
            raise ValueError("records.base_url is not configured")
        self._base = cfg.base_url.rstrip("/")
        self._table_id = cfg.table_id
        self._token = cfg.token or ""
        self._limit = int(cfg.page_limit)
        self._timeout = float(cfg.timeout_seconds)
        self._transport = transport

    @property
    def records_url(self) -> str:
        return f"{self._base}/api/v2/tables/{self._table_id}/records"

    def _request(self, method: str, *, params: dict[str, Any] | None = None, body: Any = None) -> Any:
        return request_json(
            method,
            self.records_url,
            params=params,
            json_body=body,
            headers={"xc-token": self._token},
            timeout_seconds=self._timeout,
            transport=self._transport,
        )

    def _call(self, method: str, **kwargs: Any) -> Any:
        try:
            return self._request(method, **kwargs)
        except httpx.HTTPStatusError as e:
            raise DataError(
                f"Record store {e.response.status_code}: {_error_message(e)}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise DataError(f"Record store unreachable: {e}") from e
        except ValueError as e:
            raise DataError(f"Record store returned invalid JSON: {e}") from e

    def list_records(self) -> list[dict[str, Any]]:
        payload = self._call("GET", params={"limit": self._limit})
        records = unwrap_records(payload)
        logger.info("Fetched %d hotspot records from the record store.", len(records))
        return records

    def create_record(self, data: dict[str, Any]) -> dict[str, Any]:
        created = unwrap_records(self._call("POST", body=data))
        if not created:
            raise DataError("Unexpected response while creating a record")
        return created[0]

    def update_record(self, row_id: int | str, data: dict[str, Any]) -> UpdateOutcome:
        if row_id is None or str(row_id).strip() == "":
            return FatalError(status_code=None, message="invalid row id")

        body = {k: v for k, v in data.items() if v is not None}
        body[PK_FIELD] = row_id
        try:
            payload = self._request("PATCH", body=body)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            cls = RetryableError if _is_retryable_status(status) else FatalError
            return cls(status_code=status, message=_error_message(e))
        except httpx.HTTPError as e:
            return RetryableError(status_code=None, message=str(e))
        except ValueError as e:
            return FatalError(status_code=None, message=f"invalid JSON: {e}")

        updated = unwrap_records(payload)
        return UpdateOk(record=updated[0] if updated else body)

    def delete_record(self, row_id: int | str) -> None:
        self._call("DELETE", body={PK_FIELD: row_id})


class LocalRecordSource:
    """Read-only record source backed by a JSON export."""

    def __init__(self, path: str | Path):
        self._path = path

    def list_records(self) -> list[dict[str, Any]]:
        try:
            return load_records(self._path)
        except (OSError, json.JSONDecodeError) as e:
            raise DataError(f"Cannot read hotspot catalog {self._path}: {e}") from e


def build_record_source(settings: Settings) -> RecordSource:
    """Use the remote row store when configured, otherwise the local catalog file."""
    if settings.records.base_url:
        return RecordsClient(settings)
    return LocalRecordSource(settings.catalog.path)
