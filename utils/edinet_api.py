"""EDINET API v2 client.

Endpoints:
  {base}/documents.json?date=YYYY-MM-DD&type=2   document list (JSON)
  {base}/documents/{docID}?type=1                filing archive (zip)

Authentication is a subscription key sent in the
``Ocp-Apim-Subscription-Key`` header. There is no retry: a failed request
raises `EdinetApiError` and the caller decides whether that is fatal.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date
from typing import Any

import requests

from logging_utils import get_logger
from settings import SETTINGS

logger = get_logger(__name__)

SUBSCRIPTION_KEY_HEADER = "Ocp-Apim-Subscription-Key"

DOCUMENT_LIST_TYPE_METADATA_AND_LIST = 2
DOCUMENT_TYPE_ARCHIVE = 1


class EdinetApiError(RuntimeError):
    pass


@dataclass(frozen=True)
class EdinetResponse:
    url: str
    status_code: int
    content: bytes
    content_type: str | None

    def text(self, encoding: str | None = None) -> str:
        return self.content.decode(encoding or "utf-8", errors="replace")


@dataclass(frozen=True)
class FilingReference:
    """One entry of the EDINET document list. Lives only during a collection pass."""

    doc_id: str
    sec_code: str | None
    filer_name: str | None
    submitted_at: str | None
    doc_type_code: str | None
    doc_description: str | None = None
    edinet_code: str | None = None

    @classmethod
    def from_result(cls, row: dict[str, Any]) -> "FilingReference":
        def _s(key: str) -> str | None:
            v = row.get(key)
            if v is None:
                return None
            v = str(v).strip()
            return v or None

        return cls(
            doc_id=_s("docID") or "",
            sec_code=_s("secCode"),
            filer_name=_s("filerName"),
            # v2 uses submitDateTime; early mock files used submissionDateTime.
            submitted_at=_s("submitDateTime") or _s("submissionDateTime"),
            doc_type_code=_s("docTypeCode"),
            doc_description=_s("docDescription"),
            edinet_code=_s("edinetCode"),
        )


def _base_url() -> str:
    return str(SETTINGS.get("EDINET_BASE_URL") or "").rstrip("/")


def _safe_preview_bytes(data: bytes | None, *, limit: int = 2000) -> str:
    """Log-safe preview of a response body, truncated to `limit` bytes."""

    if not data:
        return ""
    return data[:limit].decode("utf-8", errors="replace")


def _headers_for_log(headers: dict[str, str]) -> dict[str, str]:
    """Return a redacted copy of headers for logging."""

    redacted: dict[str, str] = {}
    for k, v in (headers or {}).items():
        lk = str(k).lower()
        if (
            lk in {"authorization", SUBSCRIPTION_KEY_HEADER.lower()}
            or "key" in lk
            or "token" in lk
            or "secret" in lk
        ):
            redacted[str(k)] = "<redacted>"
        else:
            redacted[str(k)] = str(v)
    return redacted


def _request(
    *,
    url: str,
    api_key: str,
    params: dict[str, Any] | None = None,
    session: requests.Session | None = None,
    timeout_seconds: float | None = None,
) -> EdinetResponse:
    """Single HTTP GET against EDINET. Raises `EdinetApiError` on any failure."""

    s = session or requests.Session()
    headers = {
        SUBSCRIPTION_KEY_HEADER: api_key,
        "User-Agent": str(SETTINGS.get("EDINET_USER_AGENT") or "edinet-screener"),
    }
    timeout = timeout_seconds or float(SETTINGS.get("HTTP_TIMEOUT_SECONDS") or 60.0)

    try:
        resp = s.get(url, params=params, headers=headers, timeout=timeout)
    except requests.RequestException as e:
        logger.warning("EDINET request failed | url=%s params=%s err=%s", url, params, e)
        raise EdinetApiError(f"network error: {e}") from e

    if resp.status_code != 200:
        logger.warning(
            "EDINET non-200 response | status=%s url=%s params=%s content_type=%s headers=%s body_preview=%s",
            resp.status_code,
            url,
            params,
            resp.headers.get("Content-Type"),
            _headers_for_log(headers),
            _safe_preview_bytes(getattr(resp, "content", b"")),
        )
        raise EdinetApiError(
            f"EDINET request failed status={resp.status_code} url={url}"
        )

    return EdinetResponse(
        url=url,
        status_code=resp.status_code,
        content=resp.content,
        content_type=resp.headers.get("Content-Type"),
    )


def parse_document_list(payload: bytes | str) -> list[FilingReference]:
    """Decode a `documents.json` body into filing references.

    EDINET reports some errors (e.g. an invalid key) as HTTP 200 with a
    non-200 ``metadata.status``; those raise `EdinetApiError` too.
    """

    try:
        data = json.loads(payload)
    except (TypeError, ValueError) as e:
        preview = payload[:500] if isinstance(payload, (bytes, str)) else payload
        raise EdinetApiError(f"invalid document list JSON: {e}; body={preview!r}") from e

    if not isinstance(data, dict):
        raise EdinetApiError("invalid document list JSON: top level is not an object")

    meta = data.get("metadata") or {}
    status = str(meta.get("status", "200")) if isinstance(meta, dict) else "200"
    if status != "200":
        raise EdinetApiError(
            f"EDINET metadata status={status} message={meta.get('message')!r}"
        )

    results = data.get("results") or []
    return [FilingReference.from_result(r) for r in results if isinstance(r, dict)]


def fetch_document_list(
    target_date: date | str,
    *,
    api_key: str,
    session: requests.Session | None = None,
) -> list[FilingReference]:
    """Fetch the filing list for one submission date."""

    day = target_date.isoformat() if isinstance(target_date, date) else str(target_date)
    r = _request(
        url=f"{_base_url()}/documents.json",
        api_key=api_key,
        params={"date": day, "type": DOCUMENT_LIST_TYPE_METADATA_AND_LIST},
        session=session,
    )
    return parse_document_list(r.content)


def fetch_document_archive(
    doc_id: str,
    *,
    api_key: str,
    session: requests.Session | None = None,
) -> bytes:
    """Fetch the zip archive (XBRL and attachments) of one filing."""

    r = _request(
        url=f"{_base_url()}/documents/{doc_id}",
        api_key=api_key,
        params={"type": DOCUMENT_TYPE_ARCHIVE},
        session=session,
    )
    return r.content
