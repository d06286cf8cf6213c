from __future__ import annotations

import json
from datetime import date

import pytest
import requests

import utils.edinet_api as api


class _FakeResponse:
    def __init__(
        self, *, status_code: int, content: bytes = b"ok", headers: dict | None = None
    ):
        self.status_code = status_code
        self.content = content
        self.headers = headers or {}


class _FakeSession:
    def __init__(self, responses):
        self._responses = list(responses)
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append(
            {"url": url, "params": params, "headers": headers or {}, "timeout": timeout}
        )
        if not self._responses:
            raise RuntimeError("No more fake responses")
        r = self._responses.pop(0)
        if isinstance(r, Exception):
            raise r
        return r


def _list_payload(results, status="200") -> bytes:
    return json.dumps(
        {"metadata": {"status": status, "message": "OK"}, "results": results}
    ).encode("utf-8")


def test_document_list_request_shape(monkeypatch):
    monkeypatch.setitem(api.SETTINGS, "EDINET_BASE_URL", "https://edinet.example/api/v2/")

    s = _FakeSession([_FakeResponse(status_code=200, content=_list_payload([]))])
    assert api.fetch_document_list(date(2025, 12, 25), api_key="secret-key", session=s) == []

    call = s.calls[0]
    assert call["url"] == "https://edinet.example/api/v2/documents.json"
    assert call["params"] == {"date": "2025-12-25", "type": 2}
    assert call["headers"][api.SUBSCRIPTION_KEY_HEADER] == "secret-key"
    assert "User-Agent" in call["headers"]


def test_document_list_parses_results():
    payload = _list_payload(
        [
            {
                "docID": "S100AAAA",
                "secCode": "72030",
                "filerName": "トヨタ自動車株式会社",
                "submitDateTime": "2025-11-13 15:30",
                "docTypeCode": "140",
                "docDescription": "四半期報告書",
                "edinetCode": "E02144",
            },
            {"docID": "S100BBBB", "secCode": None, "docTypeCode": "350"},
        ]
    )
    s = _FakeSession([_FakeResponse(status_code=200, content=payload)])
    refs = api.fetch_document_list("2025-11-13", api_key="k", session=s)

    assert [r.doc_id for r in refs] == ["S100AAAA", "S100BBBB"]
    assert refs[0].sec_code == "72030"
    assert refs[0].submitted_at == "2025-11-13 15:30"
    assert refs[0].edinet_code == "E02144"
    assert refs[1].sec_code is None


def test_metadata_error_status_raises():
    s = _FakeSession(
        [_FakeResponse(status_code=200, content=_list_payload([], status="401"))]
    )
    with pytest.raises(api.EdinetApiError, match="status=401"):
        api.fetch_document_list("2025-12-25", api_key="bad", session=s)


def test_invalid_json_raises():
    s = _FakeSession([_FakeResponse(status_code=200, content=b"<html>maintenance</html>")])
    with pytest.raises(api.EdinetApiError):
        api.fetch_document_list("2025-12-25", api_key="k", session=s)


@pytest.mark.parametrize("status_code", [400, 404, 500, 503])
def test_non_200_raises_without_retry(status_code):
    s = _FakeSession(
        [
            _FakeResponse(status_code=status_code, content=b"nope"),
            _FakeResponse(status_code=200, content=_list_payload([])),
        ]
    )
    with pytest.raises(api.EdinetApiError):
        api.fetch_document_list("2025-12-25", api_key="k", session=s)
    assert len(s.calls) == 1


def test_network_error_becomes_edinet_error():
    s = _FakeSession([requests.ConnectionError("boom")])
    with pytest.raises(api.EdinetApiError, match="network error"):
        api.fetch_document_archive("S100AAAA", api_key="k", session=s)


def test_archive_request_returns_bytes(monkeypatch):
    monkeypatch.setitem(api.SETTINGS, "EDINET_BASE_URL", "https://edinet.example/api/v2")
    s = _FakeSession([_FakeResponse(status_code=200, content=b"PK\x03\x04zip")])

    data = api.fetch_document_archive("S100AAAA", api_key="k", session=s)
    assert data == b"PK\x03\x04zip"
    assert s.calls[0]["url"] == "https://edinet.example/api/v2/documents/S100AAAA"
    assert s.calls[0]["params"] == {"type": 1}


def test_headers_for_log_redacts_subscription_key():
    out = api._headers_for_log(
        {api.SUBSCRIPTION_KEY_HEADER: "secret-key", "User-Agent": "ua"}
    )
    assert out[api.SUBSCRIPTION_KEY_HEADER] == "<redacted>"
    assert out["User-Agent"] == "ua"

