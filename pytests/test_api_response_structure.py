from __future__ import annotations

from typing import Any

import pytest


def _assert_envelope(payload: Any) -> None:
    assert isinstance(payload, dict)
    assert set(payload.keys()) == {"ok", "data", "error", "meta"}

    assert isinstance(payload["ok"], bool)

    meta = payload["meta"]
    assert isinstance(meta, dict)
    assert "request_id" in meta

    # ok -> error must be null, fail -> error must be object
    if payload["ok"] is True:
        assert payload["error"] is None
    else:
        assert isinstance(payload["error"], dict)
        assert "code" in payload["error"]
        assert "message" in payload["error"]


@pytest.mark.parametrize(
    "path, expected_status",
    [
        ("/api/v1/stocks", 200),
        ("/api/v1/stocks/1301", 200),
        ("/api/v1/stocks/1301/prices", 200),
        ("/api/v1/screen", 200),
        ("/api/v1/stocks/0000", 404),
        ("/api/v1/stocks/0000/prices", 404),
        ("/api/v1/no-such-endpoint", 404),
    ],
)
def test_api_v1_json_envelope(client, path: str, expected_status: int):
    res = client.get(path)
    assert res.status_code == expected_status
    assert res.mimetype == "application/json"
    _assert_envelope(res.get_json())


def test_not_found_error_code(client):
    payload = client.get("/api/v1/stocks/0000").get_json()
    assert payload["ok"] is False
    assert payload["error"]["code"] == "not_found"


@pytest.mark.parametrize(
    "path, expected_status",
    [
        ("/", 200),
        ("/no-such-page", 404),
    ],
)
def test_pages_render_html(client, path: str, expected_status: int):
    res = client.get(path)
    assert res.status_code == expected_status
    assert res.mimetype == "text/html"


def test_list_responses_carry_count_meta(client):
    payload = client.get("/api/v1/screen").get_json()
    assert payload["meta"]["count"] == payload["data"]["count"] == len(payload["data"]["results"])

    payload = client.get("/api/v1/stocks").get_json()
    assert payload["meta"]["count"] == len(payload["data"])


def test_not_found_details_name_the_code(client):
    payload = client.get("/api/v1/stocks/0000/prices").get_json()
    assert payload["error"]["details"] == {"code": "0000"}
