from __future__ import annotations

import requests


def test_live_server_serves_dashboard_and_api(seeded_live_server):
    base = seeded_live_server.base_url

    page = requests.get(f"{base}/", timeout=5)
    assert page.status_code == 200
    assert "text/html" in page.headers["Content-Type"]

    res = requests.get(f"{base}/api/v1/screen", params={"limit": 5}, timeout=5)
    assert res.status_code == 200
    payload = res.json()
    assert payload["ok"] is True
    assert [r["code"] for r in payload["data"]["results"]] == ["1301", "9984"]
