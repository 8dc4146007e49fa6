import base64
import json
import time
from datetime import datetime, timedelta, timezone

from visitrack.core.session_tokens import VISITOR_SESSION_KEY
from visitrack.models import VisitorSession

from conftest import CHROME_UA, FakeResponse

PAYLOAD = {
    "language": "en-GB",
    "screen_width": 390,
    "screen_height": 844,
    "color_depth": 24,
    "timezone_offset": 0,
    "platform": "iPhone",
    "cookie_enabled": True,
    "local_storage": True,
    "session_storage": True,
    "canvas_data_url": "data:image/png;base64,AAAA",
    "path": "/properties/42",
}


def test_health(client):
    response = client.get("/system/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_first_page_load_is_unique_and_sets_cookies(client):
    response = client.post("/track", json=PAYLOAD, headers={"User-Agent": CHROME_UA})

    assert response.status_code == 202
    body = response.json()
    assert body["tracked"] is True
    assert body["is_unique"] is True
    assert body["is_reload"] is False
    assert body["session_id"].startswith("session_")
    assert "visitor_session_v2" in response.cookies
    assert "session_page_visited" in response.cookies


def test_second_load_from_same_browser_is_returning(client, db):
    first = client.post("/track", json=PAYLOAD, headers={"User-Agent": CHROME_UA}).json()
    second = client.post("/track", json=PAYLOAD, headers={"User-Agent": CHROME_UA}).json()

    assert second["is_unique"] is False
    assert second["is_reload"] is True
    assert second["session_id"] == first["session_id"]
    assert second["fingerprint"] == first["fingerprint"]

    stats = client.get("/stats").json()
    assert stats["unique_visitors"] == 1
    assert stats["page_views"] == 2
    assert len(stats["daily_stats"]) == 1
    assert stats["daily_stats"][0]["page_views"] == 2


def test_new_visitor_gets_location_from_background_task(client, db, monkeypatch):
    monkeypatch.setattr(
        "visitrack.core.geolocation.requests.get",
        lambda url, timeout: FakeResponse(200, {"country_name": "India", "city": "Mumbai"}),
    )

    client.post("/track", json=PAYLOAD, headers={"User-Agent": CHROME_UA})

    db.expire_all()
    [row] = db.query(VisitorSession).all()
    assert row.location == {"country": "India", "city": "Mumbai"}


def test_admin_sessions_show_location_only_when_known(client, db, admin_auth):
    client.post("/track", json=PAYLOAD, headers={"User-Agent": CHROME_UA})
    db.expire_all()
    [row] = db.query(VisitorSession).all()
    row.location = None
    db.commit()

    [pending] = client.get("/stats/sessions", auth=admin_auth).json()
    assert pending["location"] == {}

    row.location = {"country": "India"}
    db.commit()

    [enriched] = client.get("/stats/sessions", auth=admin_auth).json()
    assert enriched["location"] == {"country": "India"}


def test_bot_is_acknowledged_but_not_counted(client, db):
    response = client.post("/track", json=PAYLOAD, headers={"User-Agent": "Twitterbot/1.0"})

    assert response.status_code == 202
    assert response.json() == {
        "tracked": False,
        "is_unique": False,
        "is_reload": False,
        "session_id": None,
        "fingerprint": None,
        "reason": "bot",
    }
    assert client.get("/stats").json()["page_views"] == 0
    assert db.query(VisitorSession).count() == 0


def test_admin_paths_are_not_tracked(client):
    payload = dict(PAYLOAD, path="/admin")
    body = client.post("/track", json=payload, headers={"User-Agent": CHROME_UA}).json()
    assert body["reason"] == "excluded_path"


def test_stats_are_empty_before_any_visit(client):
    assert client.get("/stats").json() == {
        "unique_visitors": 0,
        "page_views": 0,
        "last_visit": None,
        "daily_stats": [],
    }


def test_daily_stats_limit_is_validated(client):
    assert client.get("/stats/daily", params={"days": 0}).status_code == 422
    assert client.get("/stats/daily", params={"days": 3}).json() == []


def test_sessions_require_admin(client, admin_auth):
    client.post("/track", json=PAYLOAD, headers={"User-Agent": CHROME_UA})

    assert client.get("/stats/sessions").status_code == 401
    assert client.get("/stats/sessions", auth=("admin", "wrong")).status_code == 401

    sessions = client.get("/stats/sessions", auth=admin_auth).json()
    assert len(sessions) == 1
    assert sessions[0]["user_agent"] == CHROME_UA
    assert sessions[0]["page_views"] == 1
    assert sessions[0]["location"] == {}


def test_manual_maintenance_pass(client, db, admin_auth):
    stale = datetime.now(timezone.utc) - timedelta(days=45)
    db.add(VisitorSession(fingerprint="stale", session_id="session_old", first_visit=stale, last_visit=stale))
    db.commit()

    assert client.post("/system/maintenance").status_code == 401

    report = client.post("/system/maintenance", auth=admin_auth).json()
    assert report["old_sessions_deleted"] == 1

    stats = client.get("/system/maintenance/stats", auth=admin_auth).json()
    assert stats["total_sessions"] == 0
    assert stats["last_maintenance"] is not None


def test_session_cookie_with_numeric_id_is_reminted(client):
    bad = base64.urlsafe_b64encode(json.dumps({"sessionId": 123, "timestamp": int(time.time() * 1000)}).encode())
    client.cookies.set(VISITOR_SESSION_KEY, bad.decode().rstrip("="))

    response = client.post("/track", json=PAYLOAD, headers={"User-Agent": CHROME_UA})

    assert response.status_code == 202
    assert response.json()["session_id"].startswith("session_")
    assert VISITOR_SESSION_KEY in response.cookies
