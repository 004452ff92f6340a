"""
Tests for the HTTP API.

The app runs in-process through FastAPI's TestClient. Settings, the
stores and the vendor client are swapped through dependency_overrides,
and the vendor itself is an httpx.MockTransport handler per test.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from sportstraining.api.dependencies import (
    get_preference_store,
    get_session_store,
    get_visualcoaching_client,
)
from sportstraining.config.settings import Settings, get_settings
from sportstraining.main import app

HEADERS = {"X-API-Key": "test-key"}

SESSION_LIST = [
    {
        "Url": "/Application/Program/Session/10?week=1&day=2&session=1&i=0",
        "SessionTitle": "Strength",
        "ClientName": "Sam",
        "Week": 1,
        "Day": 2,
        "DateStart": "2025-06-19T00:00:00",
    },
    {
        "Url": "/Application/Program/Session/10?week=1&day=2&session=0&i=0",
        "SessionTitle": "Strength",
        "ClientName": "Sam",
        "Week": 1,
        "Day": 2,
        "DateStart": "2025-06-19T00:00:00",
    },
]


def vendor(request: httpx.Request) -> httpx.Response:
    """A well-behaved Visual Coaching."""
    path = request.url.path
    if path == "/api/2/Account/Logon":
        return httpx.Response(200, json={"UserId": "1", "Cookie": "fresh-cookie"})
    if path == "/Application/Program/":
        return httpx.Response(200, json=SESSION_LIST)
    if path.startswith("/api/2/Program/Summary2/"):
        return httpx.Response(200, json={"SessionTitle": "Strength", "HtmlSummary": "<p>Squat</p>"})
    if path.startswith("/Application/Program/Session/"):
        return httpx.Response(200, text="<html><body>Training</body></html>")
    if path == "/Application/Client/GetUserInfo":
        return httpx.Response(200, json={"UserId": 42, "PerformanceDiaryId": 100, "WellnessDiaryId": 200})
    if path.startswith("/api/2/Form/GetForm/"):
        return httpx.Response(200, json={"date": "2025-06-19", "rpe": 7})
    if path.startswith("/api/2/Form/GetTemplate/"):
        return httpx.Response(200, json={"title": "Session RPE", "type": "performance",
                                         "fields": [{"name": "rpe", "type": "rating"}]})
    if path == "/api/2/Form/SubmitForm":
        return httpx.Response(200)
    return httpx.Response(404)


def expired(request: httpx.Request) -> httpx.Response:
    """A vendor that has forgotten our session."""
    return httpx.Response(401)


@pytest.fixture
def api(make_client, preferences, store):
    """
    Build a TestClient talking to the given vendor handler.

    Returns (test_client, recorder).
    """
    def factory(handler=vendor):
        client, recorder = make_client(handler)
        app.dependency_overrides[get_settings] = lambda: Settings(
            api_keys="test-key",
            preferences_mock_mode=True,
        )
        app.dependency_overrides[get_preference_store] = lambda: preferences
        app.dependency_overrides[get_session_store] = lambda: store
        app.dependency_overrides[get_visualcoaching_client] = lambda: client
        return TestClient(app), recorder

    yield factory

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Health and API keys
# ---------------------------------------------------------------------------

class TestHealth:

    def test_health_needs_no_key(self, api):
        test_client, _ = api()

        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["details"]["mock_mode"]["preferences"] is True

    def test_ready(self, api):
        test_client, _ = api()

        response = test_client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"


class TestApiKey:

    def test_missing_key(self, api):
        test_client, _ = api()
        response = test_client.get("/api/v1/auth/status")
        assert response.status_code == 403

    def test_wrong_key(self, api):
        test_client, _ = api()
        response = test_client.get("/api/v1/auth/status", headers={"X-API-Key": "nope"})
        assert response.status_code == 403


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

class TestAuthRoutes:

    def test_login_stores_session(self, api, store):
        test_client, _ = api()

        response = test_client.post(
            "/api/v1/auth/login",
            json={"email": "sam@example.com", "password": "secret"},
            headers=HEADERS,
        )

        assert response.status_code == 200
        assert response.json() == {"logged_in": True}
        assert store.get() == "fresh-cookie"
        assert test_client.get("/api/v1/auth/status", headers=HEADERS).json() == {"logged_in": True}

    def test_rejected_credentials(self, api, store):
        test_client, _ = api(expired)

        response = test_client.post(
            "/api/v1/auth/login",
            json={"email": "sam@example.com", "password": "wrong"},
            headers=HEADERS,
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password."
        assert not store.is_logged_in()

    def test_vendor_down(self, api):
        test_client, _ = api(lambda request: httpx.Response(500))

        response = test_client.post(
            "/api/v1/auth/login",
            json={"email": "sam@example.com", "password": "secret"},
            headers=HEADERS,
        )

        assert response.status_code == 502

    def test_empty_credentials_are_invalid(self, api):
        test_client, recorder = api()

        response = test_client.post("/api/v1/auth/login", json={"email": "", "password": ""}, headers=HEADERS)

        assert response.status_code == 422
        assert recorder.requests == []

    def test_logout(self, api, logged_in_store):
        test_client, _ = api()

        response = test_client.post("/api/v1/auth/logout", headers=HEADERS)

        assert response.json() == {"logged_in": False}
        assert not logged_in_store.is_logged_in()


# ---------------------------------------------------------------------------
# Programs
# ---------------------------------------------------------------------------

class TestProgramRoutes:

    def test_requires_login(self, api):
        test_client, recorder = api()

        response = test_client.get("/api/v1/programs", headers=HEADERS)

        assert response.status_code == 401
        assert response.json()["detail"] == "Please login to view your program."
        assert recorder.requests == []

    def test_lists_deduplicated_sessions(self, api, logged_in_store):
        test_client, recorder = api()

        response = test_client.get("/api/v1/programs", params={"date": "2025-06-19"}, headers=HEADERS)

        assert response.status_code == 200
        body = response.json()
        assert body["date"] == "2025-06-19"
        assert body["show_company_logo"] is False
        assert len(body["sessions"]) == 1
        assert body["sessions"][0]["url"] == (
            "/Application/Program/Session/10?week=1&day=2&session=0&i=0"
            "&format=Tablet&version=2&ad=2025-06-19"
        )
        assert recorder.last.url.params["date"] == "2025-06-19"

    def test_vendor_expiry_logs_out(self, api, logged_in_store):
        test_client, _ = api(expired)

        response = test_client.get("/api/v1/programs", headers=HEADERS)

        assert response.status_code == 401
        assert test_client.get("/api/v1/auth/status", headers=HEADERS).json() == {"logged_in": False}

    def test_vendor_outage_gives_empty_list(self, api, logged_in_store):
        test_client, _ = api(lambda request: httpx.Response(503))

        response = test_client.get("/api/v1/programs", headers=HEADERS)

        assert response.status_code == 200
        assert response.json()["sessions"] == []

    def test_branded_company_shows_logo(self, api, logged_in_store, preferences):
        preferences.set("SelectedCompany", "ETPA")
        test_client, _ = api()

        response = test_client.get("/api/v1/programs", headers=HEADERS)

        assert response.json()["show_company_logo"] is True

    def test_detail(self, api, logged_in_store):
        test_client, recorder = api()

        response = test_client.get(
            "/api/v1/programs/detail",
            params={"url": "/Application/Program/Session/10?week=1&day=2&session=0&i=0"},
            headers=HEADERS,
        )

        assert response.status_code == 200
        assert response.json()["title"] == "Strength"
        assert response.json()["html_summary"] == "<p>Squat</p>"
        assert recorder.last.url.params["key"] == "1:2:0:0"

    def test_detail_for_unparsable_url(self, api, logged_in_store):
        test_client, _ = api()

        response = test_client.get("/api/v1/programs/detail", params={"url": "/nowhere"}, headers=HEADERS)

        assert response.status_code == 404

    def test_training_html(self, api, logged_in_store):
        test_client, recorder = api()

        response = test_client.get(
            "/api/v1/programs/html",
            params={"url": "/Application/Program/Session/10?week=1&day=2&session=0&i=3"},
            headers=HEADERS,
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert response.text == "<html><body>Training</body></html>"
        assert recorder.last.url.params["i"] == "0"

    def test_training_html_never_leaves_vendor_host(self, api, logged_in_store):
        test_client, recorder = api()

        response = test_client.get(
            "/api/v1/programs/html",
            params={"url": "https://attacker.example/x"},
            headers=HEADERS,
        )

        assert response.status_code == 200
        assert response.text == ""
        assert recorder.requests == []
        assert logged_in_store.is_logged_in()

    def test_training_html_expiry(self, api, logged_in_store):
        test_client, _ = api(expired)

        response = test_client.get("/api/v1/programs/html", params={"url": "/Session/10"}, headers=HEADERS)

        assert response.status_code == 401
        assert not logged_in_store.is_logged_in()


# ---------------------------------------------------------------------------
# Diary
# ---------------------------------------------------------------------------

class TestDiaryRoutes:

    def test_requires_vendor_session(self, api):
        test_client, _ = api()

        response = test_client.get("/api/v1/diary/templates/100", headers=HEADERS)

        assert response.status_code == 401
        assert response.json()["detail"] == "Please login."

    def test_template(self, api, logged_in_store):
        test_client, _ = api()

        response = test_client.get("/api/v1/diary/templates/100", headers=HEADERS)

        assert response.status_code == 200
        body = response.json()
        assert body["diary_id"] == 100
        assert body["title"] == "Session RPE"
        assert body["fields"][0]["type"] == "rating"

    def test_template_with_numeric_names(self, api, logged_in_store):
        test_client, _ = api(lambda request: httpx.Response(
            200, json={"title": 2025, "fields": [{"name": 7, "required": "false"}]}
        ))

        response = test_client.get("/api/v1/diary/templates/5", headers=HEADERS)

        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "2025"
        assert body["fields"][0]["name"] == "7"
        assert body["fields"][0]["required"] is False

    def test_entry(self, api, logged_in_store):
        test_client, recorder = api()

        response = test_client.get(
            "/api/v1/diary/entries",
            params={
                "email": "sam@example.com",
                "date": "2025-06-19",
                "program_id": 7,
                "week": 1,
                "day_number": 2,
                "diary_type": "wellness",
            },
            headers=HEADERS,
        )

        assert response.status_code == 200
        assert response.json() == {"date": "2025-06-19", "fields": {"rpe": 7}}
        assert recorder.last.url.path == "/api/2/Form/GetForm/200"

    def test_entry_rejects_unknown_diary_type(self, api, logged_in_store):
        test_client, _ = api()

        response = test_client.get(
            "/api/v1/diary/entries",
            params={"email": "sam@example.com", "date": "2025-06-19", "program_id": 7,
                    "week": 1, "day_number": 2, "diary_type": "sleep"},
            headers=HEADERS,
        )

        assert response.status_code == 422

    def test_submit(self, api, logged_in_store):
        test_client, _ = api()

        response = test_client.post(
            "/api/v1/diary/entries",
            json={
                "diary_id": 100,
                "user_id": 42,
                "date": "2025-06-19",
                "program_id": 7,
                "week": 1,
                "day": 2,
                "fields": {"rpe": 8},
            },
            headers=HEADERS,
        )

        assert response.status_code == 200
        assert response.json() == {"accepted": True, "program_key": "7:001:002:000:000:000"}


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------

class TestPreferenceRoutes:

    def test_defaults(self, api):
        test_client, _ = api()

        response = test_client.get("/api/v1/preferences", headers=HEADERS)

        assert response.json() == {
            "selected_company": "Normal",
            "selected_units": "Metric",
            "notifications_enabled": True,
            "app_theme": "Light",
            "show_company_logo": False,
        }

    def test_partial_update(self, api, preferences):
        test_client, _ = api()

        response = test_client.put(
            "/api/v1/preferences",
            json={"selected_units": "Imperial", "notifications_enabled": False},
            headers=HEADERS,
        )

        body = response.json()
        assert body["selected_units"] == "Imperial"
        assert body["notifications_enabled"] is False
        assert body["app_theme"] == "Light"
        assert preferences.get("SelectedUnits") == "Imperial"

    def test_toggle_theme(self, api):
        test_client, _ = api()

        response = test_client.post("/api/v1/preferences/theme/toggle", headers=HEADERS)

        assert response.json()["app_theme"] == "Dark"
