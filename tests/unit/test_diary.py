"""
Unit tests for diary parsing and the diary endpoints.
"""

import json
from datetime import date

import httpx
import pytest

from sportstraining.core.sessions.models import UserInfo, build_program_key
from sportstraining.core.sessions.results import ResultStatus
from sportstraining.infrastructure.visualcoaching import parse_diary_entry, parse_diary_template

USER_INFO = {
    "DisplayName": "Sam Smith",
    "UserId": 42,
    "PerformanceDiaryId": 100,
    "WellnessDiaryId": 200,
}


# ---------------------------------------------------------------------------
# Programme Key
# ---------------------------------------------------------------------------

class TestBuildProgramKey:

    def test_pads_each_coordinate(self):
        assert build_program_key(1474814, 2, 5) == "1474814:002:005:000:000:000"

    def test_session_and_index(self):
        assert build_program_key(7, 12, 3, session=1, index=4) == "7:012:003:001:004:000"


class TestUserInfo:

    def test_wellness_diary(self):
        info = UserInfo(performance_diary_id=1, wellness_diary_id=2)
        assert info.diary_id_for("Wellness") == 2

    def test_anything_else_is_performance(self):
        info = UserInfo(performance_diary_id=1, wellness_diary_id=2)
        assert info.diary_id_for("performance") == 1
        assert info.diary_id_for("other") == 1


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------

class TestParseDiaryEntry:
    """Tests for diary payload parsing."""

    def test_date_is_lifted_out(self):
        entry = parse_diary_entry('{"date": "2025-06-19", "rpe": 7, "notes": "felt good"}')

        assert entry.date == "2025-06-19"
        assert entry.fields == {"rpe": 7, "notes": "felt good"}

    def test_missing_date(self):
        entry = parse_diary_entry('{"rpe": 7}')
        assert entry.date is None
        assert entry.fields == {"rpe": 7}

    @pytest.mark.parametrize("raw", [None, "", "  ", "not json", "[1, 2]"])
    def test_unusable_payload_gives_none(self, raw):
        assert parse_diary_entry(raw) is None


class TestParseDiaryTemplate:
    """Tests for diary template parsing."""

    def test_fields_are_parsed(self):
        raw = json.dumps({
            "diaryId": "100",
            "title": "Session RPE",
            "type": "performance",
            "fields": [
                {"name": "rpe", "label": "RPE", "type": "rating", "minValue": "1", "maxValue": 10,
                 "required": True},
                {"name": "feel", "type": "dropdown", "options": ["good", None, 3]},
                "ignored",
            ],
        })

        form = parse_diary_template(raw)

        assert form.diary_id == 100
        assert form.title == "Session RPE"
        assert form.type == "performance"
        assert len(form.fields) == 2

        rpe, feel = form.fields
        assert rpe.label == "RPE"
        assert rpe.required is True
        assert (rpe.min_value, rpe.max_value) == (1, 10)
        assert feel.options == ["good", "", "3"]
        assert feel.min_value is None

    def test_defaults(self):
        form = parse_diary_template("{}")

        assert form.title == "Diary"
        assert form.type == "unknown"
        assert form.fields == []

    def test_field_type_defaults_to_text(self):
        form = parse_diary_template('{"fields": [{"name": "notes"}]}')
        assert form.fields[0].type == "text"

    def test_non_numeric_bounds_are_dropped(self):
        form = parse_diary_template('{"fields": [{"name": "x", "minValue": "low", "maxValue": true}]}')
        assert form.fields[0].min_value is None
        assert form.fields[0].max_value is None

    def test_unusable_payload_gives_none(self):
        assert parse_diary_template("oops") is None

    @pytest.mark.parametrize("flag, expected", [("false", False), ("true", True), ("0", False), (1, True)])
    def test_required_flag_from_string(self, flag, expected):
        form = parse_diary_template(json.dumps({"fields": [{"name": "rpe", "required": flag}]}))
        assert form.fields[0].required is expected

    def test_numeric_text_values_become_strings(self):
        form = parse_diary_template('{"title": 2025, "fields": [{"name": 7, "label": 8.5}]}')

        assert form.title == "2025"
        assert form.fields[0].name == "7"
        assert form.fields[0].label == "8.5"

    def test_null_fields_list(self):
        assert parse_diary_template('{"title": null, "fields": null}').fields == []


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

def diary_vendor(user_info=USER_INFO, diary_body='{"date": "2025-06-19", "rpe": 6}', submit_status=200):
    """A vendor that serves user info, diary forms and templates."""
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/Application/Client/GetUserInfo":
            if user_info is None:
                return httpx.Response(200, text="")
            return httpx.Response(200, json=user_info)
        if path.startswith("/api/2/Form/GetForm/"):
            return httpx.Response(200, text=diary_body)
        if path.startswith("/api/2/Form/GetTemplate/"):
            return httpx.Response(200, json={"title": "Wellness", "fields": []})
        if path == "/api/2/Form/SubmitForm":
            return httpx.Response(submit_status)
        return httpx.Response(404)
    return handler


class TestUserInfoEndpoint:

    def test_parses_user(self, make_client, logged_in_store):
        client, recorder = make_client(diary_vendor())

        result = client.get_user_info("sam@example.com")

        assert result.ok
        assert result.value == UserInfo(
            display_name="Sam Smith", user_id=42, performance_diary_id=100, wellness_diary_id=200
        )
        assert recorder.last.url.params["email"] == "sam@example.com"

    def test_empty_body_is_not_found(self, make_client, logged_in_store):
        client, _ = make_client(diary_vendor(user_info=None))

        result = client.get_user_info("ghost@example.com")

        assert result.status is ResultStatus.NOT_FOUND
        assert result.value is None

    def test_unauthorized(self, make_client, logged_in_store):
        client, _ = make_client(lambda request: httpx.Response(401))

        result = client.get_user_info("sam@example.com")

        assert result.unauthorized
        assert not logged_in_store.is_logged_in()


class TestDiaryData:

    def test_fetch_by_ids(self, make_client, logged_in_store):
        client, recorder = make_client(diary_vendor())

        result = client.get_diary_data(100, date(2025, 6, 19), 42, "7:001:002:000:000:000")

        assert result.value == '{"date": "2025-06-19", "rpe": 6}'
        request = recorder.last
        assert request.url.path == "/api/2/Form/GetForm/100"
        assert dict(request.url.params) == {
            "date": "2025-06-19",
            "userId": "42",
            "programKey": "7:001:002:000:000:000",
            "matchTemplateId": "false",
            "createNew": "false",
        }

    def test_fetch_by_email_resolves_performance_diary(self, make_client, logged_in_store):
        client, recorder = make_client(diary_vendor())

        result = client.get_diary_data_by_email("sam@example.com", "2025-06-19", 7, 1, 2)

        assert result.ok
        assert [r.url.path for r in recorder.requests] == [
            "/Application/Client/GetUserInfo",
            "/api/2/Form/GetForm/100",
        ]
        assert recorder.last.url.params["programKey"] == "7:001:002:000:000:000"
        assert recorder.last.url.params["userId"] == "42"

    def test_fetch_by_email_wellness(self, make_client, logged_in_store):
        client, recorder = make_client(diary_vendor())

        client.get_diary_data_by_email("sam@example.com", "2025-06-19", 7, 1, 2, diary_type="wellness")

        assert recorder.last.url.path == "/api/2/Form/GetForm/200"

    def test_user_without_diary(self, make_client, logged_in_store):
        client, recorder = make_client(diary_vendor(user_info={"UserId": 42}))

        result = client.get_diary_data_by_email("sam@example.com", "2025-06-19", 7, 1, 2)

        assert result.status is ResultStatus.NOT_FOUND
        assert len(recorder.requests) == 1

    def test_unknown_user(self, make_client, logged_in_store):
        client, _ = make_client(diary_vendor(user_info=None))

        result = client.get_diary_data_by_email("ghost@example.com", "2025-06-19", 7, 1, 2)

        assert result.status is ResultStatus.NOT_FOUND


class TestSubmitDiary:

    def test_posts_fields_with_identifiers(self, make_client, logged_in_store):
        client, recorder = make_client(diary_vendor())

        result = client.submit_diary_data(100, 42, date(2025, 6, 19), "7:001:002:000:000:000", {"rpe": 8})

        assert result.ok
        assert result.value is True
        request = recorder.last
        assert request.method == "POST"
        assert json.loads(request.content) == {
            "date": "2025-06-19",
            "userId": 42,
            "programKey": "7:001:002:000:000:000",
            "diaryId": 100,
            "rpe": 8,
        }
        assert request.headers["Cookie"] == ".VCPCOOKIES=cookie-123"

    def test_rejected_submission(self, make_client, logged_in_store):
        client, _ = make_client(diary_vendor(submit_status=400))

        result = client.submit_diary_data(100, 42, "2025-06-19", "k", {})

        assert result.status is ResultStatus.TRANSPORT_FAULT
        assert result.value is False

    def test_expired_session(self, make_client, logged_in_store):
        client, _ = make_client(lambda request: httpx.Response(401))

        result = client.submit_diary_data(100, 42, "2025-06-19", "k", {})

        assert result.unauthorized
        assert result.value is False


class TestTemplateAndRawApi:

    def test_template(self, make_client, logged_in_store):
        client, recorder = make_client(diary_vendor())

        result = client.get_diary_template(200)

        assert parse_diary_template(result.value).title == "Wellness"
        assert recorder.last.url.path == "/api/2/Form/GetTemplate/200"

    def test_raw_api_returns_body(self, make_client, logged_in_store):
        client, _ = make_client(lambda request: httpx.Response(200, text="anything"))
        assert client.get_raw_api("/api/2/Whatever").value == "anything"

    def test_raw_api_failure_gives_empty_string(self, make_client, logged_in_store):
        client, _ = make_client(lambda request: httpx.Response(500))

        result = client.get_raw_api("/api/2/Whatever")

        assert result.value == ""
        assert result.status is ResultStatus.TRANSPORT_FAULT
