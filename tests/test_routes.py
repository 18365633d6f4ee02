"""API tests through the Flask test client."""

from __future__ import annotations

from datetime import date, timedelta

import pytest


def create(client, headers, **overrides):
    body = {"title": "Drink water", "category": "nutrition", "frequency": "daily"}
    body.update(overrides)
    response = client.post("/api/habits", json=body, headers=headers)
    assert response.status_code == 201, response.get_json()
    return response.get_json()


def created_day(habit: dict) -> date:
    return date.fromisoformat(habit["createdAt"][:10])


class TestAuth:
    @pytest.mark.parametrize(
        ("method", "path"),
        [
            ("get", "/api/habits"),
            ("post", "/api/habits"),
            ("get", "/api/progress/stats"),
            ("get", "/api/progress/gamification"),
            ("get", "/api/progress/categories"),
        ],
    )
    def test_missing_user_header_is_unauthorized(self, client, method, path):
        response = getattr(client, method)(path)

        assert response.status_code == 401
        assert response.get_json()["error"] == "unauthorized"

    def test_other_users_habit_is_not_found(self, client, auth_headers):
        habit = create(client, auth_headers)

        response = client.get(f"/api/habits/{habit['id']}", headers={"X-User-Id": "intruder"})

        assert response.status_code == 404
        assert response.get_json()["error"] == "habit_not_found"


class TestHabitEndpoints:
    def test_create_returns_normalized_habit(self, client, auth_headers):
        habit = create(client, auth_headers, category="Fitness", isAbsolute=False)

        assert habit["category"] == "physical"
        assert habit["isAbsolute"] is True
        assert habit["streak"] == 0
        assert habit["userId"] == "user-1"

    def test_create_frequency_habit(self, client, auth_headers):
        habit = create(client, auth_headers, frequency="3x-week", isAbsolute=False)

        assert habit["frequency"] == "3x-week"
        assert habit["isAbsolute"] is False

    @pytest.mark.parametrize(
        ("body", "field"),
        [
            ({"title": "   "}, "title"),
            ({"category": "sleep"}, "title"),
            ({"title": "Nap", "frequency": "hourly"}, "frequency"),
            ({"title": "Nap", "impact": 11}, "impact"),
        ],
    )
    def test_create_rejects_invalid_payload(self, client, auth_headers, body, field):
        response = client.post("/api/habits", json=body, headers=auth_headers)

        assert response.status_code == 400
        payload = response.get_json()
        assert payload["error"] == "invalid_data"
        assert field in payload["fields"]

    def test_create_rejects_non_object_body(self, client, auth_headers):
        response = client.post("/api/habits", json=["nope"], headers=auth_headers)
        assert response.status_code == 400

    def test_list_returns_habits_and_completions(self, client, auth_headers):
        habit = create(client, auth_headers)
        day = created_day(habit)
        client.post(
            f"/api/habits/{habit['id']}/toggle?today={day}", json={"date": str(day)}, headers=auth_headers
        )

        payload = client.get("/api/habits", headers=auth_headers).get_json()

        assert [item["id"] for item in payload["habits"]] == [habit["id"]]
        assert payload["completions"][0]["habitId"] == habit["id"]
        assert payload["completions"][0]["date"] == str(day)

    def test_patch_updates_only_given_fields(self, client, auth_headers):
        habit = create(client, auth_headers, frequency="weekly", isAbsolute=False)

        response = client.patch(
            f"/api/habits/{habit['id']}", json={"title": "Drink more water"}, headers=auth_headers
        )

        assert response.status_code == 200
        updated = response.get_json()
        assert updated["title"] == "Drink more water"
        assert updated["frequency"] == "weekly"
        assert updated["category"] == "nutrition"

    def test_patch_to_daily_forces_absolute(self, client, auth_headers):
        habit = create(client, auth_headers, frequency="weekly", isAbsolute=False)

        updated = client.patch(
            f"/api/habits/{habit['id']}", json={"frequency": "daily"}, headers=auth_headers
        ).get_json()

        assert updated["isAbsolute"] is True

    def test_patch_missing_habit(self, client, auth_headers):
        response = client.patch("/api/habits/missing", json={"title": "x"}, headers=auth_headers)
        assert response.status_code == 404

    def test_delete(self, client, auth_headers):
        habit = create(client, auth_headers)

        assert client.delete(f"/api/habits/{habit['id']}", headers=auth_headers).status_code == 204
        assert client.get(f"/api/habits/{habit['id']}", headers=auth_headers).status_code == 404
        assert client.delete(f"/api/habits/{habit['id']}", headers=auth_headers).status_code == 404


class TestToggleEndpoint:
    def test_toggle_twice(self, client, auth_headers):
        habit = create(client, auth_headers)
        day = created_day(habit)
        url = f"/api/habits/{habit['id']}/toggle?today={day}"

        first = client.post(url, json={"date": f"{day}T21:15:00Z"}, headers=auth_headers)
        assert first.status_code == 200
        assert first.get_json()["completion"]["completed"] is True
        assert first.get_json()["completion"]["date"] == str(day)
        assert first.get_json()["streak"] == 1

        second = client.post(url, json={"date": str(day)}, headers=auth_headers).get_json()
        assert second["completion"]["completed"] is False
        assert second["streak"] == 0

    def test_toggle_requires_a_date(self, client, auth_headers):
        habit = create(client, auth_headers)

        response = client.post(f"/api/habits/{habit['id']}/toggle", json={}, headers=auth_headers)

        assert response.status_code == 400
        assert "date" in response.get_json()["fields"]

    def test_toggle_unknown_habit(self, client, auth_headers):
        response = client.post(
            "/api/habits/missing/toggle", json={"date": "2024-01-10"}, headers=auth_headers
        )
        assert response.status_code == 404

    def test_weekly_progress(self, client, auth_headers):
        habit = create(client, auth_headers, frequency="2x-week", isAbsolute=False)
        day = created_day(habit)
        client.post(
            f"/api/habits/{habit['id']}/toggle?today={day}", json={"date": str(day)}, headers=auth_headers
        )

        payload = client.get(
            f"/api/habits/{habit['id']}/weekly?week_start={day}", headers=auth_headers
        ).get_json()

        assert payload["weekStart"] == str(day - timedelta(days=day.weekday()))
        assert (payload["completed"], payload["target"], payload["met"]) == (1, 2, False)


class TestProgressEndpoints:
    def test_stats(self, client, auth_headers):
        habit = create(client, auth_headers)
        day = created_day(habit)
        client.post(
            f"/api/habits/{habit['id']}/toggle?today={day}", json={"date": str(day)}, headers=auth_headers
        )

        payload = client.get(
            f"/api/progress/stats?timeframe=week&today={day}", headers=auth_headers
        ).get_json()

        assert payload["timeframe"] == "week"
        assert payload["totalHabits"] == 1
        assert payload["activeHabits"] == 1
        assert payload["completionRate"] == 14
        assert payload["maxStreak"] == 1
        assert len(payload["dailyProgress"]) == 7

    def test_stats_defaults_to_week(self, client, auth_headers):
        payload = client.get("/api/progress/stats", headers=auth_headers).get_json()

        assert payload["timeframe"] == "week"
        assert payload["completionRate"] == 0
        assert payload["categoryBreakdown"] == []

    def test_stats_rejects_unknown_timeframe(self, client, auth_headers):
        response = client.get("/api/progress/stats?timeframe=decade", headers=auth_headers)

        assert response.status_code == 400
        assert "timeframe" in response.get_json()["fields"]

    def test_invalid_today_parameter(self, client, auth_headers):
        response = client.get("/api/progress/streaks?today=soon", headers=auth_headers)

        assert response.status_code == 400
        assert "today" in response.get_json()["fields"]

    def test_streaks(self, client, auth_headers):
        habit = create(client, auth_headers)
        day = created_day(habit)
        client.post(
            f"/api/habits/{habit['id']}/toggle?today={day}", json={"date": str(day)}, headers=auth_headers
        )

        payload = client.get(f"/api/progress/streaks?today={day}", headers=auth_headers).get_json()

        assert payload["today"] == str(day)
        assert payload["streaks"] == [
            {
                "habitId": habit["id"],
                "currentStreak": 1,
                "longestStreak": 1,
                "nextMilestone": 3,
                "milestoneProgress": 33,
            }
        ]

    def test_gamification(self, client, auth_headers):
        habit = create(client, auth_headers)
        day = created_day(habit)
        client.post(
            f"/api/habits/{habit['id']}/toggle?today={day}", json={"date": str(day)}, headers=auth_headers
        )

        payload = client.get(f"/api/progress/gamification?today={day}", headers=auth_headers).get_json()

        # 1 habit, 1 completion, 1-day streak
        assert payload["xp"] == 10 + 5 + 2
        assert payload["level"] == 1
        assert payload["unlockedCount"] == 2

    def test_categories(self, client, auth_headers):
        habit = create(client, auth_headers)
        day = created_day(habit)
        client.post(
            f"/api/habits/{habit['id']}/toggle?today={day}", json={"date": str(day)}, headers=auth_headers
        )

        payload = client.get(
            f"/api/progress/categories?start={day}&end={day}", headers=auth_headers
        ).get_json()

        assert payload["start"] == payload["end"] == str(day)
        (category,) = payload["categories"]
        assert category["name"] == habit["category"]
        assert category["series"] == [{"date": str(day), "value": 100}]
        assert category["latest"] == 100
        assert (category["trend"], category["trendPercentage"]) == ("stable", 0)

    def test_categories_default_to_four_weeks(self, client, auth_headers):
        payload = client.get("/api/progress/categories?end=2024-01-29", headers=auth_headers).get_json()

        assert (payload["start"], payload["end"]) == ("2024-01-01", "2024-01-29")
        assert payload["categories"] == []

    def test_categories_reject_inverted_range(self, client, auth_headers):
        response = client.get(
            "/api/progress/categories?start=2024-02-01&end=2024-01-01", headers=auth_headers
        )

        assert response.status_code == 400
        assert "start" in response.get_json()["fields"]


def test_unknown_route_returns_json_404(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.get_json()["error"] == "not_found"


def test_exhausted_conflict_retries_return_json_500(app, client, auth_headers, monkeypatch):
    from sqlalchemy.exc import IntegrityError

    from habitpulse.infra.repositories.habit import SQLModelHabitRepository

    habit = create(client, auth_headers)

    def always_conflicts(self, *args, **kwargs):
        raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

    monkeypatch.setattr(SQLModelHabitRepository, "_toggle_once", always_conflicts)
    app.config["PROPAGATE_EXCEPTIONS"] = False

    response = client.post(
        f"/api/habits/{habit['id']}/toggle", json={"date": "2024-01-10"}, headers=auth_headers
    )

    assert response.status_code == 500
    assert response.get_json() == {"error": "internal_error", "message": "Internal server error."}
