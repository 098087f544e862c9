"""
Integration tests for API endpoints using a SQLite test DB.

These run against the real clock; each test works on its own user id.
"""
import pytest

from timey.core import dates
from timey.services.store import ProfileStore


def _create(client, user_id, **extra):
    r = client.post("/profiles", json={"user_id": user_id, **extra})
    assert r.status_code == 201
    return r.json()


class TestHealth:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        body = r.json()
        assert body["status"] == "ok"
        assert body["chores"] == 12
        assert isinstance(body["profiles"], int)


class TestRewardsCatalog:
    def test_list_rewards(self, client):
        r = client.get("/rewards")
        assert r.status_code == 200
        body = r.json()
        assert [item["id"] for item in body] == ["EXTEND_PLAY_TIME", "REDUCE_COOLDOWN"]
        assert all(item["value"] == 5 for item in body)


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------

class TestProfiles:
    def test_create_profile(self, client):
        body = _create(client, "api_create", email="kid@example.com")
        today = dates.today()
        assert body["user_id"] == "api_create"
        assert body["display_name"] == "kid"
        assert body["stats"] == {"level": 1, "xp_into_level": 0, "xp_to_next_level": 840, "total_xp": 0}
        day = body["profile"]["history"][today]
        assert len(day["chores"]) == 12
        assert day["completed"] is False
        assert day["playTime"] == {"sessions": []}
        assert body["timer"]["play_time_minutes"] == 60
        assert body["timer"]["cooldown_minutes"] == 60

    def test_create_twice_conflicts(self, client):
        _create(client, "api_dupe")
        r = client.post("/profiles", json={"user_id": "api_dupe"})
        assert r.status_code == 409
        assert r.json()["code"] == "PROFILE_ALREADY_EXISTS"

    def test_create_requires_user_id(self, client):
        r = client.post("/profiles", json={"user_id": ""})
        assert r.status_code == 422
        assert r.json()["code"] == "VALIDATION_ERROR"

    def test_get_profile(self, client):
        _create(client, "api_get", display_name="Sam")
        r = client.get("/profiles/api_get")
        assert r.status_code == 200
        body = r.json()
        assert body["display_name"] == "Sam"
        assert body["aggregate"]["days_tracked"] == 1

    def test_get_missing_profile(self, client):
        r = client.get("/profiles/api_nobody")
        assert r.status_code == 404
        body = r.json()
        assert body["code"] == "PROFILE_NOT_FOUND"
        assert body["details"]["user_id"] == "api_nobody"

    def test_list_profiles(self, client):
        _create(client, "api_list_one", display_name="One")
        r = client.get("/profiles")
        assert r.status_code == 200
        body = r.json()
        assert body["total"] == len(body["items"])
        item = next(i for i in body["items"] if i["user_id"] == "api_list_one")
        assert item["display_name"] == "One"
        assert item["stats"]["level"] == 1
        assert item["last_updated"]

    def test_list_skips_unreadable_profiles(self, client, db):
        ProfileStore(db).save("api_list_garbage", {"history": ["not", "a", "mapping"]})
        r = client.get("/profiles")
        assert r.status_code == 200
        assert "api_list_garbage" not in [i["user_id"] for i in r.json()["items"]]


# ---------------------------------------------------------------------------
# Chores
# ---------------------------------------------------------------------------

class TestChores:
    def test_complete_chore(self, client):
        _create(client, "api_chore")
        r = client.patch("/profiles/api_chore/chores/0", json={"status": "completed"})
        assert r.status_code == 200
        body = r.json()
        chore = body["profile"]["history"][dates.today()]["chores"][0]
        assert chore["status"] == "completed"
        assert chore["completedAt"].startswith(dates.today())
        assert body["stats"]["total_xp"] == 10

    def test_uncomplete_chore(self, client):
        _create(client, "api_unchore")
        client.patch("/profiles/api_unchore/chores/3", json={"status": "completed"})
        r = client.patch("/profiles/api_unchore/chores/3", json={"status": "na"})
        chore = r.json()["profile"]["history"][dates.today()]["chores"][3]
        assert chore["status"] == "na"
        assert "completedAt" not in chore
        assert r.json()["stats"]["total_xp"] == 0

    def test_invalid_status(self, client):
        _create(client, "api_bad_status")
        r = client.patch("/profiles/api_bad_status/chores/0", json={"status": "done"})
        assert r.status_code == 422
        assert r.json()["code"] == "VALIDATION_ERROR"

    def test_chore_not_on_todays_list(self, client):
        _create(client, "api_no_chore")
        r = client.patch("/profiles/api_no_chore/chores/99", json={"status": "completed"})
        assert r.status_code == 404
        body = r.json()
        assert body["code"] == "CHORE_NOT_SCHEDULED"
        assert body["details"] == {"chore_id": 99, "day": dates.today()}

    def test_chore_on_missing_profile(self, client):
        r = client.patch("/profiles/api_ghost/chores/0", json={"status": "completed"})
        assert r.status_code == 404
        assert r.json()["code"] == "PROFILE_NOT_FOUND"

    def test_replace_schedule(self, client):
        _create(client, "api_schedule")
        client.patch("/profiles/api_schedule/chores/1", json={"status": "completed"})
        r = client.put("/profiles/api_schedule/chores", json={"chores": [
            {"id": 1, "text": "Take medicine"},
            {"id": 20, "text": "Walk the dog", "daysOfWeek": list(range(7))},
        ]})
        assert r.status_code == 200
        profile = r.json()["profile"]
        assert [c["id"] for c in profile["chores"]] == [1, 20]
        today = profile["history"][dates.today()]["chores"]
        assert [(c["id"], c["status"]) for c in today] == [(1, "completed"), (20, "incomplete")]
        assert r.json()["stats"]["total_xp"] == 10

    def test_replace_schedule_rejects_bad_weekday(self, client):
        _create(client, "api_schedule_bad")
        r = client.put("/profiles/api_schedule_bad/chores", json={"chores": [
            {"id": 1, "text": "Take medicine", "daysOfWeek": [9]},
        ]})
        assert r.status_code == 422


# ---------------------------------------------------------------------------
# Finalize day
# ---------------------------------------------------------------------------

class TestFinalizeDay:
    def test_finalize_today(self, client):
        _create(client, "api_finalize")
        client.patch("/profiles/api_finalize/chores/0", json={"status": "completed"})
        r = client.post("/profiles/api_finalize/finalize-day", json={})
        assert r.status_code == 200
        day = r.json()["profile"]["history"][dates.today()]
        assert day["completed"] is True
        assert day["xp"] == {"gained": 10, "penalties": 110, "final": -100}
        assert r.json()["stats"]["total_xp"] == 0

    def test_finalize_twice_conflicts(self, client):
        _create(client, "api_finalize_twice")
        client.post("/profiles/api_finalize_twice/finalize-day", json={})
        r = client.post("/profiles/api_finalize_twice/finalize-day", json={})
        assert r.status_code == 409
        assert r.json()["code"] == "DAY_ALREADY_CLOSED"

    def test_closed_day_chores_are_frozen(self, client):
        _create(client, "api_frozen")
        client.post("/profiles/api_frozen/finalize-day", json={})
        r = client.patch("/profiles/api_frozen/chores/0", json={"status": "completed"})
        assert r.status_code == 409
        assert r.json()["details"]["day"] == dates.today()

    def test_finalize_explicit_past_day(self, client, db):
        ProfileStore(db).save("api_finalize_past", {"history": {
            "2024-07-04": {
                "date": "2024-07-04",
                "chores": [{"id": 0, "text": "Take medicine", "status": "incomplete"}],
                "completed": False,
            },
        }})
        r = client.post("/profiles/api_finalize_past/finalize-day", json={"day": "2024-07-04"})
        assert r.status_code == 200
        day = r.json()["profile"]["history"]["2024-07-04"]
        assert day["completed"] is True
        assert day["xp"]["penalties"] == 10

    def test_finalize_missing_day(self, client):
        _create(client, "api_finalize_missing")
        r = client.post("/profiles/api_finalize_missing/finalize-day", json={"day": "2020-01-01"})
        assert r.status_code == 404
        assert r.json()["code"] == "DAY_NOT_FOUND"

    def test_finalize_bad_day_format(self, client):
        _create(client, "api_finalize_format")
        r = client.post("/profiles/api_finalize_format/finalize-day", json={"day": "yesterday"})
        assert r.status_code == 422
        assert r.json()["code"] == "VALIDATION_ERROR"


# ---------------------------------------------------------------------------
# Rewards and play sessions
# ---------------------------------------------------------------------------

class TestUseReward:
    def test_no_tokens(self, client):
        _create(client, "api_no_tokens")
        r = client.post("/profiles/api_no_tokens/rewards/use", json={"type": "EXTEND_PLAY_TIME"})
        assert r.status_code == 409
        assert r.json()["code"] == "NO_REWARDS_AVAILABLE"

    def test_redeem_default_value(self, client, db):
        ProfileStore(db).save("api_redeem", {"rewards": {"available": 2, "permanent": {}}})
        r = client.post("/profiles/api_redeem/rewards/use", json={"type": "EXTEND_PLAY_TIME"})
        assert r.status_code == 200
        body = r.json()
        assert body["profile"]["rewards"] == {"available": 1, "permanent": {"EXTEND_PLAY_TIME": 5}}
        assert body["timer"]["play_time_minutes"] == 65
        used = body["profile"]["history"][dates.today()]["rewardsUsed"]
        assert [(u["type"], u["value"]) for u in used] == [("EXTEND_PLAY_TIME", 5)]

    def test_redeem_custom_value(self, client, db):
        ProfileStore(db).save("api_redeem_custom", {"rewards": {"available": 1}})
        r = client.post(
            "/profiles/api_redeem_custom/rewards/use",
            json={"type": "REDUCE_COOLDOWN", "value": 15},
        )
        assert r.status_code == 200
        assert r.json()["timer"]["cooldown_minutes"] == 45
        assert r.json()["timer"]["cooldown_reduction"] == 15

    def test_unknown_reward_type(self, client, db):
        ProfileStore(db).save("api_redeem_bad", {"rewards": {"available": 1}})
        r = client.post("/profiles/api_redeem_bad/rewards/use", json={"type": "DOUBLE_XP"})
        assert r.status_code == 422


class TestPlaySessions:
    def test_start_and_end(self, client):
        _create(client, "api_play")
        r = client.post("/profiles/api_play/sessions/start")
        assert r.status_code == 200
        sessions = r.json()["profile"]["history"][dates.today()]["playTime"]["sessions"]
        assert len(sessions) == 1
        assert "end" not in sessions[0]

        # a second start while one is open changes nothing
        r = client.post("/profiles/api_play/sessions/start")
        assert len(r.json()["profile"]["history"][dates.today()]["playTime"]["sessions"]) == 1

        r = client.post("/profiles/api_play/sessions/end")
        session = r.json()["profile"]["history"][dates.today()]["playTime"]["sessions"][0]
        assert session["end"] >= session["start"]
        assert r.json()["aggregate"]["play"]["total_sessions"] == 1

    def test_end_without_open_session(self, client):
        _create(client, "api_play_idle")
        r = client.post("/profiles/api_play_idle/sessions/end")
        assert r.status_code == 200
        assert r.json()["profile"]["history"][dates.today()]["playTime"]["sessions"] == []


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------

class TestHistory:
    @pytest.fixture()
    def seeded(self, db):
        ProfileStore(db).save("api_history", {"history": {
            "2025-03-01": {
                "date": "2025-03-01",
                "chores": [
                    {"id": 0, "text": "a", "status": "completed", "completedAt": "2025-03-01T09:00:00.000"},
                    {"id": 1, "text": "b", "status": "incomplete"},
                ],
                "playTime": {"sessions": [{"start": "2025-03-01T10:00:00.000", "end": "2025-03-01T11:05:00.000"}]},
                "xp": {"gained": 10, "penalties": 10, "final": 0},
                "completed": True,
            },
            "2025-03-02": {"date": "2025-03-02", "completed": True},
            "2025-03-03": {"date": "2025-03-03", "completed": True},
        }})
        return "api_history"

    def test_newest_first(self, client, seeded):
        r = client.get(f"/profiles/{seeded}/history")
        assert r.status_code == 200
        body = r.json()
        assert body["total"] == 3
        assert [d["date"] for d in body["items"]] == ["2025-03-03", "2025-03-02", "2025-03-01"]

    def test_day_summary(self, client, seeded):
        r = client.get(f"/profiles/{seeded}/history", params={"limit": 1, "offset": 2})
        (day,) = r.json()["items"]
        assert day["display_date"] == "March 1, 2025"
        assert day["xp"] == {"gained": 10, "penalties": 10, "final": 0}
        assert day["chores"] == {"total": 2, "completed": 1, "completion_rate": 50}
        assert day["play"] == {"total_minutes": 65, "total_sessions": 1, "formatted": "1:05"}
        assert day["rewards_used"] == 0

    def test_history_is_read_only(self, client, seeded, db):
        client.get(f"/profiles/{seeded}/history")
        db.expire_all()
        assert dates.today() not in ProfileStore(db).load(seeded)["history"]

    def test_bad_limit(self, client, seeded):
        r = client.get(f"/profiles/{seeded}/history", params={"limit": 0})
        assert r.status_code == 422


# ---------------------------------------------------------------------------
# Damaged stored documents
# ---------------------------------------------------------------------------

class TestUnreadableProfiles:
    @pytest.fixture()
    def broken(self, db):
        ProfileStore(db).save("api_broken", {"history": [1, 2]})
        return "api_broken"

    @pytest.mark.parametrize("method,path,payload", [
        ("get", "/profiles/{}", None),
        ("get", "/profiles/{}/history", None),
        ("post", "/profiles/{}/finalize-day", {}),
    ])
    def test_read_paths_report_unreadable(self, client, broken, method, path, payload):
        kwargs = {"json": payload} if payload is not None else {}
        r = getattr(client, method)(path.format(broken), **kwargs)
        assert r.status_code == 422
        body = r.json()
        assert body["code"] == "PROFILE_UNREADABLE"
        assert body["details"]["user_id"] == broken
        assert body["details"]["errors"] >= 1

    def test_document_left_untouched(self, client, broken, db):
        client.get(f"/profiles/{broken}")
        db.expire_all()
        assert ProfileStore(db).load(broken)["history"] == [1, 2]

    def test_unreadable_session_times_still_render(self, client, db):
        ProfileStore(db).save("api_bad_times", {"history": {
            "2025-03-01": {
                "date": "2025-03-01",
                "playTime": {"sessions": [{"start": "garbage", "end": "2025-03-01T11:00:00.000"}]},
                "completed": True,
            },
        }})
        r = client.get("/profiles/api_bad_times")
        assert r.status_code == 200
        assert r.json()["aggregate"]["play"] == {"total_minutes": 0, "total_sessions": 1, "formatted": "0:00"}

        r = client.get("/profiles/api_bad_times/history")
        assert r.status_code == 200
        assert r.json()["items"][0]["play"]["total_sessions"] == 1


class TestDayRollover:
    def test_chore_update_when_date_moves_after_load(self, client, monkeypatch):
        from types import SimpleNamespace

        from timey.routers import profiles as profiles_router

        _create(client, "api_rollover")
        # The router sees tomorrow while the loaded profile only has today.
        monkeypatch.setattr(profiles_router, "dates", SimpleNamespace(today=lambda: "2099-01-01"))
        r = client.patch("/profiles/api_rollover/chores/0", json={"status": "completed"})
        assert r.status_code == 404
        body = r.json()
        assert body["code"] == "DAY_NOT_FOUND"
        assert body["details"]["day"] == "2099-01-01"


def test_timer_reports_refresh_interval(client):
    body = _create(client, "api_refresh")
    assert body["timer"]["refresh_interval_seconds"] == 300
