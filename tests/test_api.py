from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from fantasy_league.api import deps
from fantasy_league.core.security import create_access_token
from fantasy_league.main import app
from fantasy_league.models.user import User

from helpers import NOW, make_race, make_season, make_user, seed_catalog

API = "/api/v1"


def auth(user_id: str) -> dict:
    return {"Cookie": f"access_token=Bearer {create_access_token(user_id)}"}


def roster_body(starters=None, bench="f3"):
    starters = starters or ["m1", "m2", "m3", "m4", "f1", "f2"]
    return {
        "starters": [{"uci_id": uci_id, "starter_index": index} for index, uci_id in enumerate(starters)],
        "bench": {"uci_id": bench} if bench else None,
    }


@pytest.fixture
def client(db, game):
    def override_get_db():
        yield db

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_game_engine] = lambda: game
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def season(db):
    seed_catalog(db)
    make_user(db, "admin", is_admin=True)
    return make_season(db)


def test_requires_the_access_token_cookie(client, season):
    response = client.get(f"{API}/teams/me")
    assert response.status_code == 401


def test_first_request_creates_the_user(client, db, season):
    response = client.get(f"{API}/teams/me", params={"season_id": season.id}, headers=auth("rider-fan"))
    assert response.status_code == 200
    assert response.json() == {"season_id": season.id, "teams": []}
    assert db.query(User).filter(User.id == "rider-fan").count() == 1


def test_save_roster(client, db, season):
    race = make_race(db, season, "Round 1", NOW + timedelta(days=5))

    response = client.put(f"{API}/teams/me/elite", params={"season_id": season.id},
                          json=roster_body(), headers=auth("alice"))

    assert response.status_code == 200
    body = response.json()
    assert body["team"]["current_race_id"] == race.id
    assert [s["uci_id"] for s in body["starters"]] == ["m1", "m2", "m3", "m4", "f1", "f2"]


def test_invalid_roster_returns_every_violation(client, db, season):
    make_race(db, season, "Round 1", NOW + timedelta(days=5))

    response = client.put(f"{API}/teams/me/elite", params={"season_id": season.id},
                          json=roster_body(["m1", "m2", "m3", "m4", "m5", "f1"]), headers=auth("alice"))

    assert response.status_code == 400
    body = response.json()
    assert body["detail"] == "Team roster validation failed"
    assert [error["code"] for error in body["errors"]] == ["GENDER_SLOTS_INVALID"]


def test_junior_team_disabled(client, db, season):
    make_race(db, season, "Round 1", NOW + timedelta(days=5))
    response = client.put(f"{API}/teams/me/junior", params={"season_id": season.id},
                          json=roster_body(), headers=auth("alice"))
    assert response.status_code == 404
    assert response.json()["detail"] == "Junior team is disabled"


def test_lifecycle_routes_are_admin_only(client, db, season):
    race = make_race(db, season, "Round 1", NOW + timedelta(hours=24))
    response = client.post(f"{API}/races/{race.id}/lock", headers=auth("alice"))
    assert response.status_code == 403


def test_admin_runs_a_race_end_to_end(client, db, season):
    race = make_race(db, season, "Round 1", NOW + timedelta(days=3))
    assert client.put(f"{API}/teams/me/elite", params={"season_id": season.id},
                      json=roster_body(), headers=auth("alice")).status_code == 200

    early = client.post(f"{API}/races/{race.id}/lock", headers=auth("admin"))
    assert early.status_code == 200
    assert early.json()["locked"] is False

    locked = client.post(f"{API}/races/{race.id}/lock", params={"force": True}, headers=auth("admin"))
    assert locked.json()["locked_teams"] == 1

    results = client.post(f"{API}/races/{race.id}/results", headers=auth("admin"), json={
        "is_final": True,
        "results": [{"uci_id": "m1", "status": "FIN", "position": 1},
                    {"uci_id": "f1", "status": "FIN", "position": 2, "qualification_position": 1}],
    })
    assert results.json()["status"] == "final"

    settled = client.post(f"{API}/races/{race.id}/settle", headers=auth("admin"))
    assert settled.status_code == 200
    assert settled.json()["updated_scores"] == 1

    board = client.get(f"{API}/races/{race.id}/leaderboard").json()
    assert board == [{"rank": 1, "user_id": "alice", "team_type": "elite", "total_points": 190}]

    mine = client.get(f"{API}/races/{race.id}/my-score", headers=auth("alice")).json()
    assert mine["total_points"] == 190
    assert mine["breakdown"]["starters"][4]["qual_bonus"] == 10

    standings = client.get(f"{API}/standings/{season.id}").json()
    assert standings[0]["user_id"] == "alice"
    assert standings[0]["race_wins"] == 1


def test_settle_before_results_is_not_ready(client, db, season):
    race = make_race(db, season, "Round 1", NOW + timedelta(hours=24))
    response = client.post(f"{API}/races/{race.id}/settle", headers=auth("admin"))
    assert response.status_code == 400


def test_admin_tick_and_catalog(client, db, season):
    imported = client.post(f"{API}/admin/riders", headers=auth("admin"), json=[
        {"uci_id": "m1", "name": "Rider One", "gender": "Male", "cost": 310000},
        {"uci_id": "j1", "name": "Junior One", "gender": "female", "category": "junior", "cost": 50000},
    ])
    assert imported.json() == {"created": 1, "updated": 1}

    make_race(db, season, "Round 1", NOW + timedelta(hours=24))
    tick = client.post(f"{API}/admin/tick", headers=auth("admin"), json={})
    assert tick.status_code == 200
    assert len(tick.json()["locked"]) == 1

    seasons = client.get(f"{API}/admin/seasons", headers=auth("admin")).json()
    assert [s["name"] for s in seasons] == ["Season 2026"]


def test_unknown_race_is_not_found(client, season):
    response = client.get(f"{API}/races/999/leaderboard")
    assert response.status_code == 404
    assert response.json()["detail"] == "Race 999 not found"
