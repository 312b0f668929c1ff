"""Tests for the HTML pages and the JSON API."""

import pytest


def _create_players(client, *names):
    ids = {}
    for name in names:
        response = client.post("/api/players", json={"name": name})
        assert response.status_code == 201
        ids[name] = response.json()["id"]
    return ids


def _match_payload(p1, p2, sets, date="2024-03-01T18:00:00", **extra):
    payload = {
        "sport_type": "badminton",
        "match_type": "singles",
        "player1_id": p1,
        "player2_id": p2,
        "sets": [{"player1_score": a, "player2_score": b} for a, b in sets],
        "date": date,
    }
    payload.update(extra)
    return payload


class TestHealth:
    """Tests for the health endpoint."""

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "OK"


class TestPlayersApi:
    """Tests for /api/players."""

    def test_crud(self, client):
        ids = _create_players(client, "Alice")

        response = client.put(f"/api/players/{ids['Alice']}", json={"name": "Alicia", "email": "a@b.c"})
        assert response.status_code == 200
        assert response.json()["name"] == "Alicia"

        players = client.get("/api/players").json()
        assert [p["name"] for p in players] == ["Alicia"]

        assert client.delete(f"/api/players/{ids['Alice']}").status_code == 204
        assert client.get("/api/players").json() == []

    def test_duplicate_name(self, client):
        _create_players(client, "Alice")
        response = client.post("/api/players", json={"name": "alice"})
        assert response.status_code == 400

    def test_unknown_player(self, client):
        assert client.put("/api/players/missing", json={"name": "X"}).status_code == 404
        assert client.delete("/api/players/missing").status_code == 404


class TestMatchesApi:
    """Tests for /api/matches."""

    def test_create_update_delete(self, client):
        ids = _create_players(client, "Alice", "Bob")
        response = client.post(
            "/api/matches",
            json=_match_payload(ids["Alice"], ids["Bob"], [(21, 15), (21, 19)]),
        )
        assert response.status_code == 201
        match = response.json()
        assert match["winner"] == "player1"
        assert match["player2_name"] == "Bob"

        response = client.put(
            f"/api/matches/{match['id']}",
            json=_match_payload(ids["Alice"], ids["Bob"], [(10, 21)]),
        )
        assert response.status_code == 200
        assert response.json()["winner"] == "player2"

        fetched = client.get(f"/api/matches/{match['id']}").json()
        assert len(fetched["sets"]) == 1

        assert client.delete(f"/api/matches/{match['id']}").status_code == 204
        assert client.get(f"/api/matches/{match['id']}").status_code == 404

    def test_invalid_match(self, client):
        ids = _create_players(client, "Alice", "Bob")
        response = client.post(
            "/api/matches",
            json=_match_payload(ids["Alice"], ids["Bob"], [(21, 21)]),
        )
        assert response.status_code == 400
        assert "equal" in response.json()["detail"]

    def test_unknown_match(self, client):
        ids = _create_players(client, "Alice", "Bob")
        response = client.put(
            "/api/matches/missing",
            json=_match_payload(ids["Alice"], ids["Bob"], [(21, 10)]),
        )
        assert response.status_code == 404

    def test_recent(self, client):
        ids = _create_players(client, "Alice", "Bob")
        for day in (1, 5, 3):
            client.post(
                "/api/matches",
                json=_match_payload(ids["Alice"], ids["Bob"], [(21, day)], date=f"2024-03-0{day}T10:00:00"),
            )

        recent = client.get("/api/matches/recent", params={"limit": 2}).json()
        assert [m["date"][:10] for m in recent] == ["2024-03-05", "2024-03-03"]


class TestStatsApi:
    """Tests for /api/stats."""

    @pytest.fixture
    def ids(self, client):
        ids = _create_players(client, "Alice", "Bob", "Carol")
        client.post("/api/matches", json=_match_payload(ids["Alice"], ids["Bob"], [(21, 15)], date="2024-01-10T10:00:00"))
        client.post("/api/matches", json=_match_payload(ids["Alice"], ids["Bob"], [(10, 21)], date="2024-02-10T10:00:00"))
        client.post("/api/matches", json=_match_payload(
            ids["Alice"], ids["Carol"], [(6, 2)], date="2024-02-11T10:00:00", sport_type="padel"
        ))
        return ids

    def test_player_stats(self, client, ids):
        stats = client.get(f"/api/stats/players/{ids['Alice']}").json()
        assert stats["total_matches"] == 3
        assert stats["total_wins"] == 2
        assert stats["total_losses"] == 1
        assert stats["current_streak"] == 1
        assert stats["player_name"] == "Alice"

    def test_stats_survive_player_deletion(self, client, ids):
        client.delete(f"/api/players/{ids['Bob']}")
        stats = client.get(f"/api/stats/players/{ids['Bob']}").json()
        assert stats["total_matches"] == 2
        assert stats["player_name"] == "Bob"

    def test_unknown_player_stats_are_zero(self, client, ids):
        stats = client.get("/api/stats/players/nobody").json()
        assert stats["total_matches"] == 0
        assert stats["win_rate"] == 0
        assert stats["last_played"] is None

    def test_dashboard_head_to_head(self, client, ids):
        response = client.get(
            "/api/stats/dashboard",
            params={"players": [ids["Alice"], ids["Bob"]], "head_to_head": "true", "sport": "badminton"},
        )
        dashboard = response.json()
        assert dashboard["matches_considered"] == 2
        margins = {r["category"]: r["series"] for r in dashboard["set_margins"]}
        assert margins["Set 1"]["Alice"] == pytest.approx(-2.5)
        assert [r["category"] for r in dashboard["wins_over_time"]] == ["2024-01", "2024-02"]

    def test_sport_stats(self, client, ids):
        padel = client.get("/api/stats/sports/padel").json()
        assert padel["total_matches"] == 1
        assert padel["highest_scoring_match"] == "Alice vs Carol"
        assert client.get("/api/stats/sports/chess").status_code == 404

    def test_monthly_and_history(self, client, ids):
        monthly = client.get(f"/api/stats/players/{ids['Bob']}/monthly").json()
        assert monthly == [
            {"month": "2024-01", "wins": 0, "losses": 1},
            {"month": "2024-02", "wins": 1, "losses": 0},
        ]
        history = client.get(f"/api/stats/players/{ids['Carol']}/history").json()
        assert len(history) == 1


class TestPages:
    """Tests for the HTML pages."""

    def test_empty_pages_render(self, client):
        for url in ("/", "/players/", "/players/new", "/matches/", "/matches/new", "/import/"):
            response = client.get(url)
            assert response.status_code == 200, url

    def test_player_forms(self, client):
        response = client.post("/players/new", data={"name": "Alice", "email": "", "phone": ""})
        assert response.status_code == 200
        assert "Alice" in response.text

        response = client.post("/players/new", data={"name": "alice"})
        assert "already exists" in response.text

        player_id = client.get("/api/players").json()[0]["id"]
        client.post(f"/players/edit/{player_id}", data={"name": "Alicia"})
        assert client.get("/api/players").json()[0]["name"] == "Alicia"

        client.post(f"/players/delete/{player_id}")
        assert client.get("/api/players").json() == []

    def test_match_form_and_detail(self, client):
        ids = _create_players(client, "Alice", "Bob")
        form = {
            "sport_type": "padel",
            "match_type": "singles",
            "player1_id": ids["Alice"],
            "player2_id": ids["Bob"],
            "set1_p1": "6", "set1_p2": "3",
            "set2_p1": "6", "set2_p2": "4",
            "date": "2024-04-01",
        }
        response = client.post("/matches/new", data=form)
        assert response.status_code == 200
        assert "Alice vs Bob" in response.text

        matches = client.get("/api/matches").json()
        assert matches[0]["winner"] == "player1"

        response = client.post("/matches/new", data={**form, "set1_p2": "6"})
        assert "equal" in response.text

        detail = client.get(f"/players/{ids['Alice']}")
        assert detail.status_code == 200
        assert "Alice vs Bob" in detail.text

        dashboard = client.get("/", params={"sport": "padel", "mode": "h2h", "players": [ids["Alice"], ids["Bob"]]})
        assert dashboard.status_code == 200
        assert "Winner: Alice" in dashboard.text

        edit = client.get(f"/matches/edit/{matches[0]['id']}")
        assert edit.status_code == 200

        pdf = client.get(f"/players/{ids['Alice']}/history-pdf")
        assert pdf.status_code == 200
        assert pdf.headers["content-type"] == "application/pdf"
        assert pdf.content.startswith(b"%PDF")

    def test_edit_form_keeps_time_of_day(self, client):
        ids = _create_players(client, "Alice", "Bob")
        match = client.post(
            "/api/matches",
            json=_match_payload(ids["Alice"], ids["Bob"], [(21, 15)], date="2024-03-01T18:30:00"),
        ).json()
        form = {
            "sport_type": "badminton",
            "match_type": "singles",
            "player1_id": ids["Alice"],
            "player2_id": ids["Bob"],
            "set1_p1": "21", "set1_p2": "17",
            "date": "2024-03-01",
        }

        client.post(f"/matches/edit/{match['id']}", data=form)
        updated = client.get(f"/api/matches/{match['id']}").json()
        assert updated["date"] == "2024-03-01T18:30:00"
        assert updated["sets"][0]["player2_score"] == 17

        client.post(f"/matches/edit/{match['id']}", data={**form, "date": "2024-03-02"})
        assert client.get(f"/api/matches/{match['id']}").json()["date"] == "2024-03-02T00:00:00"

    def test_missing_records(self, client):
        assert client.get("/players/missing").status_code == 404
        assert client.get("/matches/edit/missing").status_code == 404

    def test_csv_upload(self, client):
        sheet = ",Set 1,,Set 2,\n01/02/2024,21,15,21,18\n"
        response = client.post(
            "/import/",
            data={"player1_name": "Gilles", "player2_name": "Tad", "sport_type": "badminton"},
            files={"file": ("sheet.csv", sheet.encode("utf-8"), "text/csv")},
        )
        assert response.status_code == 200
        assert "1 matches" in response.text
        assert len(client.get("/api/matches").json()) == 1
