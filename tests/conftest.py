"""Shared fixtures: storages, a web client and match/player builders."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STORAGE_BACKEND", "sql")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from sport_dashboard.database import Base, get_storage
from sport_dashboard.models import match as match_model, player as player_model  # noqa: F401
from sport_dashboard.models.records import MatchRecord, PlayerRecord, SetRecord
from sport_dashboard.services.match_service import derive_match_winner, derive_set_winner
from sport_dashboard.services.storage_service import JsonStorage, SqlStorage

NAMES = {
    "A": "Alice",
    "B": "Bob",
    "C": "Carol",
    "D": "Dan",
    "E": "Eve",
}


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def sql_storage(db_session):
    return SqlStorage(db_session)


@pytest.fixture
def json_storage(tmp_path):
    return JsonStorage(str(tmp_path / "data" / "store.json"))


@pytest.fixture(params=["sql", "json"])
def storage(request):
    """Each test using this runs once per storage backend."""
    return request.getfixturevalue(f"{request.param}_storage")


@pytest.fixture
def client(sql_storage):
    from sport_dashboard.main import app

    app.dependency_overrides[get_storage] = lambda: sql_storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_player():
    def build(player_id, name=None):
        return PlayerRecord(id=player_id, name=name or NAMES.get(player_id, player_id))
    return build


@pytest.fixture
def make_match():
    """Build a MatchRecord from ids and score pairs.

    The winner is derived from the sets unless ``winner`` is passed.
    """
    counter = {"n": 0}

    def build(p1="A", p2="B", p3=None, p4=None, scores=((21, 15),),
              date="2024-01-15T10:00:00", sport="badminton", duration=None,
              match_id=None, **overrides):
        counter["n"] += 1
        sets = [
            SetRecord(
                set_order=order,
                player1_score=s1,
                player2_score=s2,
                winner=derive_set_winner(s1, s2),
            )
            for order, (s1, s2) in enumerate(scores, start=1)
        ]
        fields = {
            "id": match_id or f"m{counter['n']}",
            "sport_type": sport,
            "match_type": "doubles" if p3 else "singles",
            "player1_id": p1,
            "player2_id": p2,
            "player3_id": p3,
            "player4_id": p4,
            "player1_name": NAMES.get(p1, p1),
            "player2_name": NAMES.get(p2, p2),
            "player3_name": NAMES.get(p3, p3) if p3 else None,
            "player4_name": NAMES.get(p4, p4) if p4 else None,
            "sets": sets,
            "winner": derive_match_winner(sets),
            "date": date,
            "duration": duration,
        }
        fields.update(overrides)
        return MatchRecord(**fields)

    return build
