from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel

from sport_dashboard.database import get_storage
from sport_dashboard.models.records import SPORT_TYPES
from sport_dashboard.services import match_service, player_service
from sport_dashboard.services.match_service import MatchValidationError
from sport_dashboard.services.player_service import PlayerValidationError
from sport_dashboard.services.stats_service import (
    calculate_player_stats, calculate_sport_stats, dashboard_stats,
    get_player_match_history, get_recent_matches, get_win_loss_by_month
)
from sport_dashboard.services.storage_service import Storage

router = APIRouter(prefix="/api")


class PlayerPayload(BaseModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None


class SetPayload(BaseModel):
    player1_score: int
    player2_score: int


class MatchPayload(BaseModel):
    sport_type: str
    match_type: str
    player1_id: str
    player2_id: str
    player3_id: Optional[str] = None
    player4_id: Optional[str] = None
    sets: list[SetPayload]
    date: Optional[datetime] = None
    duration: Optional[int] = None
    notes: Optional[str] = None


@router.get("/health")
def health():
    return {"status": "OK", "message": "Sport Dashboard API is running"}

# Players

@router.get("/players")
def list_players(storage: Storage = Depends(get_storage)):
    return player_service.get_all(storage)

@router.post("/players", status_code=201)
def create_player(payload: PlayerPayload, storage: Storage = Depends(get_storage)):
    try:
        return player_service.create(storage, payload.name, payload.email, payload.phone)
    except PlayerValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.put("/players/{player_id}")
def update_player(player_id: str, payload: PlayerPayload, storage: Storage = Depends(get_storage)):
    try:
        player = player_service.update(storage, player_id, payload.name, payload.email, payload.phone)
    except PlayerValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")
    return player

@router.delete("/players/{player_id}", status_code=204)
def delete_player(player_id: str, storage: Storage = Depends(get_storage)):
    if not player_service.delete(storage, player_id):
        raise HTTPException(status_code=404, detail="Player not found")
    return Response(status_code=204)

# Matches

def _match_fields(payload: MatchPayload):
    fields = payload.model_dump()
    fields["sets"] = [(s["player1_score"], s["player2_score"]) for s in fields["sets"]]
    return fields

@router.get("/matches")
def list_matches(storage: Storage = Depends(get_storage)):
    return match_service.get_all(storage)

@router.get("/matches/recent")
def recent_matches(limit: int = Query(10, ge=1), storage: Storage = Depends(get_storage)):
    return get_recent_matches(storage.list_matches(), limit)

@router.get("/matches/{match_id}")
def get_match(match_id: str, storage: Storage = Depends(get_storage)):
    match = match_service.get_by_id(storage, match_id)
    if not match:
        raise HTTPException(status_code=404, detail="Match not found")
    return match

@router.post("/matches", status_code=201)
def create_match(payload: MatchPayload, storage: Storage = Depends(get_storage)):
    try:
        return match_service.create(storage, **_match_fields(payload))
    except MatchValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.put("/matches/{match_id}")
def update_match(match_id: str, payload: MatchPayload, storage: Storage = Depends(get_storage)):
    try:
        match = match_service.update(storage, match_id, **_match_fields(payload))
    except MatchValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not match:
        raise HTTPException(status_code=404, detail="Match not found")
    return match

@router.delete("/matches/{match_id}", status_code=204)
def delete_match(match_id: str, storage: Storage = Depends(get_storage)):
    if not match_service.delete(storage, match_id):
        raise HTTPException(status_code=404, detail="Match not found")
    return Response(status_code=204)

# Stats

@router.get("/stats/players/{player_id}")
def player_stats(player_id: str, storage: Storage = Depends(get_storage)):
    # Deleted players still have stats through their recorded matches.
    return calculate_player_stats(player_id, storage.list_matches())

@router.get("/stats/players/{player_id}/history")
def player_history(player_id: str, storage: Storage = Depends(get_storage)):
    return get_player_match_history(player_id, storage.list_matches())

@router.get("/stats/players/{player_id}/monthly")
def player_monthly(player_id: str, storage: Storage = Depends(get_storage)):
    return get_win_loss_by_month(player_id, storage.list_matches())

@router.get("/stats/sports/{sport_type}")
def sport_stats(sport_type: str, storage: Storage = Depends(get_storage)):
    if sport_type not in SPORT_TYPES:
        raise HTTPException(status_code=404, detail="Unknown sport")
    snapshot = storage.load()
    return calculate_sport_stats(sport_type, snapshot.matches, snapshot.players)

@router.get("/stats/dashboard")
def dashboard(
    sport: str = Query("all"),
    players: Optional[list[str]] = Query(None),
    head_to_head: bool = Query(False),
    storage: Storage = Depends(get_storage)
):
    snapshot = storage.load()
    return dashboard_stats(
        snapshot.players,
        snapshot.matches,
        player_ids=players,
        sport_type=sport,
        head_to_head_only=head_to_head,
    )
