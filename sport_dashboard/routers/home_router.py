from typing import Optional

from fastapi import APIRouter, Request, Depends, Query
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from sport_dashboard.config import TEMPLATES_DIR, RECENT_MATCHES_LIMIT
from sport_dashboard.database import get_storage
from sport_dashboard.models.records import SPORT_TYPES
from sport_dashboard.services.stats_service import (
    calculate_sport_stats, dashboard_stats, get_recent_matches, match_label, winner_label
)
from sport_dashboard.services.storage_service import Storage

router = APIRouter()
templates = Jinja2Templates(directory=TEMPLATES_DIR)


@router.get("/", response_class=HTMLResponse)
def dashboard(
    request: Request,
    sport: str = Query("all"),
    players: Optional[list[str]] = Query(None),
    mode: str = Query("any"),
    storage: Storage = Depends(get_storage)
):
    snapshot = storage.load()
    selected = players or [p.id for p in snapshot.players]

    stats = dashboard_stats(
        snapshot.players,
        snapshot.matches,
        player_ids=selected,
        sport_type=sport,
        head_to_head_only=(mode == "h2h"),
    )

    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "total_players": len(snapshot.players),
            "total_matches": len(snapshot.matches),
            "recent_matches": get_recent_matches(snapshot.matches, RECENT_MATCHES_LIMIT),
            "sport_stats": [
                calculate_sport_stats(s, snapshot.matches, snapshot.players) for s in SPORT_TYPES
            ],
            "players": sorted(snapshot.players, key=lambda p: p.name.lower()),
            "selected": selected,
            "sport": sport,
            "mode": mode,
            "sport_types": SPORT_TYPES,
            "stats": stats.model_dump(mode="json"),
            "match_label": match_label,
            "winner_label": winner_label
        }
    )
