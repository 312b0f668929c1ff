from fastapi import APIRouter, Depends, Request, HTTPException, Query
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from sport_dashboard.config import TEMPLATES_DIR
from sport_dashboard.database import get_storage
from sport_dashboard.models.records import MATCH_TYPES, SPORT_TYPES
from sport_dashboard.services import match_service, player_service
from sport_dashboard.services.match_service import MatchValidationError
from sport_dashboard.services.stats_service import match_label, winner_label
from sport_dashboard.services.storage_service import Storage

router = APIRouter(prefix="/matches")
templates = Jinja2Templates(directory=TEMPLATES_DIR)

FORM_SETS = 5


def _form_fields(form):
    """Match fields out of a submitted match form.

    Sets come as ``set{n}_p1`` / ``set{n}_p2`` pairs; pairs left blank are
    ignored.
    """
    sets = []
    for n in range(1, FORM_SETS + 1):
        p1 = (form.get(f"set{n}_p1") or "").strip()
        p2 = (form.get(f"set{n}_p2") or "").strip()
        if p1 or p2:
            sets.append((p1, p2))

    return {
        "sport_type": form.get("sport_type", "padel"),
        "match_type": form.get("match_type", "singles"),
        "player1_id": form.get("player1_id") or None,
        "player2_id": form.get("player2_id") or None,
        "player3_id": form.get("player3_id") or None,
        "player4_id": form.get("player4_id") or None,
        "sets": sets,
        "date": form.get("date") or None,
        "duration": form.get("duration") or None,
        "notes": form.get("notes") or None,
    }

def _form_page(request: Request, storage: Storage, match=None, values=None, error_message=None):
    if values is None and match is not None:
        values = {
            "sport_type": match.sport_type,
            "match_type": match.match_type,
            "player1_id": match.player1_id,
            "player2_id": match.player2_id,
            "player3_id": match.player3_id,
            "player4_id": match.player4_id,
            "sets": [(s.player1_score, s.player2_score) for s in match.sets],
            "date": match.date.strftime("%Y-%m-%d"),
            "duration": match.duration,
            "notes": match.notes,
        }

    return templates.TemplateResponse(
        request,
        "match_form.html",
        {
            "match": match,
            "values": values or {},
            "players": sorted(player_service.get_all(storage), key=lambda p: p.name.lower()),
            "sport_types": SPORT_TYPES,
            "match_types": MATCH_TYPES,
            "form_sets": FORM_SETS,
            "error_message": error_message
        }
    )

@router.get("/", response_class=HTMLResponse)
def list_matches(request: Request, sport: str = Query("all"), storage: Storage = Depends(get_storage)):
    matches = match_service.get_all(storage)
    if sport != "all":
        matches = [m for m in matches if m.sport_type == sport]

    return templates.TemplateResponse(
        request,
        "matches.html",
        {
            "matches": matches,
            "sport": sport,
            "sport_types": SPORT_TYPES,
            "match_label": match_label,
            "winner_label": winner_label
        }
    )

@router.get("/new", response_class=HTMLResponse)
def new_match(request: Request, storage: Storage = Depends(get_storage)):
    return _form_page(request, storage)

@router.post("/new")
async def create_match(request: Request, storage: Storage = Depends(get_storage)):
    form = await request.form()
    fields = _form_fields(form)

    try:
        match_service.create(storage, **fields)
    except MatchValidationError as e:
        return _form_page(request, storage, values=fields, error_message=str(e))

    return RedirectResponse(url="/matches", status_code=303)

@router.get("/edit/{match_id}", response_class=HTMLResponse)
def edit_match(request: Request, match_id: str, storage: Storage = Depends(get_storage)):
    match = match_service.get_by_id(storage, match_id)
    if not match:
        raise HTTPException(404, "Match not found")
    return _form_page(request, storage, match=match)

@router.post("/edit/{match_id}")
async def update_match(match_id: str, request: Request, storage: Storage = Depends(get_storage)):
    match = match_service.get_by_id(storage, match_id)
    if not match:
        raise HTTPException(404, "Match not found")

    form = await request.form()
    fields = _form_fields(form)
    # the form only carries the day; keep the stored time when it is unchanged
    update_fields = dict(fields)
    if fields["date"] == match.date.strftime("%Y-%m-%d"):
        update_fields["date"] = match.date

    try:
        match_service.update(storage, match_id, **update_fields)
    except MatchValidationError as e:
        return _form_page(request, storage, match=match, values=fields, error_message=str(e))

    return RedirectResponse(url="/matches", status_code=303)

@router.post("/delete/{match_id}")
def delete_match(match_id: str, storage: Storage = Depends(get_storage)):
    if not match_service.delete(storage, match_id):
        raise HTTPException(404, "Match not found")

    return RedirectResponse(url="/matches", status_code=303)
