from fastapi import APIRouter, Depends, Request, Form, HTTPException
from fastapi.responses import HTMLResponse, RedirectResponse, StreamingResponse
from fastapi.templating import Jinja2Templates
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas
from reportlab.lib.units import cm
import io

from sport_dashboard.config import TEMPLATES_DIR
from sport_dashboard.database import get_storage
from sport_dashboard.services import player_service
from sport_dashboard.services.player_service import PlayerValidationError
from sport_dashboard.services.stats_service import (
    calculate_player_stats, get_player_match_history, get_win_loss_by_month,
    match_label, winner_label
)
from sport_dashboard.services.storage_service import Storage

router = APIRouter(prefix="/players")
templates = Jinja2Templates(directory=TEMPLATES_DIR)


def _players_page(request: Request, storage: Storage, error_message: str = None):
    players = player_service.get_all(storage)
    matches = storage.list_matches()
    games = {p.id: calculate_player_stats(p.id, matches).total_matches for p in players}

    return templates.TemplateResponse(
        request,
        "players.html",
        {"players": players, "matches": games, "error_message": error_message}
    )

# Player list
@router.get("/", response_class=HTMLResponse)
def list_players(request: Request, storage: Storage = Depends(get_storage)):
    return _players_page(request, storage)

@router.get("/new", response_class=HTMLResponse)
def new_player(request: Request):
    return templates.TemplateResponse(request, "player_create.html", {})

@router.post("/new")
def create_player(request: Request,
                  name: str = Form(...),
                  email: str = Form(""),
                  phone: str = Form(""),
                  storage: Storage = Depends(get_storage)):
    try:
        player_service.create(storage, name, email, phone)
    except PlayerValidationError as e:
        context = {
            "error_message": f"⚠️ {e}",
            "name": name,
            "email": email,
            "phone": phone
        }
        return templates.TemplateResponse(request, "player_create.html", context)

    return RedirectResponse("/players", status_code=303)

@router.get("/edit/{player_id}", response_class=HTMLResponse)
def edit_player(request: Request, player_id: str, storage: Storage = Depends(get_storage)):
    player = player_service.get_by_id(storage, player_id)
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")
    return templates.TemplateResponse(request, "player_edit.html", {"player": player})

@router.post("/edit/{player_id}")
def update_player(request: Request, player_id: str,
                  name: str = Form(...),
                  email: str = Form(""),
                  phone: str = Form(""),
                  storage: Storage = Depends(get_storage)):
    try:
        player = player_service.update(storage, player_id, name, email, phone)
    except PlayerValidationError as e:
        context = {
            "error_message": f"⚠️ {e}",
            "player": player_service.get_by_id(storage, player_id),
            "name": name,
            "email": email,
            "phone": phone
        }
        return templates.TemplateResponse(request, "player_edit.html", context)

    if not player:
        raise HTTPException(status_code=404, detail="Player not found")

    return RedirectResponse("/players", status_code=303)

@router.post("/delete/{player_id}")
def delete_player(player_id: str, storage: Storage = Depends(get_storage)):
    if not player_service.delete(storage, player_id):
        raise HTTPException(status_code=404, detail="Player not found")

    return RedirectResponse(url="/players", status_code=303)

@router.get("/{player_id}", response_class=HTMLResponse)
def player_detail(request: Request, player_id: str, storage: Storage = Depends(get_storage)):
    player = player_service.get_by_id(storage, player_id)
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")

    matches = storage.list_matches()
    history = get_player_match_history(player.id, matches)

    return templates.TemplateResponse(
        request,
        "player_detail.html",
        {
            "player": player,
            "stats": calculate_player_stats(player.id, matches),
            "history": history,
            "monthly": get_win_loss_by_month(player.id, matches),
            "match_label": match_label,
            "winner_label": winner_label
        }
    )

@router.get("/{player_id}/history-pdf")
def player_history_pdf(player_id: str, storage: Storage = Depends(get_storage)):
    player = player_service.get_by_id(storage, player_id)
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")

    matches = storage.list_matches()
    stats = calculate_player_stats(player.id, matches)
    history = get_player_match_history(player.id, matches)

    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4

    y = height - 2 * cm

    # Title
    pdf.setFont("Helvetica-Bold", 16)
    pdf.drawCentredString(width / 2, y, player.name)
    y -= 20
    pdf.setFont("Helvetica", 12)
    pdf.drawCentredString(
        width / 2,
        y,
        f"{stats.total_wins} W - {stats.total_losses} L ({stats.win_rate:.1f}%)"
    )

    y -= 30
    pdf.setFont("Helvetica", 10)

    for match in history:
        if y < 3 * cm:
            pdf.showPage()
            pdf.setFont("Helvetica", 10)
            y = height - 2 * cm

        score = " ".join(f"{s.player1_score}-{s.player2_score}" for s in match.sets)
        pdf.drawString(2 * cm, y, match.date.strftime("%d/%m/%Y"))
        pdf.drawString(4.5 * cm, y, match_label(match))
        pdf.drawRightString(width - 2 * cm, y, score)
        y -= 12
        pdf.setFont("Helvetica-Oblique", 9)
        pdf.drawString(4.5 * cm, y, f"{match.sport_type} - winner: {winner_label(match)}")
        pdf.setFont("Helvetica", 10)
        y -= 18

    pdf.save()
    buffer.seek(0)

    return StreamingResponse(
        buffer,
        media_type="application/pdf",
        headers={
            "Content-Disposition":
                f"attachment; filename=history_{player.id}.pdf"
        }
    )
