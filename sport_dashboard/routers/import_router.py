from fastapi import APIRouter, Depends, Request, Form, UploadFile, File
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from sport_dashboard.config import TEMPLATES_DIR
from sport_dashboard.database import get_storage
from sport_dashboard.models.records import SPORT_TYPES
from sport_dashboard.services.csv_import_service import CsvImportError, import_matches
from sport_dashboard.services.player_service import PlayerValidationError
from sport_dashboard.services.storage_service import Storage

router = APIRouter(prefix="/import")
templates = Jinja2Templates(directory=TEMPLATES_DIR)


@router.get("/", response_class=HTMLResponse)
def import_form(request: Request):
    return templates.TemplateResponse(
        request,
        "csv_import.html",
        {"sport_types": SPORT_TYPES}
    )

@router.post("/", response_class=HTMLResponse)
async def import_csv(
    request: Request,
    file: UploadFile = File(...),
    player1_name: str = Form(...),
    player2_name: str = Form(...),
    sport_type: str = Form("badminton"),
    storage: Storage = Depends(get_storage)
):
    context = {"sport_types": SPORT_TYPES}
    content = await file.read()

    try:
        result = import_matches(storage, content, player1_name, player2_name, sport_type)
    except (CsvImportError, PlayerValidationError, UnicodeDecodeError) as e:
        context["error_message"] = f"Failed to import data: {e}"
        return templates.TemplateResponse(request, "csv_import.html", context)

    context["result"] = result
    return templates.TemplateResponse(request, "csv_import.html", context)
