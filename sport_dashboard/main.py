from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from sport_dashboard.config import STATIC_DIR, configure_logging
from sport_dashboard.database import engine, Base
from sport_dashboard.models import match, player  # noqa: F401  registers the tables
from sport_dashboard.routers import (
    api_router,
    home_router,
    import_router,
    match_router,
    player_router
)

configure_logging()

Base.metadata.create_all(bind=engine)

app = FastAPI(title="Sport Dashboard")

app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

app.include_router(home_router.router)
app.include_router(player_router.router)
app.include_router(match_router.router)
app.include_router(import_router.router)
app.include_router(api_router.router)
