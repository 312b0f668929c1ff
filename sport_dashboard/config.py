import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = str(BASE_DIR / "templates")
STATIC_DIR = str(BASE_DIR / "static")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./sport_dashboard.db")

# "sql" or "json"
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "sql").lower()
JSON_STORAGE_PATH = os.getenv("JSON_STORAGE_PATH", "data/sport_dashboard.json")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE", "")

RECENT_MATCHES_LIMIT = int(os.getenv("RECENT_MATCHES_LIMIT", 5))


def configure_logging():
    formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    root = logging.getLogger()
    root.setLevel(LOG_LEVEL)

    if not root.handlers:
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        root.addHandler(console)

    if LOG_FILE:
        log_dir = os.path.dirname(LOG_FILE)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)
        handler = RotatingFileHandler(LOG_FILE, maxBytes=5_000_000, backupCount=5)
        handler.setFormatter(formatter)
        root.addHandler(handler)
