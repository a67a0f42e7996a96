import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./data/tasting.db")

# Frontend origins always allowed; CORS_ORIGINS extends this list
DEFAULT_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
]

FRONTEND_URL = os.getenv("FRONTEND_URL", "")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Toast game: all presses must land within this span (milliseconds)
TOAST_WINDOW_MS = int(os.getenv("TOAST_WINDOW_MS", "3000"))

# Session code generation
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ"  # no I or O
CODE_LENGTH = 4
CODE_MAX_ATTEMPTS = int(os.getenv("CODE_MAX_ATTEMPTS", "100"))

DEFAULT_MAX_FLAVOR_NOTES = 3


def get_cors_origins() -> list:
    origins = list(DEFAULT_ORIGINS)
    if env_origins := os.getenv("CORS_ORIGINS"):
        origins.extend([o.strip() for o in env_origins.split(",") if o.strip()])
    return origins
