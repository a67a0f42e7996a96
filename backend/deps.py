"""FastAPI dependencies handing out the process-wide services on app.state."""
from starlette.requests import HTTPConnection

from presence import PresenceRegistry
from store import SeriesStore, SessionStore
from tasting import TastingService


def get_store(conn: HTTPConnection) -> SessionStore:
    return conn.app.state.store


def get_series_store(conn: HTTPConnection) -> SeriesStore:
    return conn.app.state.series_store


def get_tastings(conn: HTTPConnection) -> TastingService:
    return conn.app.state.tastings


def get_presence(conn: HTTPConnection) -> PresenceRegistry:
    return conn.app.state.presence
