"""
Pytest fixtures for the tasting backend.
"""
import random

import pytest
import pytest_asyncio
from fastapi.encoders import jsonable_encoder
from starlette.testclient import TestClient

from connection_manager import Broadcaster
from database import create_tables, make_engine, make_sessionmaker
from main import create_app
from presence import PresenceRegistry
from schemas import ItemCreate, RatingCreate, SessionCreate
from store import SeriesStore, SessionStore
from tasting import TastingService
from toast import ToastGame

CREATOR = "creator-token"


class FakeClock:
    """Millisecond clock the tests move by hand."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int):
        self.now += ms


class FakeConnection:
    """Stands in for a client socket; records what it was sent."""

    def __init__(self, connection_id: str):
        self.id = connection_id
        self.sent = []
        self.closed = False

    async def send(self, event):
        self.sent.append({"type": event.type, "payload": jsonable_encoder(event.payload)})

    async def close(self, code: int = 4001):
        self.closed = True

    def types(self):
        return [m["type"] for m in self.sent]


def sqlite_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = make_engine(sqlite_url(tmp_path))
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_sessionmaker(engine)


@pytest.fixture
def store(session_factory) -> SessionStore:
    return SessionStore(session_factory, rng=random.Random(7))


@pytest.fixture
def series_store(session_factory) -> SeriesStore:
    return SeriesStore(session_factory)


@pytest.fixture
def broadcaster() -> Broadcaster:
    return Broadcaster()


@pytest.fixture
def tastings(store, broadcaster) -> TastingService:
    return TastingService(store, broadcaster)


@pytest.fixture
def presence(broadcaster) -> PresenceRegistry:
    return PresenceRegistry(broadcaster)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def toast(presence, broadcaster, clock) -> ToastGame:
    game = ToastGame(presence, broadcaster, clock=clock, window_ms=3000)
    presence.on_leave(game.forget)
    return game


@pytest_asyncio.fixture
async def tasting_session(tastings):
    """A session owned by CREATOR with three whiskies."""
    session = await tastings.create_session(SessionCreate(location="Kelder", creator_id=CREATOR))
    for name in ("Lagavulin", "Glenfiddich", "Talisker"):
        await tastings.add_item(session.id, ItemCreate(name=name))
    return await tastings.store.get(session.id)


def make_rating(participant_id: str, name: str = None, **values) -> RatingCreate:
    return RatingCreate(participant_id=participant_id, participant_name=name or participant_id, **values)


@pytest.fixture
def client(tmp_path):
    app = create_app(engine=make_engine(sqlite_url(tmp_path)), clock=FakeClock())
    with TestClient(app) as test_client:
        yield test_client
