from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine
from typing import Callable
import logging

import config
import utils
from connection_manager import Broadcaster
from database import create_tables, make_engine, make_sessionmaker
from errors import TastingError
from presence import PresenceRegistry
from routes import items, participants, series, sessions, ws
from store import SeriesStore, SessionStore
from tasting import TastingService
from toast import ToastGame

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(engine: AsyncEngine = None, clock: Callable[[], int] = None) -> FastAPI:
    """
    Build the API with its process-wide services.

    Args:
        engine: database engine (defaults to DATABASE_URL)
        clock: millisecond clock for the toast game, injectable for tests
    """
    engine = engine or make_engine()

    app = FastAPI(title="Dram Session API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # One instance of each service per process, shared by every handler
    broadcaster = Broadcaster()
    presence = PresenceRegistry(broadcaster)
    toast = ToastGame(presence, broadcaster, clock=clock or utils.now_ms)
    presence.on_leave(toast.forget)

    session_factory = make_sessionmaker(engine)
    store = SessionStore(session_factory)

    app.state.engine = engine
    app.state.broadcaster = broadcaster
    app.state.presence = presence
    app.state.toast = toast
    app.state.store = store
    app.state.series_store = SeriesStore(session_factory)
    app.state.tastings = TastingService(store, broadcaster)

    @app.exception_handler(TastingError)
    async def tasting_error_handler(request: Request, exc: TastingError):
        logger.info("%s %s failed: %s", request.method, request.url.path, exc.reason)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info("Request: %s %s", request.method, request.url)
        return await call_next(request)

    app.include_router(sessions.router)
    app.include_router(items.router)
    app.include_router(participants.router)
    app.include_router(series.router)
    app.include_router(ws.router)

    @app.on_event("startup")
    async def startup_event():
        await create_tables(engine)

    @app.on_event("shutdown")
    async def shutdown_event():
        await engine.dispose()

    @app.get("/")
    async def root():
        return {"status": "ok", "message": "Dram Session API is running"}

    return app


app = create_app()
