"""
Session Store - authoritative record of tasting sessions.

Sessions are persisted as whole JSON documents (one row per session) and
cached in process memory. Every mutation is a read-modify-write of the full
document under a per-session lock, flushed to the database before the
caller gets control back. Across processes the last writer wins.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional
import asyncio
import logging
import random

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

import config
import utils
from errors import NotFound, ResourceExhausted
from models import SeriesRecord, SessionRecord
from schemas import Series, SeriesCreate, SessionCreate, TastingSession

logger = logging.getLogger(__name__)


class SessionStore:
    def __init__(self, session_factory: async_sessionmaker, rng: Optional[random.Random] = None):
        self._db = session_factory
        self._rng = rng
        self._cache: Dict[str, TastingSession] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._create_lock = asyncio.Lock()

    # --- reads ---

    async def get(self, id_or_code: str) -> TastingSession:
        """Find a session by exact id or case-insensitive code.

        Returns a private copy; mutate through edit() to persist changes.
        """
        session = self._cache.get(id_or_code)
        if session is None:
            code = id_or_code.upper()
            session = next((s for s in self._cache.values() if s.code == code), None)
        if session is None:
            session = await self._fetch(id_or_code)
        if session is None:
            raise NotFound("Session not found")
        return session.model_copy(deep=True)

    async def get_by_code(self, code: str) -> TastingSession:
        session = await self.get(code.upper())
        if session.code != code.upper():
            raise NotFound("Session not found")
        return session

    async def list(self) -> List[TastingSession]:
        async with self._db() as db:
            result = await db.execute(select(SessionRecord).order_by(SessionRecord.created_at))
            records = result.scalars().all()
        sessions = []
        for record in records:
            session = self._cache.get(record.id) or self._remember(record)
            sessions.append(session.model_copy(deep=True))
        return sessions

    async def _fetch(self, id_or_code: str) -> Optional[TastingSession]:
        async with self._db() as db:
            result = await db.execute(
                select(SessionRecord).where(
                    (SessionRecord.id == id_or_code) | (SessionRecord.code == id_or_code.upper())
                )
            )
            records = result.scalars().all()
        if not records:
            return None
        # An exact id hit beats a code hit
        record = next((r for r in records if r.id == id_or_code), records[0])
        return self._remember(record)

    def _remember(self, record: SessionRecord) -> TastingSession:
        session = TastingSession.model_validate_json(record.document)
        self._cache[session.id] = session
        return session

    async def _codes(self) -> set:
        async with self._db() as db:
            result = await db.execute(select(SessionRecord.code))
            return set(result.scalars().all())

    # --- writes ---

    async def upsert(self, session: TastingSession) -> TastingSession:
        """Persist the whole document, assigning id and code when missing."""
        if not session.id:
            session.id = utils.generate_uuid()
        if not session.code:
            session.code = await self._unique_code()

        document = session.model_dump_json(by_alias=True)
        async with self._db() as db:
            record = await db.get(SessionRecord, session.id)
            if record is None:
                db.add(SessionRecord(id=session.id, code=session.code, document=document))
            else:
                record.code = session.code
                record.document = document
            await db.commit()

        self._cache[session.id] = session.model_copy(deep=True)
        return session

    async def create(self, data: SessionCreate) -> TastingSession:
        async with self._create_lock:
            session = TastingSession(
                id=utils.generate_uuid(),
                code=await self._unique_code(),
                date=data.date or utils.utc_iso(),
                location=data.location,
                series_id=data.series_id,
                creator_id=data.creator_id,
                max_flavor_notes=data.max_flavor_notes,
                created_at=utils.utc_iso(),
            )
            await self.upsert(session)
        logger.info("Created session %s (%s)", session.code, session.id)
        return session

    async def _unique_code(self) -> str:
        taken = await self._codes()
        for _ in range(config.CODE_MAX_ATTEMPTS):
            code = utils.generate_session_code(self._rng)
            if code not in taken:
                return code
        logger.error("Session code space exhausted after %d attempts", config.CODE_MAX_ATTEMPTS)
        raise ResourceExhausted("Could not generate unique session code")

    @asynccontextmanager
    async def edit(self, id_or_code: str) -> AsyncIterator[TastingSession]:
        """
        Read-modify-write one session under its lock.

        The block receives a draft copy. It is persisted only when the block
        exits normally, so a raised error leaves the stored session untouched.
        """
        session_id = (await self.get(id_or_code)).id
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        async with lock:
            draft = await self.get(session_id)
            yield draft
            await self.upsert(draft)


class SeriesStore:
    """Named groupings of sessions (e.g. a yearly tasting club)."""

    def __init__(self, session_factory: async_sessionmaker):
        self._db = session_factory

    async def list(self) -> List[Series]:
        async with self._db() as db:
            result = await db.execute(select(SeriesRecord).order_by(SeriesRecord.created_at))
            return [Series.model_validate_json(r.document) for r in result.scalars().all()]

    async def create(self, data: SeriesCreate) -> Series:
        series = Series(
            id=utils.generate_uuid(),
            name=data.name,
            description=data.description,
            created_at=utils.utc_iso(),
        )
        async with self._db() as db:
            db.add(SeriesRecord(id=series.id, document=series.model_dump_json(by_alias=True)))
            await db.commit()
        return series
