"""
Tests for the session and series stores.
"""
import pytest

import config
from errors import NotFound, ResourceExhausted
from schemas import SeriesCreate, SessionCreate
from store import SessionStore


class ConstantRng:
    """Always draws the first letter, so every code is AAAA."""

    def choice(self, seq):
        return seq[0]


@pytest.mark.asyncio
class TestSessionStore:

    async def test_create_assigns_id_and_code(self, store):
        session = await store.create(SessionCreate(location="Utrecht"))

        assert session.id
        assert len(session.code) == 4
        assert set(session.code) <= set(config.CODE_ALPHABET)
        assert "I" not in session.code and "O" not in session.code
        assert session.max_flavor_notes == 3
        assert session.total_points == 0
        assert session.active_item_id is None
        assert session.date

    async def test_lookup_by_id_and_code(self, store):
        session = await store.create(SessionCreate())

        assert (await store.get(session.id)).id == session.id
        assert (await store.get(session.code)).id == session.id
        assert (await store.get(session.code.lower())).id == session.id
        assert (await store.get_by_code(session.code.lower())).id == session.id

    async def test_unknown_session(self, store):
        with pytest.raises(NotFound):
            await store.get("ZZZZ-not-a-session")

    async def test_codes_are_unique(self, store):
        codes = [(await store.create(SessionCreate())).code for _ in range(40)]
        assert len(set(codes)) == len(codes)

    async def test_code_exhaustion(self, session_factory, monkeypatch):
        monkeypatch.setattr(config, "CODE_MAX_ATTEMPTS", 5)
        store = SessionStore(session_factory, rng=ConstantRng())

        first = await store.create(SessionCreate())
        assert first.code == "AAAA"

        with pytest.raises(ResourceExhausted):
            await store.create(SessionCreate())

    async def test_get_returns_a_copy(self, store):
        session = await store.create(SessionCreate())
        fetched = await store.get(session.id)
        fetched.total_points = 999

        assert (await store.get(session.id)).total_points == 0

    async def test_edit_persists(self, store, session_factory):
        session = await store.create(SessionCreate())
        async with store.edit(session.code) as draft:
            draft.location = "Zolder"

        # A fresh store only sees what reached the database
        reloaded = await SessionStore(session_factory).get(session.id)
        assert reloaded.location == "Zolder"

    async def test_failed_edit_persists_nothing(self, store, session_factory):
        session = await store.create(SessionCreate(location="Kelder"))

        with pytest.raises(RuntimeError):
            async with store.edit(session.id) as draft:
                draft.location = "Zolder"
                raise RuntimeError("boom")

        assert (await store.get(session.id)).location == "Kelder"
        assert (await SessionStore(session_factory).get(session.id)).location == "Kelder"

    async def test_upsert_assigns_missing_id(self, store):
        session = await store.create(SessionCreate())
        clone = session.model_copy(update={"id": "", "code": ""})

        saved = await store.upsert(clone)

        assert saved.id and saved.id != session.id
        assert saved.code != session.code
        assert len(await store.list()) == 2

    async def test_list_in_creation_order(self, store):
        created = [await store.create(SessionCreate(location=str(i))) for i in range(3)]
        listed = await store.list()
        assert [s.id for s in listed] == [s.id for s in created]


@pytest.mark.asyncio
class TestSeriesStore:

    async def test_create_and_list(self, series_store):
        assert await series_store.list() == []

        series = await series_store.create(SeriesCreate(name="Winter 2024"))
        default = await series_store.create(SeriesCreate())

        listed = await series_store.list()
        assert [s.id for s in listed] == [series.id, default.id]
        assert listed[1].name == "New Series"
