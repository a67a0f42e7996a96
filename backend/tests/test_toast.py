"""
Tests for the toast synchronization game.
"""
import pytest
import pytest_asyncio

from conftest import FakeConnection
from schemas import Participant, TastingSession
from toast import ToastOutcome

SESSION_ID = "session-1"


def host_session() -> TastingSession:
    return TastingSession(id=SESSION_ID, code="ABCD", date="2024-01-01", creator_id="a", created_at="2024-01-01")


@pytest_asyncio.fixture
async def room(presence):
    for pid in ("a", "b", "c"):
        await presence.join(SESSION_ID, Participant(id=pid, name=pid.upper()), FakeConnection(f"conn-{pid}"))
    return presence


def event_types(subscription):
    return [m["type"] for m in subscription.pending()]


@pytest.mark.asyncio
class TestToastRound:

    async def test_all_within_window_succeeds(self, room, toast, clock, broadcaster):
        events = broadcaster.subscribe(SESSION_ID)

        assert toast.press(SESSION_ID, "a") is ToastOutcome.PRESSED
        clock.advance(1200)
        assert toast.press(SESSION_ID, "b") is ToastOutcome.PRESSED
        clock.advance(1800)
        assert toast.press(SESSION_ID, "c") is ToastOutcome.SUCCESS

        published = events.pending()
        assert [e["type"] for e in published] == ["toast:pressed", "toast:pressed", "toast:success"]
        assert published[1]["payload"]["pressedCount"] == 2
        assert published[1]["payload"]["totalCount"] == 3
        assert sorted(published[2]["payload"]["participants"]) == ["a", "b", "c"]
        assert toast.round(SESSION_ID) == {}

    async def test_too_slow_resets(self, room, toast, clock, broadcaster):
        events = broadcaster.subscribe(SESSION_ID)

        toast.press(SESSION_ID, "a")
        clock.advance(2000)
        toast.press(SESSION_ID, "b")
        clock.advance(1500)
        assert toast.press(SESSION_ID, "c") is ToastOutcome.RESET

        types = event_types(events)
        assert types[-1] == "toast:reset"
        assert "toast:success" not in types
        assert toast.round(SESSION_ID) == {}

    async def test_repress_updates_timestamp(self, room, toast, clock):
        toast.press(SESSION_ID, "a")
        clock.advance(5000)
        toast.press(SESSION_ID, "a")
        toast.press(SESSION_ID, "b")
        assert toast.press(SESSION_ID, "c") is ToastOutcome.SUCCESS

    async def test_absent_participant_is_ignored(self, room, toast, broadcaster):
        events = broadcaster.subscribe(SESSION_ID)
        assert toast.press(SESSION_ID, "stranger") is None
        assert toast.press("other-session", "a") is None
        assert events.pending() == []
        assert toast.round(SESSION_ID) == {}

    async def test_disconnect_drops_press_and_unblocks_quorum(self, room, toast):
        toast.press(SESSION_ID, "a")
        toast.press(SESSION_ID, "c")
        room.disconnect("conn-c")

        assert toast.round(SESSION_ID) == {"a": toast.clock()}
        assert toast.press(SESSION_ID, "b") is ToastOutcome.SUCCESS

    async def test_kick_drops_press_and_unblocks_quorum(self, room, toast):
        toast.press(SESSION_ID, "a")
        toast.press(SESSION_ID, "c")
        await room.kick(host_session(), "c", "a")

        assert toast.round(SESSION_ID) == {"a": toast.clock()}
        assert toast.press(SESSION_ID, "b") is ToastOutcome.SUCCESS

    async def test_new_round_after_resolution(self, room, toast, clock):
        for pid in ("a", "b", "c"):
            toast.press(SESSION_ID, pid)
        clock.advance(60_000)
        assert toast.press(SESSION_ID, "a") is ToastOutcome.PRESSED
        assert toast.round(SESSION_ID) == {"a": clock.now}

    async def test_single_participant_toasts_alone(self, presence, toast):
        await presence.join(SESSION_ID, Participant(id="solo"), FakeConnection("conn-solo"))
        assert toast.press(SESSION_ID, "solo") is ToastOutcome.SUCCESS
