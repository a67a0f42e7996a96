"""
Tasting lifecycle - the rules for moving whiskies through a session.

Per whisky:

    pending --activate--> active --cancel--> pending (ratings wiped)
    pending/active --reveal--> revealed (terminal)

A session has at most one active whisky; activating another one simply
moves the pointer. Activate, cancel, reveal and settings changes are
reserved for the session creator when one is recorded.

Every operation runs inside SessionStore.edit(): the change is persisted
before the event goes out, and a raised error persists nothing.
"""
from typing import Optional
import logging

import utils
from connection_manager import LOBBY, Broadcaster
from errors import InvalidState, PermissionDenied, ValidationError
from schemas import (
    ActivateResponse,
    CancelResponse,
    Event,
    Item,
    ItemCreate,
    RateResponse,
    Rating,
    RatingCreate,
    RevealResponse,
    SessionCreate,
    SettingsUpdate,
    TastingSession,
)
from scoring import compute_points
from store import SessionStore

logger = logging.getLogger(__name__)


def require_creator(session: TastingSession, caller_id: Optional[str], action: str):
    if not session.is_creator(caller_id):
        raise PermissionDenied(f"Only the session creator can {action}")


class TastingService:
    def __init__(self, store: SessionStore, broadcaster: Broadcaster):
        self.store = store
        self.broadcaster = broadcaster

    def _emit(self, session: TastingSession, event_type: str, payload):
        self.broadcaster.publish(session.id, Event(type=event_type, payload=payload))

    async def create_session(self, data: SessionCreate) -> TastingSession:
        session = await self.store.create(data)
        self.broadcaster.publish(LOBBY, Event(type="session:created", payload=session))
        return session

    async def add_item(self, id_or_code: str, data: ItemCreate) -> Item:
        async with self.store.edit(id_or_code) as session:
            item = Item(id=utils.generate_uuid(), **data.model_dump())
            session.items.append(item)
        self._emit(session, "item:added", item)
        return item

    async def rate(self, id_or_code: str, item_id: str, data: RatingCreate) -> RateResponse:
        async with self.store.edit(id_or_code) as session:
            item = session.get_item(item_id)
            if item.revealed:
                raise InvalidState("Cannot rate an already revealed whisky")
            if len(data.flavor_notes) > session.max_flavor_notes:
                raise ValidationError(
                    f"At most {session.max_flavor_notes} flavor notes may be selected"
                )

            rating = Rating(id=utils.generate_uuid(), timestamp=utils.utc_iso(), **data.model_dump())
            # Last submission per participant wins
            item.ratings = [r for r in item.ratings if r.participant_id != rating.participant_id]
            item.ratings.append(rating)

        # Points are only settled at reveal, so the total is unchanged here
        response = RateResponse(rating=rating, total_points=session.total_points)
        self._emit(session, "rating:updated", {
            "itemId": item_id,
            "rating": rating,
            "totalPoints": session.total_points,
        })
        return response

    async def activate(self, id_or_code: str, item_id: str, caller_id: Optional[str]) -> ActivateResponse:
        async with self.store.edit(id_or_code) as session:
            require_creator(session, caller_id, "activate whiskies")
            item = session.get_item(item_id)
            if item.revealed:
                raise InvalidState("Cannot activate an already revealed whisky")
            session.active_item_id = item.id

        self._emit(session, "item:activated", {"itemId": item.id, "item": item})
        return ActivateResponse(active_item_id=session.active_item_id)

    async def cancel(self, id_or_code: str, item_id: str, caller_id: Optional[str]) -> CancelResponse:
        async with self.store.edit(id_or_code) as session:
            require_creator(session, caller_id, "cancel whiskies")
            item = session.get_item(item_id)
            if item.revealed:
                raise InvalidState("Cannot cancel an already revealed whisky")
            item.ratings = []
            if session.active_item_id == item.id:
                session.active_item_id = None

        logger.info("Whisky %s cancelled in session %s", item.id, session.code)
        self._emit(session, "item:cancelled", {"itemId": item.id, "item": item})
        return CancelResponse(item=item)

    async def reveal(self, id_or_code: str, item_id: str, caller_id: Optional[str]) -> RevealResponse:
        """
        Reveal a whisky and settle its points.

        Safe to call again: the breakdown is recomputed and re-broadcast, but
        the session total only ever counts the whisky once.
        """
        async with self.store.edit(id_or_code) as session:
            require_creator(session, caller_id, "reveal whiskies")
            item = session.get_item(item_id)

            item.revealed = True
            if item.id not in session.revealed_items:
                session.revealed_items.append(item.id)

            result = compute_points(item.ratings)
            item.points = result.total
            item.points_breakdown = result.breakdown

            if not item.points_calculated:
                session.total_points += result.total
                item.points_calculated = True

            if session.active_item_id == item.id:
                session.active_item_id = None

        logger.info(
            "Whisky %s revealed in session %s: %d points (total %d)",
            item.id, session.code, result.total, session.total_points,
        )
        response = RevealResponse(
            item=item,
            item_points=result.total,
            total_points=session.total_points,
            breakdown=result.breakdown,
        )
        self._emit(session, "item:revealed", {
            "itemId": item.id,
            "item": item,
            "itemPoints": result.total,
            "totalPoints": session.total_points,
            "pointsBreakdown": result.breakdown,
        })
        return response

    async def update_settings(self, id_or_code: str, data: SettingsUpdate) -> TastingSession:
        async with self.store.edit(id_or_code) as session:
            require_creator(session, data.participant_id, "change session settings")
            if data.max_flavor_notes is not None:
                session.max_flavor_notes = data.max_flavor_notes

        self._emit(session, "session:updated", session)
        return session
