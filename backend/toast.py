"""
Toast Game - everyone in the room raises their glass at once.

Each session has one open round: participant id -> press time (ms). When the
whole roster has pressed, the spread between first and last press decides
the outcome: inside the window everybody gets a celebration, outside it the
round starts over. Times come from the server clock, nothing fancier.
"""
from enum import Enum
from typing import Callable, Dict, Optional
import logging

import config
import utils
from connection_manager import Broadcaster
from presence import PresenceRegistry
from schemas import Event

logger = logging.getLogger(__name__)


class ToastOutcome(Enum):
    PRESSED = "toast:pressed"  # still waiting for others
    SUCCESS = "toast:success"
    RESET = "toast:reset"  # everyone pressed, but too far apart


class ToastGame:
    def __init__(
        self,
        presence: PresenceRegistry,
        broadcaster: Broadcaster,
        clock: Callable[[], int] = utils.now_ms,
        window_ms: int = config.TOAST_WINDOW_MS,
    ):
        self.presence = presence
        self.broadcaster = broadcaster
        self.clock = clock
        self.window_ms = window_ms
        self._rounds: Dict[str, Dict[str, int]] = {}

    def round(self, session_id: str) -> Dict[str, int]:
        return dict(self._rounds.get(session_id, {}))

    def press(self, session_id: str, participant_id: str) -> Optional[ToastOutcome]:
        """Record a press. Presses from anyone not in the room are ignored."""
        if not self.presence.is_present(session_id, participant_id):
            return None

        now = self.clock()
        presses = self._rounds.setdefault(session_id, {})
        presses[participant_id] = now

        roster = self.presence.participant_ids(session_id)
        for stale in set(presses) - set(roster):
            del presses[stale]

        everyone_pressed = bool(roster) and all(pid in presses for pid in roster)
        logger.debug(
            "Toast press by %s in %s: %d/%d pressed",
            participant_id, session_id, len(presses), len(roster),
        )

        if not everyone_pressed:
            self.broadcaster.publish(session_id, Event(type=ToastOutcome.PRESSED.value, payload={
                "participantId": participant_id,
                "pressedCount": len(presses),
                "totalCount": len(roster),
                "timestamp": now,
            }))
            return ToastOutcome.PRESSED

        window = max(presses.values()) - min(presses.values())
        self._rounds.pop(session_id, None)

        if window <= self.window_ms:
            logger.info("Toast success in %s: %d participants within %dms", session_id, len(roster), window)
            self.broadcaster.publish(session_id, Event(type=ToastOutcome.SUCCESS.value, payload={
                "participants": roster,
                "timestamp": now,
            }))
            return ToastOutcome.SUCCESS

        logger.info("Toast reset in %s: window %dms exceeds %dms", session_id, window, self.window_ms)
        self.broadcaster.publish(session_id, Event(type=ToastOutcome.RESET.value, payload={"window": window}))
        return ToastOutcome.RESET

    def forget(self, session_id: str, participant_id: str):
        """Drop a departed participant's press so they can't block the round."""
        presses = self._rounds.get(session_id)
        if presses is None:
            return
        presses.pop(participant_id, None)
        if not presses:
            del self._rounds[session_id]
