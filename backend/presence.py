"""
Presence Registry - who is live in which session right now.

Entries live only in process memory and are bound to the connection that
announced them. A restart forgets everyone; clients rejoin on reconnect and
joining twice is harmless.
"""
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol, Tuple
import logging

from connection_manager import Broadcaster
from errors import InvalidOperation, PermissionDenied
from schemas import Event, Participant, ParticipantUpdate, TastingSession

logger = logging.getLogger(__name__)


class Connection(Protocol):
    id: str

    async def send(self, event: Event): ...

    async def close(self, code: int = 4001): ...


@dataclass
class PresenceEntry:
    participant_id: str
    name: str
    avatar: Optional[str]
    connection: Connection

    def to_participant(self) -> Participant:
        return Participant(id=self.participant_id, name=self.name, avatar=self.avatar)


class PresenceRegistry:
    def __init__(self, broadcaster: Broadcaster):
        self.broadcaster = broadcaster
        self._sessions: Dict[str, Dict[str, PresenceEntry]] = {}
        self._leave_listeners: List[Callable[[str, str], None]] = []

    def on_leave(self, listener: Callable[[str, str], None]):
        """Register listener(session_id, participant_id) for every removal."""
        self._leave_listeners.append(listener)

    def _removed(self, session_id: str, participant_id: str):
        members = self._sessions.get(session_id)
        if members is not None and not members:
            del self._sessions[session_id]
        for listener in self._leave_listeners:
            listener(session_id, participant_id)

    # --- queries ---

    def roster(self, session_id: str) -> List[Participant]:
        return [e.to_participant() for e in self._sessions.get(session_id, {}).values()]

    def participant_ids(self, session_id: str) -> List[str]:
        return list(self._sessions.get(session_id, {}))

    def is_present(self, session_id: str, participant_id: str) -> bool:
        return participant_id in self._sessions.get(session_id, {})

    def entry(self, session_id: str, participant_id: str) -> Optional[PresenceEntry]:
        return self._sessions.get(session_id, {}).get(participant_id)

    # --- membership changes ---

    async def join(self, session_id: str, participant: Participant, connection: Connection):
        members = self._sessions.setdefault(session_id, {})
        members[participant.id] = PresenceEntry(
            participant_id=participant.id,
            name=participant.name,
            avatar=participant.avatar,
            connection=connection,
        )
        logger.info("Participant %s joined session %s", participant.id, session_id)

        self.broadcaster.publish(session_id, Event(type="participant:joined", payload={"participant": participant}))
        # Joiner gets the full roster so a reconnect can reconcile immediately
        await connection.send(Event(type="participants:list", payload={"participants": self.roster(session_id)}))

    def update(self, session_id: str, participant: ParticipantUpdate) -> Optional[Participant]:
        entry = self.entry(session_id, participant.id)
        if entry is None:
            # Reconnect races: an update may arrive before the join
            return None

        if participant.name is not None:
            entry.name = participant.name
        if participant.avatar is not None:
            entry.avatar = participant.avatar

        merged = entry.to_participant()
        self.broadcaster.publish(session_id, Event(type="participant:updated", payload={"participant": merged}))
        return merged

    def disconnect(self, connection_id: str) -> List[Tuple[str, str]]:
        """Drop every entry bound to a closed connection, across sessions."""
        dropped = []
        for session_id, members in list(self._sessions.items()):
            for participant_id, entry in list(members.items()):
                if entry.connection.id == connection_id:
                    del members[participant_id]
                    dropped.append((session_id, participant_id))

        for session_id, participant_id in dropped:
            logger.info("Participant %s left session %s", participant_id, session_id)
            self.broadcaster.publish(session_id, Event(type="participant:left", payload={"participantId": participant_id}))
            self._removed(session_id, participant_id)
        return dropped

    async def kick(self, session: TastingSession, target_id: str, caller_id: Optional[str]) -> bool:
        """
        Remove a participant on the creator's behalf and close their socket.

        Returns:
            True if the target was present and has been removed.
        """
        if not session.is_creator(caller_id):
            raise PermissionDenied("Only the session creator can kick participants")
        if target_id == session.creator_id:
            raise InvalidOperation("Cannot kick the session creator")
        if target_id == caller_id:
            raise InvalidOperation("Cannot kick yourself")

        members = self._sessions.get(session.id, {})
        entry = members.pop(target_id, None)
        if entry is None:
            return False

        logger.info("Participant %s kicked from session %s", target_id, session.id)
        kicked = Event(type="participant:kicked", payload={"participantId": target_id, "reason": "Kicked by creator"})

        # Target hears it directly; once closed its socket forwards no topic events
        try:
            await entry.connection.send(kicked)
        except Exception:
            logger.warning("Could not notify kicked participant %s", target_id)
        finally:
            await entry.connection.close()

        self.broadcaster.publish(session.id, kicked)
        self._removed(session.id, target_id)
        return True
