from fastapi import APIRouter, Depends
from typing import Optional

from deps import get_presence
from presence import PresenceRegistry
from schemas import CallerRequest, KickResponse, TastingSession
from security import get_session_by_id_or_code

router = APIRouter(prefix="/api/sessions/{id_or_code}/participants", tags=["participants"])


@router.post("/{participant_id}/kick", response_model=KickResponse)
async def kick_participant(
    participant_id: str,
    caller: Optional[CallerRequest] = None,
    session: TastingSession = Depends(get_session_by_id_or_code),
    presence: PresenceRegistry = Depends(get_presence)
):
    caller_id = caller.participant_id if caller else None
    await presence.kick(session, participant_id, caller_id)
    return KickResponse(kicked_participant_id=participant_id)
