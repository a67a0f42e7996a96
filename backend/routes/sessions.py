from fastapi import APIRouter, Depends
from typing import List

from deps import get_store, get_tastings
from schemas import QRCodeResponse, SessionCreate, SettingsUpdate, TastingSession
from security import get_session_by_code, get_session_by_id_or_code
from store import SessionStore
from tasting import TastingService
from utils import generate_qr_code_base64, get_frontend_url

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


@router.post("", response_model=TastingSession)
async def create_session(
    session_in: SessionCreate,
    tastings: TastingService = Depends(get_tastings)
):
    return await tastings.create_session(session_in)


@router.get("", response_model=List[TastingSession])
async def list_sessions(store: SessionStore = Depends(get_store)):
    return await store.list()


@router.get("/code/{code}", response_model=TastingSession)
async def get_session_by_code_only(
    session: TastingSession = Depends(get_session_by_code)
):
    return session


@router.get("/{id_or_code}", response_model=TastingSession)
async def get_session(
    session: TastingSession = Depends(get_session_by_id_or_code)
):
    return session


@router.get("/{id_or_code}/qr", response_model=QRCodeResponse)
async def get_join_qr(
    session: TastingSession = Depends(get_session_by_id_or_code)
):
    join_url = f"{get_frontend_url()}/session/{session.code}"
    return QRCodeResponse(
        code=session.code,
        join_url=join_url,
        qr_code=generate_qr_code_base64(join_url)
    )


@router.patch("/{id_or_code}/settings", response_model=TastingSession)
async def update_settings(
    id_or_code: str,
    settings_in: SettingsUpdate,
    tastings: TastingService = Depends(get_tastings)
):
    return await tastings.update_settings(id_or_code, settings_in)
