from fastapi import APIRouter, Depends
from typing import Optional

from deps import get_tastings
from schemas import (
    ActivateResponse,
    CallerRequest,
    CancelResponse,
    Item,
    ItemCreate,
    RateResponse,
    RatingCreate,
    RevealResponse,
)
from tasting import TastingService

router = APIRouter(prefix="/api/sessions/{id_or_code}/items", tags=["items"])


def caller_of(caller: Optional[CallerRequest]) -> Optional[str]:
    return caller.participant_id if caller else None


@router.post("", response_model=Item)
async def add_item(
    id_or_code: str,
    item_in: ItemCreate,
    tastings: TastingService = Depends(get_tastings)
):
    return await tastings.add_item(id_or_code, item_in)


@router.post("/{item_id}/rate", response_model=RateResponse)
async def rate_item(
    id_or_code: str,
    item_id: str,
    rating_in: RatingCreate,
    tastings: TastingService = Depends(get_tastings)
):
    return await tastings.rate(id_or_code, item_id, rating_in)


@router.post("/{item_id}/activate", response_model=ActivateResponse)
async def activate_item(
    id_or_code: str,
    item_id: str,
    caller: Optional[CallerRequest] = None,
    tastings: TastingService = Depends(get_tastings)
):
    return await tastings.activate(id_or_code, item_id, caller_of(caller))


@router.post("/{item_id}/cancel", response_model=CancelResponse)
async def cancel_item(
    id_or_code: str,
    item_id: str,
    caller: Optional[CallerRequest] = None,
    tastings: TastingService = Depends(get_tastings)
):
    return await tastings.cancel(id_or_code, item_id, caller_of(caller))


@router.post("/{item_id}/reveal", response_model=RevealResponse)
async def reveal_item(
    id_or_code: str,
    item_id: str,
    caller: Optional[CallerRequest] = None,
    tastings: TastingService = Depends(get_tastings)
):
    return await tastings.reveal(id_or_code, item_id, caller_of(caller))
