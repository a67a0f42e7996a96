from fastapi import APIRouter, Depends
from typing import List

from deps import get_series_store
from schemas import Series, SeriesCreate
from store import SeriesStore

router = APIRouter(prefix="/api/series", tags=["series"])


@router.get("", response_model=List[Series])
async def list_series(store: SeriesStore = Depends(get_series_store)):
    return await store.list()


@router.post("", response_model=Series)
async def create_series(
    series_in: SeriesCreate,
    store: SeriesStore = Depends(get_series_store)
):
    return await store.create(series_in)
