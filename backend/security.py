from fastapi import Depends, Path

from deps import get_store
from schemas import TastingSession
from store import SessionStore


async def get_session_by_id_or_code(
    id_or_code: str = Path(..., min_length=1, max_length=64),
    store: SessionStore = Depends(get_store)
) -> TastingSession:
    """Dependency resolving a session from its id or its 4-letter code.

    Raises NotFound (rendered as 404) when neither matches.
    """
    return await store.get(id_or_code)


async def get_session_by_code(
    code: str = Path(..., min_length=4, max_length=4),
    store: SessionStore = Depends(get_store)
) -> TastingSession:
    return await store.get_by_code(code)
