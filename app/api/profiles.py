from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_current_user_id, get_match_service
from app.config.constants import DEFAULT_CANDIDATES_LIMIT, MAX_CANDIDATES_LIMIT
from app.services.match_service import MatchService

router = APIRouter(prefix="/api/profiles", tags=["profiles"])


@router.get("/candidates")
async def get_candidates(
    gender_preference: Optional[str] = Query(None, alias="genderPreference"),
    limit: int = Query(DEFAULT_CANDIDATES_LIMIT, ge=1, le=MAX_CANDIDATES_LIMIT),
    offset: int = Query(0, ge=0),
    user_id: int = Depends(get_current_user_id),
    service: MatchService = Depends(get_match_service),
):
    """Ranked discovery feed for the current user."""
    return await service.candidates(user_id, gender_preference, limit, offset)
