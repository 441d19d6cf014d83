from fastapi import APIRouter, Depends

from app.api.deps import get_current_user_id, get_match_service
from app.services.match_service import MatchService

router = APIRouter(prefix="/api/likes", tags=["likes"])


@router.get("/status")
async def like_status(
    user_id: int = Depends(get_current_user_id),
    service: MatchService = Depends(get_match_service),
):
    return await service.like_status(user_id)
