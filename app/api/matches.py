"""Like / dislike / unmatch endpoints and match listings."""
import logging

from fastapi import APIRouter, Depends

from app.api.deps import get_current_user_id, get_match_service
from app.schemas.match import LikeWithMessageRequest, ProfileActionRequest, UnmatchRequest
from app.services.match_service import MatchService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/matches", tags=["matches"])


@router.post("/like")
async def like_profile(
    body: ProfileActionRequest,
    user_id: int = Depends(get_current_user_id),
    service: MatchService = Depends(get_match_service),
):
    return await service.like(user_id, body.profile_id)


@router.post("/dislike")
async def dislike_profile(
    body: ProfileActionRequest,
    user_id: int = Depends(get_current_user_id),
    service: MatchService = Depends(get_match_service),
):
    return await service.dislike(user_id, body.profile_id)


@router.post("/like-with-message")
async def like_with_message(
    body: LikeWithMessageRequest,
    user_id: int = Depends(get_current_user_id),
    service: MatchService = Depends(get_match_service),
):
    """Like a profile and open the conversation in one step. Creates the match immediately."""
    return await service.like_with_message(user_id, body.profile_id, body.message)


@router.post("/unmatch")
async def unmatch(
    body: UnmatchRequest,
    user_id: int = Depends(get_current_user_id),
    service: MatchService = Depends(get_match_service),
):
    return await service.unmatch(user_id, body.match_id)


@router.get("")
async def list_matches(
    user_id: int = Depends(get_current_user_id),
    service: MatchService = Depends(get_match_service),
):
    return await service.list_matches(user_id)


@router.get("/likes-received")
async def likes_received(
    user_id: int = Depends(get_current_user_id),
    service: MatchService = Depends(get_match_service),
):
    return await service.likes_received(user_id)


@router.get("/{match_id}")
async def get_match(
    match_id: int,
    user_id: int = Depends(get_current_user_id),
    service: MatchService = Depends(get_match_service),
):
    return await service.get_match(user_id, match_id)
