from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from typing import Any, Awaitable, Callable, Dict, List, Optional
import logging

from app.config.constants import CANDIDATE_POOL_LIMIT, DEFAULT_CANDIDATES_LIMIT, GENDER_PREFERENCE_TARGETS
from app.core.config import settings
from app.core.errors import (
    ConflictError,
    DependencyError,
    MatchEngineError,
    NotFoundError,
    QuotaExceededError,
    ValidationError,
)
from app.models.match import Match, MatchStatus
from app.models.profile import GenderPreference
from app.schemas.profile import ProfileSnapshot
from app.services.candidate_ranker import RankingBasis, gender_target, rank_candidates
from app.services.interaction_ledger import InteractionLedger, LedgerOutcome
from app.services.like_quota import LikeQuotaStatus, LikeQuotaTracker, wire_value
from app.services.match_state import Decision
from app.services.notifier import MatchNotificationEvent, MatchNotifier, NotificationParty
from app.services.profile_store import ProfileStore

logger = logging.getLogger(__name__)

# A ConflictError is retried this many times before it reaches the client
MAX_CONFLICT_RETRIES = 1

VALID_GENDER_PREFERENCES = set(GENDER_PREFERENCE_TARGETS) | {GenderPreference.BOTH.value}


def profile_summary(profile: ProfileSnapshot) -> Dict[str, Any]:
    return {
        "id": profile.id,
        "userId": profile.user_id,
        "name": profile.display_name,
        "bio": profile.bio,
        "gender": profile.gender.value if profile.gender else None,
        "genderPreference": profile.gender_preference.value,
        "relationshipType": sorted(t.value for t in profile.relationship_types),
        "keyWords": sorted(profile.keywords),
        "location": profile.location,
        "locationMode": profile.location_mode.value,
    }


def _isoformat(value):
    return value.isoformat() if value else None


class MatchService:
    """
    Like / dislike / unmatch and the discovery feed for one request.

    Every mutation runs in a single transaction: quota row lock, pair row
    transition and quota consumption commit together or not at all.
    Notifications go out only after the commit.
    """

    def __init__(
        self,
        session: AsyncSession,
        notifier: Optional[MatchNotifier] = None,
        ranking_basis: Optional[str] = None,
        quota: Optional[LikeQuotaTracker] = None,
    ):
        self.session = session
        self.notifier = notifier
        self.profiles = ProfileStore(session)
        self.ledger = InteractionLedger(session)
        self.quota = quota or LikeQuotaTracker(session)
        self.ranking_basis = RankingBasis(ranking_basis or settings.RANKING_BASIS)

    # ========================
    # Transaction helpers
    # ========================

    async def _transaction(self, operation: Callable[..., Awaitable[Any]], *args) -> Any:
        attempts = 0
        while True:
            try:
                result = await operation(*args)
                await self.session.commit()
                return result
            except ConflictError:
                await self.session.rollback()
                attempts += 1
                if attempts > MAX_CONFLICT_RETRIES:
                    logger.warning(f"{operation.__name__} still conflicting after {attempts} attempts")
                    raise
                logger.info(f"Retrying {operation.__name__} after concurrent update")
            except MatchEngineError:
                await self.session.rollback()
                raise
            except (SQLAlchemyError, OSError) as e:
                await self.session.rollback()
                logger.exception(f"Persistence failure in {operation.__name__}")
                raise DependencyError() from e

    async def _read(self, operation: Callable[..., Awaitable[Any]], *args) -> Any:
        try:
            return await operation(*args)
        except (SQLAlchemyError, OSError) as e:
            logger.exception(f"Persistence failure in {operation.__name__}")
            raise DependencyError() from e

    async def _deliver(self, method: str, *args):
        if self.notifier is None:
            return
        try:
            await getattr(self.notifier, method)(*args)
        except Exception:
            # Delivery is best effort; the committed match stands
            logger.exception(f"Notification {method} failed")

    async def _current_profile(self, user_id: int, message: str = "Your profile not found") -> ProfileSnapshot:
        current = await self.profiles.get_by_user(user_id)
        if current is None:
            raise NotFoundError(message)
        return current

    async def _resolve_pair(self, user_id: int, profile_id: int, verb: str):
        current = await self._current_profile(user_id)
        target = await self.profiles.get(profile_id)
        if target is None:
            raise NotFoundError("Target profile not found")
        if current.id == target.id:
            raise ValidationError(f"Cannot {verb} your own profile")
        return current, target

    def _quota_exceeded(self, quota: LikeQuotaStatus) -> QuotaExceededError:
        return QuotaExceededError(
            "Daily like limit reached",
            remainingLikes=wire_value(quota.remaining_likes),
            dailyLimit=wire_value(quota.daily_limit),
            isPremium=quota.is_premium,
            detail=(
                "You have used all your free likes for today. "
                "Upgrade to Premium for unlimited likes or wait until tomorrow."
            ),
        )

    async def _check_quota(self, user_id: int, current: ProfileSnapshot, target: ProfileSnapshot, decision: Decision):
        user, quota = await self.quota.check(user_id)
        if not quota.can_like:
            # A replayed like that changes nothing needs no quota
            preview = await self.ledger.preview(current.id, target.id, decision)
            if preview.changed:
                logger.warning(f"Like quota exhausted for user {user_id}")
                raise self._quota_exceeded(quota)
        return user, quota

    async def _notify_match(self, outcome: LedgerOutcome, current: ProfileSnapshot, target: ProfileSnapshot):
        event = MatchNotificationEvent(
            match_id=outcome.match.id,
            matched_at=outcome.match.matched_at,
            parties=(NotificationParty.from_profile(current), NotificationParty.from_profile(target)),
        )
        await self._deliver("notify_match", event)

    # ========================
    # Mutations
    # ========================

    async def _like_once(self, user_id: int, profile_id: int):
        current, target = await self._resolve_pair(user_id, profile_id, "like")
        user, quota = await self._check_quota(user_id, current, target, Decision.LIKE)

        outcome = await self.ledger.like(current.id, target.id)
        if outcome.changed:
            quota = self.quota.consume(user)
        return current, target, outcome, quota

    async def like(self, user_id: int, profile_id: int) -> Dict[str, Any]:
        current, target, outcome, quota = await self._transaction(self._like_once, user_id, profile_id)

        if outcome.became_matched:
            logger.info(f"Match {outcome.match.id} formed between profiles {current.id} and {target.id}")
            await self._notify_match(outcome, current, target)
        elif outcome.changed and outcome.state.status is MatchStatus.LIKED:
            await self._deliver(
                "notify_like",
                outcome.match.id,
                NotificationParty.from_profile(current),
                NotificationParty.from_profile(target),
            )

        return {
            "message": "It's a match!" if outcome.is_match else "Profile liked successfully",
            "isMatch": outcome.is_match,
            "matchId": outcome.match.id,
            "remainingLikes": wire_value(quota.remaining_likes),
            "dailyLimit": wire_value(quota.daily_limit),
        }

    async def _dislike_once(self, user_id: int, profile_id: int):
        current, target = await self._resolve_pair(user_id, profile_id, "dislike")
        return await self.ledger.dislike(current.id, target.id)

    async def dislike(self, user_id: int, profile_id: int) -> Dict[str, Any]:
        await self._transaction(self._dislike_once, user_id, profile_id)
        return {"message": "Profile disliked successfully"}

    async def _like_with_message_once(self, user_id: int, profile_id: int, content: str):
        current, target = await self._resolve_pair(user_id, profile_id, "like")
        user, quota = await self._check_quota(user_id, current, target, Decision.LIKE_WITH_MESSAGE)

        outcome = await self.ledger.like_with_message(current.id, target.id, content)
        if outcome.changed:
            quota = self.quota.consume(user)
        return current, target, outcome, quota

    async def like_with_message(self, user_id: int, profile_id: int, content: str) -> Dict[str, Any]:
        current, target, outcome, quota = await self._transaction(
            self._like_with_message_once, user_id, profile_id, content
        )
        message = outcome.message

        if outcome.became_matched:
            await self._notify_match(outcome, current, target)
        await self._deliver(
            "notify_message",
            outcome.match.id,
            message.id,
            NotificationParty.from_profile(current),
            NotificationParty.from_profile(target),
            content,
        )

        return {
            "message": "Match created! Your message was sent.",
            "isMatch": True,
            "matchId": outcome.match.id,
            "remainingLikes": wire_value(quota.remaining_likes),
            "dailyLimit": wire_value(quota.daily_limit),
            "sentMessage": {
                "id": message.id,
                "match": message.match_id,
                "content": message.content,
                "timestamp": _isoformat(message.created_at),
                "isRead": message.is_read,
                "sender": {"id": current.id, "name": current.display_name},
            },
        }

    async def _unmatch_once(self, user_id: int, match_id: int):
        current = await self._current_profile(user_id)
        outcome = await self.ledger.unmatch(current.id, match_id)
        other = await self.profiles.get(outcome.match.other_profile_id(current.id))
        return current, other, outcome

    async def unmatch(self, user_id: int, match_id: int) -> Dict[str, Any]:
        current, other, outcome = await self._transaction(self._unmatch_once, user_id, match_id)

        if other is not None:
            await self._deliver(
                "notify_unmatch",
                outcome.match.id,
                NotificationParty.from_profile(current),
                NotificationParty.from_profile(other),
            )
        return {"message": "User unmatched successfully", "matchId": outcome.match.id}

    # ========================
    # Reads
    # ========================

    async def _candidates(self, user_id: int, gender_preference: Optional[str], limit: int, offset: int):
        if gender_preference and gender_preference not in VALID_GENDER_PREFERENCES:
            raise ValidationError(f"Invalid genderPreference: {gender_preference}")

        current = await self._current_profile(user_id, "Profile not found. Please complete your profile first.")
        interacted = await self.ledger.interacted_profile_ids(current.id)
        target = gender_target(gender_preference or current.gender_preference.value)
        # The pool always covers the requested page
        pool = await self.profiles.candidate_pool(
            current,
            exclude_ids=interacted,
            gender=target,
            limit=max(CANDIDATE_POOL_LIMIT, offset + limit),
        )

        ranking = rank_candidates(
            current,
            pool,
            interacted,
            gender_preference=gender_preference,
            basis=self.ranking_basis,
            radius_km=settings.LOCAL_RADIUS_KM,
        )
        page = ranking.profiles[offset:offset + limit]

        response = {
            "profiles": [candidate.to_dict() for candidate in page],
            "totalCount": len(ranking.profiles),
        }
        if ranking.suggestion:
            response["suggestion"] = ranking.suggestion
        return response

    async def candidates(
        self,
        user_id: int,
        gender_preference: Optional[str] = None,
        limit: int = DEFAULT_CANDIDATES_LIMIT,
        offset: int = 0,
    ) -> Dict[str, Any]:
        return await self._read(self._candidates, user_id, gender_preference, limit, offset)

    def _match_entry(self, match: Match, profile_id: int, others: Dict[int, ProfileSnapshot]) -> Optional[Dict[str, Any]]:
        other = others.get(match.other_profile_id(profile_id))
        if other is None:
            return None
        return {
            "id": match.id,
            "matchedAt": _isoformat(match.matched_at),
            "profile": profile_summary(other),
        }

    async def _list_matches(self, user_id: int) -> List[Dict[str, Any]]:
        current = await self._current_profile(user_id, "Profile not found")
        matches = await self.ledger.list_matches(current.id)
        others = await self.profiles.get_many(m.other_profile_id(current.id) for m in matches)
        entries = (self._match_entry(m, current.id, others) for m in matches)
        return [entry for entry in entries if entry is not None]

    async def list_matches(self, user_id: int) -> List[Dict[str, Any]]:
        return await self._read(self._list_matches, user_id)

    async def _get_match(self, user_id: int, match_id: int) -> Dict[str, Any]:
        current = await self._current_profile(user_id, "Profile not found")
        match = await self.ledger.get_match(current.id, match_id)
        others = await self.profiles.get_many([match.other_profile_id(current.id)])
        entry = self._match_entry(match, current.id, others)
        if entry is None:
            raise NotFoundError("Match not found")
        return entry

    async def get_match(self, user_id: int, match_id: int) -> Dict[str, Any]:
        return await self._read(self._get_match, user_id, match_id)

    async def _likes_received(self, user_id: int) -> Dict[str, Any]:
        current = await self._current_profile(user_id, "Profile not found")
        matches = await self.ledger.likes_received(current.id)
        likers = await self.profiles.get_many(m.other_profile_id(current.id) for m in matches)
        quota = await self.quota.status(user_id)

        likes = []
        for match in matches:
            liker = likers.get(match.other_profile_id(current.id))
            if liker is None:
                continue
            likes.append({
                "matchId": match.id,
                "likerId": liker.id,
                "likerUserId": liker.user_id,
                "likerName": liker.display_name,
                "likedAt": _isoformat(match.created_at),
                "profile": profile_summary(liker),
            })

        return {"likesReceived": likes, "totalCount": len(likes), "isPremium": quota.is_premium}

    async def likes_received(self, user_id: int) -> Dict[str, Any]:
        return await self._read(self._likes_received, user_id)

    async def like_status(self, user_id: int) -> Dict[str, Any]:
        status = await self._read(self.quota.status, user_id)
        return status.to_dict()
