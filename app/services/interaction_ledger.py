import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Set, Tuple

from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.match import Match, MatchStatus
from app.models.message import Message
from app.services.match_state import (
    Decision,
    InvalidTransition,
    PairState,
    Side,
    Transition,
    apply_to_row,
    state_from_row,
    transition,
)

logger = logging.getLogger(__name__)

# Statuses that hide the other party from a profile's candidates regardless of flags.
# A dislike hides the pair from both sides, not only from the disliker: the row
# does not record who disliked. See "Exclusion set" in DESIGN.md.
EXCLUDING_STATUSES = {MatchStatus.DISLIKED.value, MatchStatus.MATCHED.value}


def canonical_pair(x: int, y: int) -> Tuple[int, int]:
    if x == y:
        raise ValidationError("Cannot interact with your own profile")
    return min(x, y), max(x, y)


def side_of(profile_id: int, profile_a_id: int) -> Side:
    return Side.A if profile_id == profile_a_id else Side.B


def is_excluded_for(match: Match, profile_id: int) -> bool:
    """
    True when ``profile_id`` has acted on the pair itself (own like flag) or the
    pair is settled. The other side's flag alone never excludes.
    """
    if match.profile_a_id == profile_id:
        own_liked = match.a_liked
    elif match.profile_b_id == profile_id:
        own_liked = match.b_liked
    else:
        return False
    return bool(own_liked) or match.status in EXCLUDING_STATUSES


@dataclass
class LedgerOutcome:
    match: Match
    state: PairState
    changed: bool
    became_matched: bool
    message: Optional[Message] = None

    @property
    def is_match(self) -> bool:
        return self.state.status is MatchStatus.MATCHED


class InteractionLedger:
    """
    Owns the Match rows. Mutations lock the pair row and flush, but never commit:
    the caller commits once so quota and match changes land together.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_pair(self, x: int, y: int, for_update: bool = False) -> Optional[Match]:
        profile_a_id, profile_b_id = canonical_pair(x, y)
        stmt = select(Match).where(
            Match.profile_a_id == profile_a_id,
            Match.profile_b_id == profile_b_id,
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def preview(self, actor_id: int, target_id: int, decision: Decision) -> Transition:
        """Compute the transition without writing anything."""
        profile_a_id, _ = canonical_pair(actor_id, target_id)
        match = await self.find_pair(actor_id, target_id, for_update=True)
        return transition(state_from_row(match), decision, side_of(actor_id, profile_a_id))

    async def _apply(self, actor_id: int, target_id: int, decision: Decision, now: datetime = None) -> LedgerOutcome:
        profile_a_id, profile_b_id = canonical_pair(actor_id, target_id)
        side = side_of(actor_id, profile_a_id)
        now = now or datetime.now(timezone.utc)

        match = await self.find_pair(actor_id, target_id, for_update=True)
        state = state_from_row(match)
        try:
            result = transition(state, decision, side, now)
        except InvalidTransition as e:
            logger.warning(f"Rejected {decision.value} by profile {actor_id} on pair ({profile_a_id}, {profile_b_id}): {e}")
            raise ValidationError("Use unmatch to leave an existing match") from e

        if match is None:
            match = Match(profile_a_id=profile_a_id, profile_b_id=profile_b_id)
            apply_to_row(match, result.state)
            try:
                async with self.session.begin_nested():
                    self.session.add(match)
            except IntegrityError as e:
                # The other side inserted the same pair first
                logger.info(f"Pair ({profile_a_id}, {profile_b_id}) created concurrently")
                raise ConflictError() from e
        elif result.changed:
            apply_to_row(match, result.state)
            try:
                await self.session.flush()
            except StaleDataError as e:
                logger.info(f"Pair ({profile_a_id}, {profile_b_id}) updated concurrently")
                raise ConflictError() from e

        if result.changed:
            logger.info(
                f"Pair ({profile_a_id}, {profile_b_id}): {decision.value} by {actor_id}, "
                f"{state.status_label} -> {result.state.status_label}"
            )
        return LedgerOutcome(
            match=match,
            state=result.state,
            changed=result.changed,
            became_matched=result.became_matched,
        )

    async def like(self, actor_id: int, target_id: int) -> LedgerOutcome:
        return await self._apply(actor_id, target_id, Decision.LIKE)

    async def dislike(self, actor_id: int, target_id: int) -> LedgerOutcome:
        return await self._apply(actor_id, target_id, Decision.DISLIKE)

    async def like_with_message(self, actor_id: int, target_id: int, content: str) -> LedgerOutcome:
        now = datetime.now(timezone.utc)
        outcome = await self._apply(actor_id, target_id, Decision.LIKE_WITH_MESSAGE, now=now)

        message = Message(
            match_id=outcome.match.id,
            sender_profile_id=actor_id,
            content=content,
            is_read=False,
            created_at=now,
        )
        self.session.add(message)
        await self.session.flush()
        outcome.message = message
        return outcome

    async def unmatch(self, actor_id: int, match_id: int) -> LedgerOutcome:
        stmt = select(Match).where(Match.id == match_id).with_for_update()
        result = await self.session.execute(stmt)
        match = result.scalar_one_or_none()

        if match is None or not match.has_party(actor_id):
            raise NotFoundError("Match not found or you are not part of this match")

        state = state_from_row(match)
        try:
            step = transition(state, Decision.UNMATCH, side_of(actor_id, match.profile_a_id))
        except InvalidTransition as e:
            raise NotFoundError("Match not found or you are not part of this match") from e

        apply_to_row(match, step.state)
        try:
            await self.session.flush()
        except StaleDataError as e:
            raise ConflictError() from e

        logger.info(f"Match {match.id} unmatched by profile {actor_id}")
        return LedgerOutcome(match=match, state=step.state, changed=True, became_matched=False)

    async def interacted_profile_ids(self, profile_id: int) -> Set[int]:
        """Profiles that ``profile_id`` should no longer see as candidates."""
        stmt = select(Match).where(
            or_(Match.profile_a_id == profile_id, Match.profile_b_id == profile_id)
        )
        result = await self.session.execute(stmt)
        return {
            match.other_profile_id(profile_id)
            for match in result.scalars().all()
            if is_excluded_for(match, profile_id)
        }

    async def list_matches(self, profile_id: int) -> List[Match]:
        stmt = select(Match).where(
            or_(Match.profile_a_id == profile_id, Match.profile_b_id == profile_id),
            Match.status == MatchStatus.MATCHED.value,
        ).order_by(Match.matched_at.desc().nulls_last(), Match.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_match(self, profile_id: int, match_id: int) -> Match:
        stmt = select(Match).where(
            Match.id == match_id,
            or_(Match.profile_a_id == profile_id, Match.profile_b_id == profile_id),
            Match.status == MatchStatus.MATCHED.value,
        )
        result = await self.session.execute(stmt)
        match = result.scalar_one_or_none()
        if match is None:
            raise NotFoundError("Match not found")
        return match

    async def likes_received(self, profile_id: int) -> List[Match]:
        """Pairs where the other side liked ``profile_id`` and it has not answered yet."""
        stmt = select(Match).where(
            or_(
                (Match.profile_b_id == profile_id) & Match.a_liked.is_(True) & Match.b_liked.is_(False),
                (Match.profile_a_id == profile_id) & Match.b_liked.is_(True) & Match.a_liked.is_(False),
            ),
            Match.status == MatchStatus.LIKED.value,
        ).order_by(Match.created_at.desc(), Match.id.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
