"""
Pair state machine for likes, dislikes and matches.

Every unordered pair of profiles is in exactly one of the states below.
``NoInteraction`` stands for "no row stored yet", so ``transition`` is total:
each (state, decision) combination either yields a next state or raises
``InvalidTransition``. The function is pure; persistence lives in
``InteractionLedger``.
"""
import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

from app.models.match import Match, MatchStatus


class Decision(str, enum.Enum):
    LIKE = "like"
    DISLIKE = "dislike"
    LIKE_WITH_MESSAGE = "like_with_message"
    UNMATCH = "unmatch"


class Side(str, enum.Enum):
    A = "a"  # smaller profile id
    B = "b"


class InvalidTransition(ValueError):
    def __init__(self, state: "PairState", decision: Decision):
        self.state = state
        self.decision = decision
        super().__init__(f"Cannot {decision.value} from {state.status_label}")


@dataclass(frozen=True)
class NoInteraction:
    status = None
    status_label = "no_interaction"
    a_liked = False
    b_liked = False
    matched_at = None


@dataclass(frozen=True)
class Pending:
    a_liked: bool = False
    b_liked: bool = False
    matched_at: Optional[datetime] = None
    status = MatchStatus.PENDING
    status_label = MatchStatus.PENDING.value


@dataclass(frozen=True)
class Liked:
    a_liked: bool = False
    b_liked: bool = False
    matched_at: Optional[datetime] = None
    status = MatchStatus.LIKED
    status_label = MatchStatus.LIKED.value


@dataclass(frozen=True)
class Disliked:
    a_liked: bool = False
    b_liked: bool = False
    matched_at: Optional[datetime] = None
    status = MatchStatus.DISLIKED
    status_label = MatchStatus.DISLIKED.value


@dataclass(frozen=True)
class Matched:
    matched_at: datetime
    a_liked: bool = True
    b_liked: bool = True
    status = MatchStatus.MATCHED
    status_label = MatchStatus.MATCHED.value


@dataclass(frozen=True)
class Unmatched:
    a_liked: bool = False
    b_liked: bool = False
    matched_at: Optional[datetime] = None
    status = MatchStatus.UNMATCHED
    status_label = MatchStatus.UNMATCHED.value


PairState = Union[NoInteraction, Pending, Liked, Disliked, Matched, Unmatched]


@dataclass(frozen=True)
class Transition:
    state: PairState
    changed: bool
    became_matched: bool = False


def own_flag(state: PairState, side: Side) -> bool:
    return state.a_liked if side is Side.A else state.b_liked


def _with_flag(state: PairState, side: Side, value: bool) -> tuple:
    if side is Side.A:
        return value, state.b_liked
    return state.a_liked, value


def _result(old: PairState, new: PairState) -> Transition:
    became_matched = isinstance(new, Matched) and not isinstance(old, Matched)
    return Transition(state=new, changed=new != old, became_matched=became_matched)


def _like(state: PairState, side: Side, now: datetime) -> Transition:
    if isinstance(state, Matched):
        return Transition(state=state, changed=False)

    if isinstance(state, (NoInteraction, Unmatched)):
        # A fresh like on an unmatched pair starts the pair over
        a_liked, b_liked = _with_flag(NoInteraction(), side, True)
        return _result(state, Liked(a_liked=a_liked, b_liked=b_liked))

    a_liked, b_liked = _with_flag(state, side, True)
    if a_liked and b_liked:
        return _result(state, Matched(matched_at=now))
    return _result(state, Liked(a_liked=a_liked, b_liked=b_liked))


def _like_with_message(state: PairState, side: Side, now: datetime) -> Transition:
    # A message counts as consent from both sides
    if isinstance(state, Matched):
        return Transition(state=state, changed=False)
    return _result(state, Matched(matched_at=now))


def _dislike(state: PairState, side: Side) -> Transition:
    if isinstance(state, Matched):
        raise InvalidTransition(state, Decision.DISLIKE)
    a_liked, b_liked = _with_flag(state, side, False)
    return _result(state, Disliked(a_liked=a_liked, b_liked=b_liked))


def _unmatch(state: PairState) -> Transition:
    if not isinstance(state, Matched):
        raise InvalidTransition(state, Decision.UNMATCH)
    return _result(state, Unmatched(a_liked=state.a_liked, b_liked=state.b_liked, matched_at=state.matched_at))


def transition(state: PairState, decision: Decision, side: Side, now: Optional[datetime] = None) -> Transition:
    """Apply ``decision`` by the party on ``side`` to ``state``."""
    now = now or datetime.now(timezone.utc)
    if decision is Decision.LIKE:
        return _like(state, side, now)
    if decision is Decision.LIKE_WITH_MESSAGE:
        return _like_with_message(state, side, now)
    if decision is Decision.DISLIKE:
        return _dislike(state, side)
    if decision is Decision.UNMATCH:
        return _unmatch(state)
    raise ValueError(f"Unknown decision: {decision!r}")


def state_from_row(match: Optional[Match]) -> PairState:
    if match is None:
        return NoInteraction()

    a_liked = bool(match.a_liked)
    b_liked = bool(match.b_liked)
    status = MatchStatus(match.status or MatchStatus.PENDING.value)

    if status is MatchStatus.MATCHED:
        return Matched(matched_at=match.matched_at, a_liked=a_liked, b_liked=b_liked)
    if status is MatchStatus.UNMATCHED:
        return Unmatched(a_liked=a_liked, b_liked=b_liked, matched_at=match.matched_at)
    if status is MatchStatus.LIKED:
        return Liked(a_liked=a_liked, b_liked=b_liked, matched_at=match.matched_at)
    if status is MatchStatus.DISLIKED:
        return Disliked(a_liked=a_liked, b_liked=b_liked, matched_at=match.matched_at)
    return Pending(a_liked=a_liked, b_liked=b_liked, matched_at=match.matched_at)


def apply_to_row(match: Match, state: PairState) -> None:
    match.status = state.status.value
    match.a_liked = state.a_liked
    match.b_liked = state.b_liked
    match.matched_at = state.matched_at
