import pytest
from app.models.match import MatchStatus
from app.services.match_state import (
    Decision,
    Disliked,
    InvalidTransition,
    Liked,
    Matched,
    NoInteraction,
    Pending,
    Side,
    Unmatched,
    apply_to_row,
    state_from_row,
    transition,
)


def test_first_like_sets_only_own_flag(now):
    result = transition(NoInteraction(), Decision.LIKE, Side.B, now)

    assert result.state == Liked(a_liked=False, b_liked=True)
    assert result.changed is True
    assert result.became_matched is False


def test_mutual_like_becomes_matched(now):
    result = transition(Liked(a_liked=True), Decision.LIKE, Side.B, now)

    assert isinstance(result.state, Matched)
    assert result.state.matched_at == now
    assert result.became_matched is True


def test_mutual_like_in_reverse_order(now):
    first = transition(NoInteraction(), Decision.LIKE, Side.B, now)
    assert first.state == Liked(a_liked=False, b_liked=True)
    assert first.state.matched_at is None
    assert first.became_matched is False

    second = transition(first.state, Decision.LIKE, Side.A, now)
    assert second.state == Matched(matched_at=now)
    assert second.became_matched is True

    later = now.replace(hour=18)
    third = transition(second.state, Decision.LIKE, Side.B, later)
    assert third.state.matched_at == now
    assert third.changed is False
    assert third.became_matched is False


def test_both_orders_reach_the_same_match(now):
    a_first = transition(transition(NoInteraction(), Decision.LIKE, Side.A, now).state, Decision.LIKE, Side.B, now)
    b_first = transition(transition(NoInteraction(), Decision.LIKE, Side.B, now).state, Decision.LIKE, Side.A, now)

    assert a_first.state == b_first.state
    assert a_first.became_matched and b_first.became_matched


def test_repeated_like_is_unchanged(now):
    state = Liked(a_liked=True)
    result = transition(state, Decision.LIKE, Side.A, now)

    assert result.state == state
    assert result.changed is False


def test_like_on_matched_is_unchanged(now):
    state = Matched(matched_at=now)
    result = transition(state, Decision.LIKE, Side.A)

    assert result.state is state
    assert result.changed is False
    assert result.became_matched is False


def test_like_after_other_side_disliked_keeps_their_flag_off(now):
    result = transition(Disliked(a_liked=False, b_liked=False), Decision.LIKE, Side.A, now)

    assert result.state == Liked(a_liked=True, b_liked=False)


def test_like_after_own_dislike_can_match(now):
    # Other side liked earlier; we disliked, then changed our mind
    result = transition(Disliked(a_liked=False, b_liked=True), Decision.LIKE, Side.A, now)

    assert isinstance(result.state, Matched)
    assert result.became_matched is True


def test_like_on_unmatched_restarts_pair(now):
    state = Unmatched(a_liked=True, b_liked=True, matched_at=now)
    result = transition(state, Decision.LIKE, Side.B, now)

    assert result.state == Liked(a_liked=False, b_liked=True, matched_at=None)
    assert result.became_matched is False


def test_like_on_pending_row(now):
    result = transition(Pending(), Decision.LIKE, Side.A, now)
    assert result.state == Liked(a_liked=True)


def test_dislike_clears_own_flag_only(now):
    result = transition(Liked(a_liked=True, b_liked=False), Decision.DISLIKE, Side.B)
    assert result.state == Disliked(a_liked=True, b_liked=False)

    result = transition(Liked(a_liked=True, b_liked=False), Decision.DISLIKE, Side.A)
    assert result.state == Disliked(a_liked=False, b_liked=False)


def test_repeated_dislike_is_unchanged():
    state = Disliked(a_liked=False, b_liked=False)
    assert transition(state, Decision.DISLIKE, Side.A).changed is False


def test_dislike_on_matched_is_rejected(now):
    with pytest.raises(InvalidTransition):
        transition(Matched(matched_at=now), Decision.DISLIKE, Side.A)


def test_like_with_message_forces_match(now):
    result = transition(NoInteraction(), Decision.LIKE_WITH_MESSAGE, Side.A, now)

    assert result.state == Matched(matched_at=now)
    assert result.became_matched is True


def test_like_with_message_on_unmatched_rematches(now):
    result = transition(Unmatched(a_liked=True, b_liked=True), Decision.LIKE_WITH_MESSAGE, Side.A, now)
    assert result.became_matched is True


def test_like_with_message_on_matched_keeps_timestamp(now):
    state = Matched(matched_at=now)
    result = transition(state, Decision.LIKE_WITH_MESSAGE, Side.B)

    assert result.state.matched_at == now
    assert result.changed is False


def test_unmatch_keeps_history(now):
    result = transition(Matched(matched_at=now), Decision.UNMATCH, Side.A)

    assert result.state == Unmatched(a_liked=True, b_liked=True, matched_at=now)
    assert result.changed is True


@pytest.mark.parametrize("state", [NoInteraction(), Pending(), Liked(a_liked=True), Disliked(), Unmatched()])
def test_unmatch_requires_match(state):
    with pytest.raises(InvalidTransition):
        transition(state, Decision.UNMATCH, Side.A)


def test_row_round_trip(make_match, now):
    match = make_match(status="liked", a_liked=True)
    state = state_from_row(match)
    assert state == Liked(a_liked=True, b_liked=False)

    apply_to_row(match, Matched(matched_at=now))
    assert match.status == MatchStatus.MATCHED.value
    assert match.a_liked is True and match.b_liked is True
    assert match.matched_at == now


def test_missing_row_is_no_interaction():
    assert state_from_row(None) == NoInteraction()
