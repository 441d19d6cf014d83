import pytest
from app.services.candidate_ranker import (
    RankingBasis,
    distance_score,
    gender_target,
    haversine_km,
    keyword_similarity,
    rank_candidates,
    relationship_overlap,
    score_candidate,
)

STOCKHOLM = {"latitude": 59.33, "longitude": 18.07}
NEARBY = {"latitude": 59.34, "longitude": 18.09}
GOTHENBURG = {"latitude": 57.71, "longitude": 11.97}


def test_keyword_similarity_is_jaccard():
    score, shared = keyword_similarity(frozenset({"hiking", "coffee"}), frozenset({"hiking", "jazz"}))

    assert score == pytest.approx(1 / 3)
    assert shared == ["hiking"]


def test_keyword_similarity_empty_side():
    assert keyword_similarity(frozenset(), frozenset({"jazz"})) == (0.0, [])


def test_keywords_are_normalized(make_profile):
    profile = make_profile(1, keywords=' Hiking , COFFEE,, ')
    assert profile.keywords == frozenset({"hiking", "coffee"})

    profile = make_profile(2, keywords='["Jazz", " art "]')
    assert profile.keywords == frozenset({"jazz", "art"})


def test_unknown_relationship_types_are_dropped(make_profile):
    profile = make_profile(1, relationship_types=["casual", "polyamory"])
    assert {t.value for t in profile.relationship_types} == {"casual"}


def test_relationship_overlap():
    mine = frozenset({"casual", "long_term"})
    assert relationship_overlap(mine, frozenset({"long_term"})) == pytest.approx(0.5)
    assert relationship_overlap(mine, frozenset()) == 0.0


def test_haversine_short_distance():
    km = haversine_km(59.33, 18.07, 59.34, 18.09)
    assert 1.5 < km < 1.7
    assert distance_score(km) == 100


@pytest.mark.parametrize("km,points", [
    (0, 100), (5, 100), (7, 80), (10, 80), (20, 60), (30, 40), (50, 40), (75, 20), (100, 20), (150, 10),
])
def test_distance_score_steps(km, points):
    assert distance_score(km) == points


def test_gender_targets():
    assert gender_target("M") == "M"
    assert gender_target("W") == "F"
    assert gender_target("F") == "F"
    assert gender_target("B") is None
    assert gender_target(None) is None


def test_relationship_basis_score(make_profile):
    me = make_profile(1, keywords=["hiking", "coffee"], relationship_types=["long_term"])
    them = make_profile(2, keywords=["hiking", "jazz"], relationship_types=["long_term"])

    scored = score_candidate(me, them, RankingBasis.RELATIONSHIP)

    assert scored.total_score == pytest.approx(0.4 * (1 / 3) + 0.6 * 1.0)


def test_distance_basis_uses_proximity_in_local_mode(make_profile):
    me = make_profile(1, keywords=["hiking"], location_mode="local", **STOCKHOLM)
    them = make_profile(2, keywords=["hiking"], **NEARBY)

    scored = score_candidate(me, them, RankingBasis.DISTANCE, distance_km=1.6)

    assert scored.distance_score == 100
    assert scored.total_score == pytest.approx(0.6 * 1.0 + 0.4 * 1.0)


def test_distance_basis_without_distance_is_keywords_only(make_profile):
    me = make_profile(1, keywords=["hiking", "coffee"])
    them = make_profile(2, keywords=["hiking"])

    scored = score_candidate(me, them, RankingBasis.DISTANCE)

    assert scored.total_score == pytest.approx(0.5)


def test_filters_self_hidden_interacted_and_gender(make_profile):
    me = make_profile(1, gender_preference="W")
    pool = [
        make_profile(1, gender="F"),
        make_profile(2, gender="F", is_hidden=True),
        make_profile(3, gender="F"),
        make_profile(4, gender="M"),
        make_profile(5, gender="F"),
        make_profile(6),
    ]

    result = rank_candidates(me, pool, interacted_ids={3})

    assert [c.profile.id for c in result.profiles] == [5]


def test_explicit_gender_preference_overrides_stored(make_profile):
    me = make_profile(1, gender_preference="W")
    pool = [make_profile(2, gender="F"), make_profile(3, gender="M")]

    result = rank_candidates(me, pool, set(), gender_preference="M")

    assert [c.profile.id for c in result.profiles] == [3]


def test_both_preference_keeps_everyone(make_profile):
    me = make_profile(1, gender_preference="B")
    pool = [make_profile(2, gender="F"), make_profile(3, gender="M"), make_profile(4)]

    result = rank_candidates(me, pool, set())

    assert len(result.profiles) == 3


def test_local_mode_drops_far_and_unlocated(make_profile):
    me = make_profile(1, location_mode="local", **STOCKHOLM)
    pool = [
        make_profile(2, **NEARBY),
        make_profile(3, **GOTHENBURG),
        make_profile(4),
    ]

    result = rank_candidates(me, pool, set())

    assert result.local_filter_applied is True
    assert [c.profile.id for c in result.profiles] == [2]
    assert result.profiles[0].to_dict()["distance"] == pytest.approx(1.6)
    assert result.suggestion is None


def test_empty_local_result_suggests_global_mode(make_profile):
    me = make_profile(1, location_mode="local", **STOCKHOLM)

    result = rank_candidates(me, [make_profile(2, **GOTHENBURG)], set())

    assert result.profiles == []
    assert result.suggestion["type"] == "enable_global_mode"
    assert result.suggestion["newMode"] == "global"


def test_local_mode_without_coordinates_skips_filter(make_profile):
    me = make_profile(1, location_mode="local")

    result = rank_candidates(me, [make_profile(2, **GOTHENBURG)], set())

    assert result.local_filter_applied is False
    assert len(result.profiles) == 1
    assert result.suggestion is None


def test_global_mode_keeps_distance_for_display(make_profile):
    me = make_profile(1, **STOCKHOLM)

    result = rank_candidates(me, [make_profile(2, **GOTHENBURG)], set())

    assert result.profiles[0].distance_km > 300


def test_ordering_by_score_then_distance(make_profile):
    me = make_profile(1, keywords=["hiking"], **STOCKHOLM)
    pool = [
        make_profile(2, keywords=["jazz"], **NEARBY),
        make_profile(3, keywords=["hiking"], **GOTHENBURG),
        make_profile(4, keywords=["hiking"], **NEARBY),
        make_profile(5, keywords=["hiking"]),
    ]

    result = rank_candidates(me, pool, set())

    assert [c.profile.id for c in result.profiles] == [4, 3, 5, 2]


def test_ranking_is_deterministic(make_profile):
    me = make_profile(1, keywords=["hiking", "coffee"], relationship_types=["casual"])
    pool = [
        make_profile(i, keywords=["hiking"] if i % 2 else ["coffee"], relationship_types=["casual"])
        for i in range(2, 12)
    ]

    first = [c.profile.id for c in rank_candidates(me, pool, set()).profiles]
    second = [c.profile.id for c in rank_candidates(me, list(pool), set()).profiles]

    assert first == second
    # Equal scores keep pool (id) order
    assert first == list(range(2, 12))
