"""
Candidate ranking for the discovery feed.

Everything here is pure: the caller supplies the requester, a candidate pool
(already free of hidden profiles and the requester) and the ids the requester
has interacted with. The same inputs always give the same ordered output, so
pages can be cut from a re-run.
"""
import enum
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from app.config.constants import (
    DISTANCE_KEYWORD_WEIGHT,
    DISTANCE_PROXIMITY_WEIGHT,
    DISTANCE_SCORE_FLOOR,
    DISTANCE_SCORE_MAX,
    DISTANCE_SCORE_STEPS,
    EARTH_RADIUS_KM,
    GENDER_PREFERENCE_TARGETS,
    GLOBAL_MODE_SUGGESTION,
    LOCAL_RADIUS_KM,
    RELATIONSHIP_KEYWORD_WEIGHT,
    RELATIONSHIP_OVERLAP_WEIGHT,
)
from app.models.profile import GenderPreference, LocationMode
from app.schemas.profile import ProfileSnapshot

logger = logging.getLogger(__name__)


class RankingBasis(str, enum.Enum):
    RELATIONSHIP = "relationship"
    DISTANCE = "distance"


@dataclass
class ScoredCandidate:
    profile: ProfileSnapshot
    keyword_score: float
    shared_keywords: List[str]
    relationship_overlap: float
    distance_km: Optional[float]
    distance_score: Optional[int]
    total_score: float

    def to_dict(self) -> Dict[str, Any]:
        profile = self.profile
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
            "distance": round(self.distance_km, 1) if self.distance_km is not None else None,
            "keywordScore": self.keyword_score,
            "sharedKeywords": self.shared_keywords,
            "relationshipOverlap": self.relationship_overlap,
            "distanceScore": self.distance_score,
            "totalScore": self.total_score,
        }


@dataclass
class RankingResult:
    profiles: List[ScoredCandidate] = field(default_factory=list)
    suggestion: Optional[Dict[str, str]] = None
    local_filter_applied: bool = False


def keyword_similarity(mine: FrozenSet[str], theirs: FrozenSet[str]) -> Tuple[float, List[str]]:
    """Jaccard similarity of two normalized keyword sets, plus the shared keywords."""
    if not mine or not theirs:
        return 0.0, []
    shared = mine & theirs
    union = mine | theirs
    return len(shared) / len(union), sorted(shared)


def relationship_overlap(mine: FrozenSet, theirs: FrozenSet) -> float:
    if not mine or not theirs:
        return 0.0
    return len(mine & theirs) / max(len(mine), len(theirs))


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_score(distance_km: float) -> int:
    for upper_km, points in DISTANCE_SCORE_STEPS:
        if distance_km <= upper_km:
            return points
    return DISTANCE_SCORE_FLOOR


def gender_target(preference: Optional[str]) -> Optional[str]:
    """Gender to keep for a preference; None means no filter."""
    if not preference or preference == GenderPreference.BOTH.value:
        return None
    return GENDER_PREFERENCE_TARGETS[preference]


def _distance_between(requester: ProfileSnapshot, candidate: ProfileSnapshot) -> Optional[float]:
    if not (requester.has_coordinates and candidate.has_coordinates):
        return None
    return haversine_km(requester.latitude, requester.longitude, candidate.latitude, candidate.longitude)


def score_candidate(
    requester: ProfileSnapshot,
    candidate: ProfileSnapshot,
    basis: RankingBasis = RankingBasis.RELATIONSHIP,
    distance_km: Optional[float] = None,
) -> ScoredCandidate:
    k_score, shared = keyword_similarity(requester.keywords, candidate.keywords)
    overlap = relationship_overlap(requester.relationship_types, candidate.relationship_types)
    d_score = distance_score(distance_km) if distance_km is not None else None

    if basis is RankingBasis.DISTANCE:
        if d_score is not None and requester.location_mode is LocationMode.LOCAL:
            total = DISTANCE_KEYWORD_WEIGHT * k_score + DISTANCE_PROXIMITY_WEIGHT * (d_score / DISTANCE_SCORE_MAX)
        else:
            total = k_score
    else:
        total = RELATIONSHIP_KEYWORD_WEIGHT * k_score + RELATIONSHIP_OVERLAP_WEIGHT * overlap

    return ScoredCandidate(
        profile=candidate,
        keyword_score=k_score,
        shared_keywords=shared,
        relationship_overlap=overlap,
        distance_km=distance_km,
        distance_score=d_score,
        total_score=total,
    )


def _sort_key(scored: ScoredCandidate):
    has_distance = scored.distance_km is not None
    return (
        -round(scored.total_score, 9),
        0 if has_distance else 1,
        scored.distance_km if has_distance else 0.0,
    )


def rank_candidates(
    requester: ProfileSnapshot,
    pool: Iterable[ProfileSnapshot],
    interacted_ids: Set[int],
    gender_preference: Optional[str] = None,
    basis: RankingBasis = RankingBasis.RELATIONSHIP,
    radius_km: float = LOCAL_RADIUS_KM,
) -> RankingResult:
    """
    Filter and score ``pool`` for ``requester``.

    ``gender_preference`` overrides the requester's stored preference when
    given. In local mode with known requester coordinates only candidates
    with coordinates within ``radius_km`` survive; if none do, the result
    carries a suggestion to switch to global mode.
    """
    preference = gender_preference or requester.gender_preference.value
    target = gender_target(preference)

    candidates = []
    for candidate in pool:
        if candidate.id == requester.id or candidate.is_hidden:
            continue
        if candidate.id in interacted_ids:
            continue
        if target is not None and (candidate.gender is None or candidate.gender.value != target):
            continue
        candidates.append(candidate)

    local_filter_applied = requester.location_mode is LocationMode.LOCAL and requester.has_coordinates

    scored = []
    for candidate in candidates:
        distance_km = _distance_between(requester, candidate)
        if local_filter_applied and (distance_km is None or distance_km > radius_km):
            continue
        scored.append(score_candidate(requester, candidate, basis, distance_km))

    if local_filter_applied:
        logger.info(
            f"Local filtering for profile {requester.id}: {len(candidates)} before, {len(scored)} after"
        )

    scored.sort(key=_sort_key)

    suggestion = None
    if local_filter_applied and not scored:
        suggestion = dict(GLOBAL_MODE_SUGGESTION)

    return RankingResult(profiles=scored, suggestion=suggestion, local_filter_applied=local_filter_applied)
