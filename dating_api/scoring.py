"""
Compatibility scoring between two user profiles (0-100).

Every factor only counts when both profiles have the attribute populated.

    Factor                    feed   detail   rule
    ─────────────────────────────────────────────────────────────────────
    Shared interests           40      40     shared / max(len a, len b)
    Same location              25      25     case-insensitive containment
    Relationship goal          15      20     case-insensitive equality
    Age in preferred range     10      15     viewer's range, inclusive
    Orientation                 7      10     case-insensitive equality
    Smoking, alcohol        1.5 each  2.5 each

``score`` ranks the discovery pool, ``score_detail`` answers the pairwise
compatibility view with per-factor flags, and ``score_match`` annotates
confirmed matches with the coarser bonus scheme below:

    shared interests 20, location 15, education 10, religion 10, politics 5
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from dating_api.profiles import calculate_age, normalize_age_range, public_profile
from dating_api.schemas import (
    AgeDetail,
    Compatibility,
    CompatibilityDetails,
    DiscoverResponse,
    FactorDetail,
    InterestDetail,
    LifestyleDetail,
    ScoredProfile,
    User,
)

MAX_SCORE = 100

FEED_WEIGHTS = {
    "interests":    40,
    "location":     25,
    "relationship": 15,
    "age":          10,
    "orientation":   7,
    "smoking":     1.5,
    "alcohol":     1.5,
}

DETAIL_WEIGHTS = {
    "interests":    40,
    "location":     25,
    "relationship": 20,
    "age":          15,
    "orientation":  10,
    "smoking":     2.5,
    "alcohol":     2.5,
}

BONUS_WEIGHTS = {
    "interests": 20,
    "location":  15,
    "education": 10,
    "religion":  10,
    "politics":   5,
}

MIN_MATCH_SCORE = 20
MAX_RANKED_MATCHES = 50
HIGH_MATCH = 70
MEDIUM_MATCH = 40


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def match_level(score: int) -> str:
    if score >= HIGH_MATCH:
        return "High"
    if score >= MEDIUM_MATCH:
        return "Medium"
    if score >= MIN_MATCH_SCORE:
        return "Low"
    return "Poor"


def _same(a: Optional[str], b: Optional[str]) -> bool:
    return bool(a and b) and a.strip().lower() == b.strip().lower()


def _same_location(a: Optional[str], b: Optional[str]) -> bool:
    if not (a and b):
        return False
    a, b = a.strip().lower(), b.strip().lower()
    return a in b or b in a


@dataclass(frozen=True)
class PairFacts:
    """Everything the scoring variants need to know about a viewer/candidate pair."""

    common_interests: List[str]
    interest_ratio: float
    location: bool
    age: Optional[int]
    age_compatible: bool
    relationship: bool
    orientation: bool
    smoking: bool
    alcohol: bool
    education: bool
    religion: bool
    politics: bool


def compare(viewer: User, candidate: User, today: Optional[date] = None) -> PairFacts:
    common: List[str] = []
    ratio = 0.0
    if viewer.interests and candidate.interests:
        theirs = set(candidate.interests)
        common = list(dict.fromkeys(i for i in viewer.interests if i in theirs))
        ratio = len(common) / max(len(viewer.interests), len(candidate.interests))

    age = calculate_age(candidate.date_of_birth, today)
    low, high = normalize_age_range(viewer.preferred_age_range)

    return PairFacts(
        common_interests=common,
        interest_ratio=ratio,
        location=_same_location(viewer.location, candidate.location),
        age=age,
        age_compatible=age is not None and age > 0 and low <= age <= high,
        relationship=_same(viewer.relationship, candidate.relationship),
        orientation=_same(viewer.orientation, candidate.orientation),
        smoking=_same(viewer.smoking, candidate.smoking),
        alcohol=_same(viewer.alcohol, candidate.alcohol),
        education=_same(viewer.education, candidate.education),
        religion=_same(viewer.religion, candidate.religion),
        politics=_same(viewer.politics, candidate.politics),
    )


def _points(facts: PairFacts, weights: Dict[str, float]) -> Dict[str, float]:
    return {
        "interests": facts.interest_ratio * weights["interests"],
        "location": weights["location"] if facts.location else 0,
        "relationship": weights["relationship"] if facts.relationship else 0,
        "age": weights["age"] if facts.age_compatible else 0,
        "orientation": weights["orientation"] if facts.orientation else 0,
        "smoking": weights["smoking"] if facts.smoking else 0,
        "alcohol": weights["alcohol"] if facts.alcohol else 0,
    }


def _total(points: Iterable[float]) -> int:
    return min(round_half_up(sum(points)), MAX_SCORE)


@dataclass
class CompatibilityScore:
    total: int
    breakdown: Dict[str, int] = field(default_factory=dict)
    reasons: List[str] = field(default_factory=list)


def _reasons(facts: PairFacts) -> List[str]:
    reasons = []
    if facts.common_interests:
        n = len(facts.common_interests)
        reasons.append(
            f"{n} common interest{'s' if n > 1 else ''}: {', '.join(facts.common_interests[:3])}"
        )
    if facts.location:
        reasons.append("Same location")
    if facts.age_compatible:
        reasons.append(f"Age compatible ({facts.age})")
    if facts.relationship:
        reasons.append("Same relationship goals")
    if facts.orientation:
        reasons.append("Compatible orientation")
    if facts.smoking:
        reasons.append("Same smoking preference")
    if facts.alcohol:
        reasons.append("Same drinking preference")
    return reasons


def score(viewer: User, candidate: User, today: Optional[date] = None) -> CompatibilityScore:
    """Feed-ranking score of ``candidate`` as seen by ``viewer``."""
    facts = compare(viewer, candidate, today)
    points = _points(facts, FEED_WEIGHTS)
    breakdown = {
        "interests": round_half_up(points["interests"]),
        "location": round_half_up(points["location"]),
        "relationship": round_half_up(points["relationship"]),
        "orientation": round_half_up(points["orientation"]),
        "lifestyle": round_half_up(points["smoking"] + points["alcohol"]),
        "age": round_half_up(points["age"]),
    }
    return CompatibilityScore(_total(points.values()), breakdown, _reasons(facts))


def score_detail(viewer: User, candidate: User, today: Optional[date] = None) -> Compatibility:
    """Pairwise view: same factors as ``score`` with the detail weights and per-factor flags."""
    facts = compare(viewer, candidate, today)
    points = _points(facts, DETAIL_WEIGHTS)
    details = CompatibilityDetails(
        interests=InterestDetail(
            score=round_half_up(points["interests"]),
            common=facts.common_interests,
            total=len(facts.common_interests),
        ),
        location=FactorDetail(score=round_half_up(points["location"]), match=facts.location),
        age=AgeDetail(
            score=round_half_up(points["age"]),
            compatible=facts.age_compatible,
            age=facts.age,
        ),
        relationship=FactorDetail(score=round_half_up(points["relationship"]), match=facts.relationship),
        orientation=FactorDetail(score=round_half_up(points["orientation"]), match=facts.orientation),
        lifestyle=LifestyleDetail(
            score=round_half_up(points["smoking"] + points["alcohol"]),
            smoking=facts.smoking,
            alcohol=facts.alcohol,
        ),
    )
    return Compatibility(
        overall_score=_total(points.values()),
        details=details,
        reasons=_reasons(facts),
    )


def score_match(viewer: User, other: User) -> Tuple[int, Dict[str, int], List[str]]:
    """Bonus score for an existing match: (total, breakdown, mutual interests)."""
    facts = compare(viewer, other)
    breakdown = {
        "interests": BONUS_WEIGHTS["interests"] if facts.common_interests else 0,
        "location": BONUS_WEIGHTS["location"] if facts.location else 0,
        "education": BONUS_WEIGHTS["education"] if facts.education else 0,
        "religion": BONUS_WEIGHTS["religion"] if facts.religion else 0,
        "politics": BONUS_WEIGHTS["politics"] if facts.politics else 0,
    }
    return _total(breakdown.values()), breakdown, facts.common_interests


def rank_candidates(
    viewer: User,
    candidates: List[User],
    today: Optional[date] = None,
    threshold: int = MIN_MATCH_SCORE,
    limit: int = MAX_RANKED_MATCHES,
) -> DiscoverResponse:
    """
    Score every candidate, keep those at or above ``threshold``, best first,
    at most ``limit`` of them, and summarise the bands.
    """
    scored = []
    for candidate in candidates:
        result = score(viewer, candidate, today)
        scored.append(ScoredProfile(
            profile=public_profile(candidate, today),
            match_score=result.total,
            match_reasons=result.reasons,
            detailed_scoring=result.breakdown,
            match_level=match_level(result.total),
        ))

    # sorted() is stable, so equal scores keep the pool's creation order
    qualified = sorted(
        (s for s in scored if s.match_score >= threshold),
        key=lambda s: s.match_score,
        reverse=True,
    )[:limit]

    report = DiscoverResponse(
        matches=qualified,
        total_matches=len(qualified),
        high_matches=sum(1 for s in qualified if s.match_level == "High"),
        medium_matches=sum(1 for s in qualified if s.match_level == "Medium"),
        low_matches=sum(1 for s in qualified if s.match_level == "Low"),
        average_score=(
            round_half_up(sum(s.match_score for s in qualified) / len(qualified)) if qualified else 0
        ),
        best_match=qualified[0] if qualified else None,
        last_updated=datetime.now(timezone.utc),
    )
    if not candidates:
        report.message = "No potential matches found based on your preferences"
    elif not qualified:
        report.message = (
            f"No matches found with {threshold}% or higher compatibility. "
            "Try updating your profile preferences."
        )
        report.suggestion = "Add more interests or adjust your age/location preferences for better matches."
    return report
