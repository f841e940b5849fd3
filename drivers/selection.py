"""
Purpose: Business rules for turning scored rows into the ranked candidate list.
What it does:
Accepts scored DriverCandidates (one per candidate-source row), collapses
duplicate rows per driver, drops the non-viable ones, orders the rest and
attaches the confidence tier, explanation and verification badge the
consumer shows to the user.
"""

from typing import Dict, List, Optional, Tuple

from .models import ConfidenceLevel, DriverCandidate, VerificationLevel
from .policy import MatchingPolicy, default_matching_policy

EXPLANATION_SEPARATOR = " • "

# score thresholds for the verification badge shown next to a confirmed driver
AUTOMATIC_VERIFICATION_SCORE = 80.0
PARTIAL_VERIFICATION_SCORE = 50.0


def deduplicate_by_user(candidates: List[DriverCandidate]) -> List[DriverCandidate]:
    """
    Keep exactly one candidate per user_id: the one with the highest score.
    On equal scores the first row seen wins.
    """
    best: Dict[str, DriverCandidate] = {}
    for candidate in candidates:
        existing = best.get(candidate.user_id)
        if existing is None or candidate.match_score > existing.match_score:
            best[candidate.user_id] = candidate
    return list(best.values())


def filter_viable(candidates: List[DriverCandidate], min_score: float) -> List[DriverCandidate]:
    return [c for c in candidates if c.match_score >= min_score]


def sort_by_score(candidates: List[DriverCandidate]) -> List[DriverCandidate]:
    # sorted() is stable, so equal scores keep their source order
    return sorted(candidates, key=lambda c: c.match_score, reverse=True)


def confidence_for(score: float, policy: Optional[MatchingPolicy] = None) -> ConfidenceLevel:
    policy = policy or default_matching_policy()
    if score >= policy.high_confidence_score:
        return ConfidenceLevel.HIGH
    if score >= policy.medium_confidence_score:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def explain(candidate: DriverCandidate, policy: Optional[MatchingPolicy] = None) -> str:
    """
    Human-readable list of the factors that contributed, with their points.
    e.g. "proximity 36 pts • same direction 19 pts"
    """
    policy = policy or default_matching_policy()
    factors = candidate.match_factors
    parts: List[str] = []

    if factors.gps_proximity > 0:
        parts.append(f"proximity {factors.gps_proximity:.0f} pts")
    if factors.bluetooth_detected:
        parts.append(f"device detected {policy.bluetooth_weight:.0f} pts")
    if factors.direction_match > 0:
        parts.append(f"same direction {factors.direction_match:.0f} pts")
    if factors.speed_match > 0:
        parts.append(f"similar speed {factors.speed_match:.0f} pts")

    return EXPLANATION_SEPARATOR.join(parts)


def verification_badge(score: float) -> Tuple[VerificationLevel, str]:
    if score >= AUTOMATIC_VERIFICATION_SCORE:
        return VerificationLevel.AUTOMATIC, "Automatically verified"
    if score >= PARTIAL_VERIFICATION_SCORE:
        return VerificationLevel.PARTIAL, "Partially verified"
    return VerificationLevel.MANUAL, "Manual entry"


def manual_verification_badge() -> Tuple[VerificationLevel, str]:
    """
    Badge for a driver identified by hand because no candidate was found.
    """
    return VerificationLevel.MANUAL, "Manual entry (no automatic match)"


def rank_candidates(
    candidates: List[DriverCandidate],
    policy: Optional[MatchingPolicy] = None,
) -> List[DriverCandidate]:
    """
    dedupe -> filter -> sort -> classify -> explain -> badge
    """
    policy = policy or default_matching_policy()

    unique = deduplicate_by_user(candidates)
    viable = filter_viable(unique, policy.min_viable_score)
    ordered = sort_by_score(viable)

    ranked: List[DriverCandidate] = []
    for candidate in ordered:
        level, text = verification_badge(candidate.match_score)
        ranked.append(
            candidate.annotated(
                confidence=confidence_for(candidate.match_score, policy),
                explanation=explain(candidate, policy),
                verification_level=level,
                verification_text=text,
            )
        )
    return ranked
