"""
Drivers domain package.

Public API:
- Domain models: ActiveDriver, DriverCandidate, MatchFactors, ConfidenceLevel, VerificationLevel
- Configuration: MatchingPolicy, default_matching_policy
- Ranking entry: rank_candidates
"""
from .models import ActiveDriver, ConfidenceLevel, DriverCandidate, MatchFactors, VerificationLevel
from .policy import MatchingPolicy, default_matching_policy
from .selection import rank_candidates

__all__ = [
    "ActiveDriver",
    "ConfidenceLevel",
    "DriverCandidate",
    "MatchFactors",
    "VerificationLevel",
    "MatchingPolicy",
    "default_matching_policy",
    "rank_candidates",
]
