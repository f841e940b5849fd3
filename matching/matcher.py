"""
Purpose: Orchestrator / decision pipeline (the "glue").
What it does:
Accepts a CapturedEvent, queries the candidate source for drivers online
around it, scores every row and hands the scored rows to the ranker.
Returns the ranked DriverCandidate list (possibly empty).
"""

import logging
from typing import List, Optional

from drivers.models import DriverCandidate
from drivers.policy import MatchingPolicy, default_matching_policy
from drivers.selection import rank_candidates
from events.models import CapturedEvent

from .candidate_filter import CandidateSource, fetch_active_drivers
from .scoring import score_driver

logger = logging.getLogger(__name__)


class DriverMatcher:
    """
    Stateless apart from its configuration: the same event and the same
    source response always produce the same ranked list.
    """
    def __init__(self, source: CandidateSource, policy: Optional[MatchingPolicy] = None):
        self.source = source
        self.policy = policy or default_matching_policy()
        self.policy.validate()

    def find_candidates(self, event: CapturedEvent) -> List[DriverCandidate]:
        logger.info("Looking for candidates for event %s", event.id)

        active_drivers = fetch_active_drivers(self.source, event, self.policy)
        if not active_drivers:
            return []

        scored = [score_driver(event, driver, self.policy) for driver in active_drivers]
        ranked = rank_candidates(scored, self.policy)

        logger.info(
            "Event %s: %d rows scored, %d viable candidates",
            event.id, len(scored), len(ranked),
        )
        return ranked
