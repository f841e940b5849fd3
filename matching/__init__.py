#Expose the high-level pipeline pieces:
#Candidate retrieval (radius + time window)
#Scoring
#Matcher orchestrator (the "one call" entry point)
#Background jobs and the feedback log

from .candidate_filter import CandidateSource, InMemoryCandidateSource, fetch_active_drivers
from .scoring import score_driver
from .matcher import DriverMatcher #the main class to call to find candidates for an event
from .jobs import MatchingJob, MatchingSupervisor
from .feedback import FeedbackRecord, FeedbackRecorder, JsonlFeedbackLog

__all__ = [
    "CandidateSource",
    "InMemoryCandidateSource",
    "fetch_active_drivers",
    "score_driver",
    "DriverMatcher",
    "MatchingJob",
    "MatchingSupervisor",
    "FeedbackRecord",
    "FeedbackRecorder",
    "JsonlFeedbackLog",
]
