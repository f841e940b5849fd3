"""
Purpose: Supervised background matching jobs.
What it does:
Runs matching work detached from the capturing caller on a worker pool.
Each submission returns a MatchingJob handle exposing the outcome
(result or error) so failures are observable and testable instead of
being dropped. Every outcome is also written to the supervisor's logger.

There is no cancellation: once an event is persisted its matching runs
to completion even if the caller has gone away.
"""

from __future__ import annotations

import concurrent.futures
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

DEFAULT_JOB_RETENTION_S = 300.0


class MatchingJob:
    """
    Handle on one background matching run.
    """
    def __init__(self, event_id: str, future: concurrent.futures.Future):
        self.event_id = event_id
        self._future = future
        # set by the supervisor once it sees the job finished
        self.finished_at: Optional[float] = None

    def done(self) -> bool:
        return self._future.done()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the job finishes or `timeout` elapses. Returns done().
        """
        concurrent.futures.wait([self._future], timeout=timeout)
        return self._future.done()

    def result(self, timeout: Optional[float] = None) -> Any:
        """
        The job's return value; re-raises the job's exception if it failed.
        """
        return self._future.result(timeout=timeout)

    @property
    def error(self) -> Optional[BaseException]:
        if not self._future.done():
            return None
        return self._future.exception()

    @property
    def succeeded(self) -> bool:
        return self._future.done() and self._future.exception() is None


class MatchingSupervisor:
    """
    Owns the worker pool and the job registry (by event id).
    Finished jobs stay queryable for `retention_s` seconds, then are dropped
    so their candidate lists do not accumulate.
    """
    def __init__(
        self,
        max_workers: int = 2,
        logger: Optional[logging.Logger] = None,
        retention_s: float = DEFAULT_JOB_RETENTION_S,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.logger = logger or logging.getLogger(__name__)
        self.retention_s = retention_s
        self._clock = clock
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="matching",
        )
        self._jobs: Dict[str, MatchingJob] = {}
        self._lock = threading.Lock()

    def submit(self, event_id: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> MatchingJob:
        self.prune()
        future = self._executor.submit(fn, *args, **kwargs)
        job = MatchingJob(event_id, future)
        with self._lock:
            self._jobs[event_id] = job
        future.add_done_callback(lambda f: self._report(event_id, f))
        return job

    def _report(self, event_id: str, future: concurrent.futures.Future) -> None:
        error = future.exception()
        if error is not None:
            self.logger.error(
                "Matching job for event %s failed: %s",
                event_id, error,
                exc_info=(type(error), error, error.__traceback__),
            )
        else:
            self.logger.info("Matching job for event %s finished", event_id)
        self.prune()

    def prune(self) -> int:
        """
        Drop finished jobs older than the retention window. Returns how many were dropped.
        A job is stamped the first time it is seen finished.
        """
        now = self._clock()
        with self._lock:
            expired = []
            for event_id, job in self._jobs.items():
                if not job.done():
                    continue
                if job.finished_at is None:
                    job.finished_at = now
                elif now - job.finished_at > self.retention_s:
                    expired.append(event_id)
            for event_id in expired:
                del self._jobs[event_id]
        return len(expired)

    def forget(self, event_id: str) -> None:
        with self._lock:
            self._jobs.pop(event_id, None)

    def job_for(self, event_id: str) -> Optional[MatchingJob]:
        with self._lock:
            return self._jobs.get(event_id)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
