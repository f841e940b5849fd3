import threading

import pytest

from matching.jobs import MatchingSupervisor


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_finished_jobs_are_dropped_after_retention():
    clock = FakeClock()
    supervisor = MatchingSupervisor(retention_s=60, clock=clock)

    job = supervisor.submit("e1", lambda: ["candidate"])
    assert job.wait(timeout=5)

    # first sighting stamps the job; it is still within retention
    assert supervisor.prune() == 0
    assert supervisor.job_for("e1") is job
    assert job.result() == ["candidate"]

    clock.now = 61.0
    assert supervisor.prune() == 1
    assert supervisor.job_for("e1") is None

    supervisor.shutdown()


def test_running_jobs_are_never_dropped():
    clock = FakeClock()
    supervisor = MatchingSupervisor(retention_s=0, clock=clock)
    release = threading.Event()

    job = supervisor.submit("slow", release.wait, 5)
    clock.now = 1000.0
    assert supervisor.prune() == 0
    assert supervisor.job_for("slow") is job

    release.set()
    assert job.wait(timeout=5)
    supervisor.shutdown()


def test_registry_does_not_grow_with_old_results():
    clock = FakeClock()
    supervisor = MatchingSupervisor(retention_s=10, clock=clock)

    for i in range(20):
        clock.now = i * 100.0
        job = supervisor.submit(f"e{i}", lambda: list(range(1000)))
        assert job.wait(timeout=5)
        supervisor.prune()

    clock.now = 19 * 100.0 + 5
    supervisor.prune()
    remaining = [i for i in range(20) if supervisor.job_for(f"e{i}") is not None]
    assert remaining == [19]
    supervisor.shutdown()


def test_forget_and_failed_jobs():
    supervisor = MatchingSupervisor()

    def boom():
        raise RuntimeError("matching failed")

    job = supervisor.submit("e1", boom)
    assert job.wait(timeout=5)
    assert isinstance(job.error, RuntimeError)
    with pytest.raises(RuntimeError):
        job.result()

    supervisor.forget("e1")
    supervisor.forget("e1")
    assert supervisor.job_for("e1") is None
    supervisor.shutdown()
