import threading

from services.background import BackgroundWorker
from services.sessions import SessionRegistry


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_get_or_create_returns_same_session():
    registry = SessionRegistry(ttl_seconds=60)
    first = registry.get_or_create("s1", "u1")
    assert registry.get_or_create("s1", "u1") is first
    assert first.state.current_path == ["root"]
    assert registry.get("missing") is None


def test_concurrent_insert_if_absent():
    registry = SessionRegistry(ttl_seconds=60)
    seen = []
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        seen.append(registry.get_or_create("s1", "u1"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len({id(s) for s in seen}) == 1
    assert len(registry) == 1


def test_idle_sessions_are_evicted():
    clock = FakeClock()
    registry = SessionRegistry(ttl_seconds=10, clock=clock)
    stale = registry.get_or_create("old", "u1")
    clock.now = 8
    registry.get_or_create("fresh", "u2")
    clock.now = 11

    assert registry.evict_expired() == ["old"]
    assert "old" not in registry
    assert "fresh" in registry
    assert stale.closed is True


def test_close_is_explicit_and_idempotent():
    registry = SessionRegistry(ttl_seconds=60)
    registry.get_or_create("s1", "u1")
    assert registry.close("s1").closed is True
    assert registry.close("s1") is None


def test_worker_runs_jobs_in_order():
    worker = BackgroundWorker(maxsize=10, max_retries=0)
    done = []
    for i in range(5):
        worker.submit("s1", f"job-{i}", lambda i=i: done.append(i))
    worker.join()
    worker.stop()
    assert done == [0, 1, 2, 3, 4]


def test_worker_retries_then_moves_on():
    worker = BackgroundWorker(maxsize=10, max_retries=1)
    calls = {"flaky": 0, "broken": 0}
    done = []

    def flaky():
        calls["flaky"] += 1
        if calls["flaky"] == 1:
            raise RuntimeError("transient")
        done.append("flaky")

    def broken():
        calls["broken"] += 1
        raise RuntimeError("permanent")

    worker.submit("s1", "flaky", flaky)
    worker.submit("s1", "broken", broken)
    worker.submit("s1", "after", lambda: done.append("after"))
    worker.join()
    worker.stop()

    assert calls == {"flaky": 2, "broken": 2}
    assert done == ["flaky", "after"]


def test_worker_drops_jobs_when_full():
    worker = BackgroundWorker(maxsize=1, max_retries=0)
    started = threading.Event()
    release = threading.Event()
    done = []

    def blocker():
        started.set()
        release.wait(5)
        done.append("blocker")

    assert worker.submit("s1", "blocker", blocker) is True
    assert started.wait(5)
    assert worker.submit("s1", "queued", lambda: done.append("queued")) is True
    assert worker.submit("s1", "dropped", lambda: done.append("dropped")) is False

    release.set()
    worker.join()
    worker.stop()
    assert done == ["blocker", "queued"]


def test_worker_runs_non_retryable_job_once():
    worker = BackgroundWorker(maxsize=10, max_retries=3)
    calls = []

    def broken():
        calls.append(1)
        raise RuntimeError("not idempotent")

    worker.submit("s1", "turn", broken, retry=False)
    worker.join()
    worker.stop()
    assert calls == [1]
