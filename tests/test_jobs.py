import threading

from itinerary_composer.api.jobs import JobQueue
from itinerary_composer.core.errors import SearchCancelled


def _wait(queue, job_id):
    job = queue.get(job_id)
    job.future.result(timeout=5)
    return queue.get(job_id)


def test_job_completes_with_result():
    queue = JobQueue(max_workers=1)

    def target(job, value):
        queue.update(job.id, stage="Working", progress=0.5)
        return {"value": value}

    job = queue.submit("search", target, 7)
    done = _wait(queue, job.id)
    assert done.status == "completed"
    assert done.progress == 1.0
    assert done.to_dict(include_result=True)["result"] == {"value": 7}


def test_failing_job_reports_error():
    queue = JobQueue(max_workers=1)

    def target(job):
        raise RuntimeError("provider down")

    done = _wait(queue, queue.submit("search", target).id)
    assert done.status == "failed"
    assert done.error == "provider down"


def test_cancelled_search_is_marked_cancelled():
    queue = JobQueue(max_workers=1)

    def target(job):
        raise SearchCancelled(1, 2)

    done = _wait(queue, queue.submit("search", target).id)
    assert done.status == "cancelled"


def test_cancel_resets_attached_engine():
    queue = JobQueue(max_workers=1)
    started = threading.Event()
    release = threading.Event()
    resets = []

    class Engine:
        def reset(self, reason="reset"):
            resets.append(reason)

    def target(job):
        queue.attach_engine(job.id, Engine())
        started.set()
        release.wait(timeout=5)
        return {"status": "ok"}

    job = queue.submit("search", target)
    assert started.wait(timeout=5)
    queue.cancel(job.id)
    release.set()
    done = _wait(queue, job.id)
    assert resets == ["cancelled"]
    assert done.status == "cancelled"
    assert done.result is None


def test_cancel_unknown_job():
    assert JobQueue().cancel("missing") is None
