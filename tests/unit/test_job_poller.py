import asyncio
import itertools

import pytest

from gemlisting.application.job_poller import CancelToken, JobPoller
from gemlisting.core.domain.errors import JobPollingCancelled, JobPollingTimeout
from gemlisting.interfaces.api.schemas import JobStatus

STATUS_PATH = "/api/gems/status/J1"


def sequence(*bodies):
    """Serve the given status bodies in order, repeating the last one."""
    remaining = list(bodies)

    def respond(_request):
        if len(remaining) > 1:
            return remaining.pop(0)
        return remaining[0]

    return respond


def status(state, progress, **extra):
    return {"success": True, "data": {"jobId": "J1", "status": state, "progress": progress, **extra}}


def test_poll_reports_progress_until_completed(backend, service):
    backend.on(
        "GET",
        STATUS_PATH,
        sequence(status("processing", 20), status("processing", 60), status("completed", 100, gemId="G1")),
    )
    seen = []

    final = asyncio.run(JobPoller(service, interval=0).poll("J1", lambda p: seen.append(p.progress)))

    assert final.status is JobStatus.completed
    assert final.gem_id == "G1"
    assert seen == [20, 60, 100]


def test_failed_job_is_terminal(backend, service):
    backend.on("GET", STATUS_PATH, status("failed", 40, error="Duplicate report number"))
    final = asyncio.run(JobPoller(service, interval=0).poll("J1"))
    assert final.status is JobStatus.failed
    assert final.error == "Duplicate report number"


def test_unsuccessful_status_checks_are_retried(backend, service):
    backend.on(
        "GET",
        STATUS_PATH,
        sequence({"success": False, "message": "Job store busy"}, status("completed", 100)),
    )
    final = asyncio.run(JobPoller(service, interval=0).poll("J1"))
    assert final.status is JobStatus.completed
    assert len(backend.calls("GET", STATUS_PATH)) == 2


def test_async_progress_callback_is_awaited(backend, service):
    backend.on("GET", STATUS_PATH, status("completed", 100))
    seen = []

    async def record(progress):
        seen.append(progress.status)

    asyncio.run(JobPoller(service, interval=0).poll("J1", record))
    assert seen == [JobStatus.completed]


def test_poll_times_out_against_the_clock(backend, service):
    backend.on("GET", STATUS_PATH, status("processing", 10))
    ticks = itertools.count()

    poller = JobPoller(service, interval=0, timeout=3, clock=lambda: next(ticks))
    with pytest.raises(JobPollingTimeout, match="Job polling timeout"):
        asyncio.run(poller.poll("J1"))


def test_cancel_stops_polling(backend, service):
    backend.on("GET", STATUS_PATH, status("processing", 10))

    async def run():
        cancel = CancelToken()
        poller = JobPoller(service, interval=30)
        await poller.poll("J1", lambda _p: cancel.cancel(), cancel)

    with pytest.raises(JobPollingCancelled):
        asyncio.run(run())
    assert len(backend.calls("GET", STATUS_PATH)) == 1


def test_cancel_before_first_request(backend, service):
    async def run():
        cancel = CancelToken()
        cancel.cancel()
        await JobPoller(service).poll("J1", cancel=cancel)

    with pytest.raises(JobPollingCancelled):
        asyncio.run(run())
    assert backend.requests == []
