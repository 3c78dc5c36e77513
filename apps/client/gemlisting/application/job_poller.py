import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from gemlisting import config
from gemlisting.core.domain.errors import JobPollingCancelled, JobPollingTimeout
from gemlisting.infrastructure.http.gem_service import GemService
from gemlisting.interfaces.api.schemas import JobProgress

logger = logging.getLogger(__name__)


class CancelToken:
    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


class JobPoller:
    """Polls one job at a time until it completes, fails, times out or is cancelled."""

    def __init__(
        self,
        service: GemService,
        interval: Optional[float] = None,
        timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.service = service
        self.interval = config.JOB_POLL_INTERVAL if interval is None else interval
        self.timeout = config.JOB_POLL_TIMEOUT if timeout is None else timeout
        self.clock = clock

    async def _pause(self, seconds: float, cancel: Optional[CancelToken]) -> None:
        if cancel is None:
            await asyncio.sleep(seconds)
            return
        try:
            await asyncio.wait_for(cancel.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def poll(
        self,
        job_id: str,
        on_progress: Optional[Callable[[JobProgress], Optional[Awaitable[None]]]] = None,
        cancel: Optional[CancelToken] = None,
    ) -> JobProgress:
        deadline = self.clock() + self.timeout
        while True:
            # Timeout and cancellation leave through the same check.
            if cancel is not None and cancel.cancelled:
                logger.info("Stopped polling job %s", job_id)
                raise JobPollingCancelled(f"Polling cancelled for job {job_id}")
            if self.clock() >= deadline:
                logger.warning("Job %s did not finish within %ss", job_id, self.timeout)
                raise JobPollingTimeout("Job polling timeout")

            envelope = await self.service.get_job_status(job_id)
            if envelope.success:
                progress: JobProgress = envelope.data
                if on_progress:
                    result = on_progress(progress)
                    if asyncio.iscoroutine(result):
                        await result
                if progress.is_terminal:
                    return progress
            else:
                logger.warning("Status check for job %s failed: %s", job_id, envelope.message)

            await self._pause(max(0.0, min(self.interval, deadline - self.clock())), cancel)
