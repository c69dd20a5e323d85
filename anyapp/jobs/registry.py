import asyncio
import logging
import threading
from typing import Callable, Dict, List, Optional
from anyapp.jobs.base import AsyncJob, JobContext
from anyapp.types.models import ApplicationId

logger = logging.getLogger(__name__)


class JobWorker:
    """Runs one job as an asyncio task and owns its cancellation."""

    def __init__(
        self,
        job: AsyncJob,
        context: JobContext,
        on_finished: Callable[["JobWorker"], None],
        sensor=None,
    ) -> None:
        self.job = job
        self.context = context
        self.on_finished = on_finished
        self.sensor = sensor
        self.task: Optional[asyncio.Task] = None
        self._stopped = False

    def start(self) -> None:
        self.task = asyncio.ensure_future(self._run())

    async def _run(self) -> None:
        app_id = self.job.application_id
        state = None
        if self.sensor:
            state = self.sensor.on_job_start(
                app_id.name, app_id.namespace, self.job.job_type.value
            )
        success = True
        try:
            logger.info(f"Starting {self.job.job_type.value} job for {app_id}")
            await self.job.run(self.context)
        except asyncio.CancelledError:
            success = False
            raise
        except Exception as e:
            success = False
            logger.error(f"{self.job.job_type.value} job for {app_id} crashed: {e}")
            logger.exception(e)
        finally:
            if self.sensor:
                self.sensor.on_job_complete(
                    app_id.name,
                    app_id.namespace,
                    self.job.job_type.value,
                    state,
                    self.job.status,
                    success,
                )
            logger.info(
                f"{self.job.job_type.value} job for {app_id} finished with status '{self.job.status}'"
            )
            self.stop()

    async def join(self) -> None:
        if self.task is not None:
            await asyncio.wait({self.task})

    def stop(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        self.context.cancel()
        self.job.stop()
        self.on_finished(self)

    @property
    def stopped(self) -> bool:
        return self._stopped


class JobRegistry:
    """Holds at most one running job per application."""

    def __init__(self, context: JobContext, sensor=None) -> None:
        self.context = context
        self.sensor = sensor
        self._workers: Dict[ApplicationId, JobWorker] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._workers)

    def execute(self, job: AsyncJob) -> None:
        """Start `job`, replacing the entry of its application.

        A job already registered for the application keeps running; callers
        stop it first when it must not overlap.
        """
        worker = JobWorker(job, self.context.with_cancel(), self._cleanup, sensor=self.sensor)
        with self._lock:
            self._workers[job.application_id] = worker
        worker.start()

    def get_current(self, application_id: ApplicationId) -> Optional[AsyncJob]:
        with self._lock:
            worker = self._workers.get(application_id)
        if worker is None:
            return None
        if not isinstance(worker, JobWorker):
            raise TypeError(f"Unexpected job registry entry {worker!r} for {application_id}")
        return worker.job

    def stop(self, application_id: ApplicationId) -> Optional[JobWorker]:
        """Cancel and forget the job of `application_id`.

        Returns:
            The stopped worker, which can be joined, or None.
        """
        with self._lock:
            worker = self._workers.pop(application_id, None)
        if worker is not None:
            logger.info(f"Stopping {worker.job.job_type.value} job for {application_id}")
            worker.stop()
        return worker

    def stop_all(self) -> List[JobWorker]:
        """Cancel every job and return the stopped workers for joining."""
        with self._lock:
            workers = list(self._workers.values())
            self._workers.clear()
        for worker in workers:
            worker.stop()
        return workers

    def _cleanup(self, worker: JobWorker) -> None:
        application_id = worker.job.application_id
        with self._lock:
            if self._workers.get(application_id) is worker:
                del self._workers[application_id]
