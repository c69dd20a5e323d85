import asyncio
import logging
from enum import Enum
from typing import NamedTuple, Optional
from anyapp.events import Event
from anyapp.status.updater import StatusUpdater, condition_event
from anyapp.types.models import AnyApplication, ApplicationId, ConditionStatus, ConditionType
from anyapp.types.settings import Settings
from anyapp.utils.clock import Clock


class JobType(Enum):
    DEPLOY = "Deploy"
    UNDEPLOY = "Undeploy"
    LOCAL_OPERATION = "LocalOperation"
    LOCAL_PLACEMENT = "LocalPlacement"
    RELOCATE = "Relocate"
    OWNERSHIP_TRANSFER = "OwnershipTransfer"


class JobId(NamedTuple):
    job_type: JobType
    application_id: ApplicationId


def max_retries_for(application: AnyApplication, settings: Settings) -> int:
    """Attempts granted to a job of `application`."""
    max_retries = application.spec.recover_strategy.max_retries
    if max_retries is None:
        return settings.default_max_retries
    return max_retries


class JobContext:
    """Collaborators handed to a running job plus its stop signal."""

    def __init__(self, store, applications, events, stopped: asyncio.Event = None) -> None:
        self.store = store
        self.applications = applications
        self.events = events
        self._stopped = stopped or asyncio.Event()

    def with_cancel(self) -> "JobContext":
        """Derive a context with its own stop signal."""
        return JobContext(self.store, self.applications, self.events, asyncio.Event())

    def cancel(self) -> None:
        self._stopped.set()

    @property
    def cancelled(self) -> bool:
        return self._stopped.is_set()

    async def sleep(self, seconds: float) -> bool:
        """Wait for `seconds` or the stop signal, whichever comes first.

        Returns:
            True if the context was cancelled.
        """
        if self.cancelled:
            return True
        timer = asyncio.ensure_future(asyncio.sleep(seconds))
        stop = asyncio.ensure_future(self._stopped.wait())
        try:
            done, _ = await asyncio.wait(
                {timer, stop}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            timer.cancel()
            stop.cancel()
        return stop in done or self.cancelled


class AsyncJob:
    """Base class of zone-local jobs.

    A job owns one condition type for its zone. Its current observation is
    exposed by :meth:`get_status` and committed through the status updater.
    """

    job_type: JobType
    condition_type: ConditionType
    initial_status: str

    def __init__(
        self,
        application: AnyApplication,
        zone_id: str,
        settings: Settings,
        clock: Clock,
        logger: logging.Logger = None,
        sensor=None,
    ) -> None:
        self.application = application
        self.zone_id = zone_id
        self.settings = settings
        self.clock = clock
        self.logger = logger or logging.getLogger(type(self).__module__)
        self.sensor = sensor
        self.status = self.initial_status
        self.reason = ""
        self.msg = ""
        self.retry_attempt = 0
        self.last_transition_time = clock.now_iso()
        self._stopped = False

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.application_id} status={self.status}>"

    @property
    def application_id(self) -> ApplicationId:
        return self.application.application_id

    @property
    def job_id(self) -> JobId:
        return JobId(self.job_type, self.application_id)

    @property
    def stopped(self) -> bool:
        return self._stopped

    def stop(self) -> None:
        self._stopped = True

    def get_status(self) -> ConditionStatus:
        return ConditionStatus(
            type=self.condition_type,
            zone_id=self.zone_id,
            status=self.status,
            last_transition_time=self.last_transition_time,
            reason=self.reason,
            msg=self.msg,
            retry_attempt=self.retry_attempt,
        )

    def set_status(self, status: str, msg: str = "", reason: str = "") -> None:
        if (status, msg, reason) != (self.status, self.msg, self.reason):
            self.last_transition_time = self.clock.now_iso()
        self.status = status
        self.msg = msg
        self.reason = reason

    def status_updater(self, context: JobContext) -> StatusUpdater:
        return StatusUpdater(
            context.store,
            self.application_id,
            self.zone_id,
            context.events,
            max_retries=self.settings.status_update_max_retries,
            sensor=self.sensor,
            logger=self.logger,
        )

    async def commit(
        self, context: JobContext, *types_to_remove: ConditionType, event: Optional[Event] = None
    ) -> bool:
        """Write the current condition of this job."""
        condition = self.get_status()
        return await self.status_updater(context).update_condition(
            event or condition_event(condition), condition, *types_to_remove
        )

    @property
    def max_retries(self) -> int:
        return max_retries_for(self.application, self.settings)

    async def run(self, context: JobContext) -> None:
        raise NotImplementedError()

    async def report_failure(self, context: JobContext) -> None:
        """Best-effort write of a failure the job could not commit normally."""
        try:
            await self.commit(context)
        except Exception as e:
            self.logger.error(f"Cannot record failure of {self.job_type.value} job: {e}")
