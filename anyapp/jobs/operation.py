from anyapp.jobs.base import AsyncJob, JobContext, JobType
from anyapp.types.models import ConditionType, HealthStatusCode, TERMINAL_HEALTH_CODES


class LocalOperationJob(AsyncJob):
    """Watches the health of the application deployed in this zone.

    Health is polled once per interval and written to the zone's Local
    condition. The job ends once the resources turn degraded, missing or
    unknown, leaving the failure for the state machine to handle.
    """

    job_type = JobType.LOCAL_OPERATION
    condition_type = ConditionType.LOCAL
    initial_status = HealthStatusCode.PROGRESSING.value

    async def run(self, context: JobContext) -> None:
        while not self.stopped:
            if await context.sleep(self.settings.poll_operational_status_interval):
                return
            if await self.check_health(context):
                return

    async def check_health(self, context: JobContext) -> bool:
        """Poll and report health once.

        Returns:
            True when the health is terminal and the job is finished.
        """
        try:
            observation = await context.applications.observe(self.application)
            health = observation.health
            code = health.status if health is not None else HealthStatusCode.UNKNOWN
            message = health.message if health is not None else ""
            if not observation.present:
                code = HealthStatusCode.MISSING
        except Exception as e:
            self.logger.error(f"Failed to observe {self.application_id}: {e}")
            code, message = HealthStatusCode.UNKNOWN, str(e)
        if context.cancelled:
            return True

        if code in TERMINAL_HEALTH_CODES:
            if code is HealthStatusCode.MISSING and not message:
                message = "Application resources are missing"
            self.set_status(code.value, msg=f"Operation failure: {message}", reason=code.value)
            await self.update(context)
            return True

        self.set_status(code.value, msg=message)
        await self.update(context)
        return False

    async def update(self, context: JobContext) -> None:
        try:
            await self.commit(context)
        except Exception as e:
            self.logger.error(f"Cannot update local condition of {self.application_id}: {e}")
