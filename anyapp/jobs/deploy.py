from anyapp.jobs.base import AsyncJob, JobContext, JobType
from anyapp.types.models import ConditionType, DeploymentStatus
from anyapp.utils.helpers import format_duration, parse_duration

SYNC_TIMEOUT_OPTION = "syncTimeout"


class DeployJob(AsyncJob):
    """Deploys the application into this zone.

    The target version is synced once per poll interval until the sync engine
    reports the resources as deployed. A failed sync or an attempt that
    exceeds the sync timeout consumes one attempt; once every attempt is used
    up the job reports a terminal failure.
    """

    job_type = JobType.DEPLOY
    condition_type = ConditionType.DEPLOYMENT
    initial_status = DeploymentStatus.PULL.value

    def __init__(self, *args, retry_attempt: int = 0, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.retry_attempt = retry_attempt
        self.attempt = 1
        self.start_time = self.clock.now()
        self.timeout = self._sync_timeout()

    def _sync_timeout(self) -> float:
        value = self.application.spec.sync_policy.option(SYNC_TIMEOUT_OPTION)
        if value:
            try:
                return parse_duration(value)
            except ValueError:
                self.logger.warning(
                    f"Ignoring invalid {SYNC_TIMEOUT_OPTION} '{value}' of {self.application_id}"
                )
        return self.settings.default_sync_timeout

    async def run(self, context: JobContext) -> None:
        if await self.run_sync_cycle(context):
            return
        while not self.stopped:
            if await context.sleep(self.settings.poll_sync_status_interval):
                return
            if await self.run_sync_cycle(context):
                return

    async def run_sync_cycle(self, context: JobContext) -> bool:
        """Sync once and report the outcome.

        Returns:
            True when the job is finished.
        """
        try:
            result = await context.applications.sync_version(self.application)
        except Exception as e:
            self.logger.error(f"Failed to sync {self.application_id}: {e}")
            if context.cancelled:
                return True
            return await self.retry_or_fail(context, "SyncError", error=e)
        if context.cancelled:
            return True
        if result.application_resources_deployed:
            self.set_status(
                DeploymentStatus.DONE.value,
                msg="Deployment state changed to 'Done'.",
            )
            await self.update(context)
            return True
        if self.start_time.timestamp() + self.timeout < self.clock.now().timestamp():
            return await self.retry_or_fail(context, "Timeout")
        return False

    async def retry_or_fail(self, context: JobContext, reason: str, error: Exception = None) -> bool:
        max_retries = self.max_retries
        if self.attempt < max_retries:
            self.attempt += 1
            self.start_time = self.clock.now()
            self.set_status(
                DeploymentStatus.PULL.value,
                msg=f"Retrying deployment (attempt {self.attempt} of {max_retries})",
                reason=reason,
            )
            await self.update(context)
            return False
        if error is None:
            msg = f"Deployment timed out after {format_duration(self.timeout)}"
        else:
            msg = f"Deployment failed after {max_retries} attempts: {error}"
        self.set_status(DeploymentStatus.FAILURE.value, msg=msg, reason=reason)
        await self.update(context)
        return True

    async def update(self, context: JobContext) -> None:
        try:
            await self.commit(context, ConditionType.UNDEPLOYMENT, ConditionType.LOCAL)
        except Exception as e:
            self.logger.error(f"Cannot update deployment condition of {self.application_id}: {e}")
