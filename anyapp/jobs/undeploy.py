from anyapp.jobs.base import AsyncJob, JobContext, JobType
from anyapp.types.models import ConditionType, UndeploymentStatus


class UndeployJob(AsyncJob):
    """Removes the application resources from this zone."""

    job_type = JobType.UNDEPLOY
    condition_type = ConditionType.UNDEPLOYMENT
    initial_status = UndeploymentStatus.UNDEPLOY.value

    def __init__(self, *args, retry_attempt: int = 0, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.retry_attempt = retry_attempt
        self.attempt = 1
        self.start_time = self.clock.now()
        self.timeout = self.settings.default_undeploy_timeout

    async def run(self, context: JobContext) -> None:
        if await self.run_cycle(context):
            return
        while not self.stopped:
            if await context.sleep(self.settings.poll_sync_status_interval):
                return
            if await self.run_cycle(context):
                return

    async def run_cycle(self, context: JobContext) -> bool:
        try:
            versions = await context.applications.present_versions(self.application)
            if not versions:
                return await self.done(context, "")
            results = await context.applications.cleanup(self.application)
        except Exception as e:
            self.logger.error(f"Failed to undeploy {self.application_id}: {e}")
            if context.cancelled:
                return True
            return await self.retry_or_fail(context, "UndeployError", f"{e}.")
        if context.cancelled:
            return True
        details = "".join(
            f"Version {r.version} (Total={r.total}, Deleted={r.deleted}, "
            f"DeleteFailed={r.delete_failed}). "
            for r in results
        )
        if not any(r.application_resources_present for r in results):
            return await self.done(context, details)
        if self.start_time.timestamp() + self.timeout < self.clock.now().timestamp():
            return await self.retry_or_fail(
                context, "Timeout", f"{details}Undeploy timed out."
            )
        self.set_status(UndeploymentStatus.UNDEPLOY.value, msg=details.strip())
        await self.update(context)
        return False

    async def done(self, context: JobContext, details: str) -> bool:
        msg = "Undeploy state changed to 'Done'."
        if details:
            msg = f"{msg} {details.strip()}"
        self.set_status(UndeploymentStatus.DONE.value, msg=msg)
        await self.update(context)
        return True

    async def retry_or_fail(self, context: JobContext, reason: str, failure: str) -> bool:
        max_retries = self.max_retries
        if self.attempt < max_retries:
            self.attempt += 1
            self.start_time = self.clock.now()
            self.set_status(
                UndeploymentStatus.UNDEPLOY.value,
                msg=f"{failure} Retrying undeployment (attempt {self.attempt} of {max_retries}).",
                reason=reason,
            )
            await self.update(context)
            return False
        self.set_status(
            UndeploymentStatus.FAILURE.value,
            msg=f"Failure after {max_retries} attempts.",
            reason=reason,
        )
        await self.update(context)
        return True

    async def update(self, context: JobContext) -> None:
        try:
            await self.commit(context, ConditionType.LOCAL, ConditionType.DEPLOYMENT)
        except Exception as e:
            self.logger.error(f"Cannot update undeployment condition of {self.application_id}: {e}")
