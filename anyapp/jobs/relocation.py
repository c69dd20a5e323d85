from anyapp.jobs.base import AsyncJob, JobContext, JobType
from anyapp.types.models import ConditionType, RelocationStatus


class RelocationJob(AsyncJob):
    """Pulls the application into this zone while ownership moves here."""

    job_type = JobType.RELOCATE
    condition_type = ConditionType.RELOCATION
    initial_status = RelocationStatus.PULL.value

    def __init__(self, *args, retry_attempt: int = 0, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.retry_attempt = retry_attempt

    async def run(self, context: JobContext) -> None:
        try:
            result = await context.applications.sync_version(self.application)
        except Exception as e:
            self.logger.error(f"Failed to relocate {self.application_id}: {e}")
            if context.cancelled:
                return
            self.set_status(
                RelocationStatus.FAILURE.value,
                msg=f"Relocation failure: {e}",
                reason="SyncError",
            )
        else:
            if context.cancelled:
                return
            if result.application_resources_deployed:
                self.set_status(
                    RelocationStatus.DONE.value, msg="Relocation state changed to 'Done'."
                )
            else:
                self.set_status(
                    RelocationStatus.FAILURE.value,
                    msg=f"Relocation failure: {result.health.message}".strip(),
                    reason=result.health.status.value,
                )
        try:
            await self.commit(context, ConditionType.UNDEPLOYMENT)
        except Exception as e:
            self.logger.error(f"Cannot update relocation condition of {self.application_id}: {e}")
