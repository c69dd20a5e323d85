from anyapp.events import global_state_change
from anyapp.jobs.base import AsyncJob, JobContext, JobType
from anyapp.status import conditions
from anyapp.types.models import ConditionType, OwnershipTransferStatus


class OwnershipTransferJob(AsyncJob):
    """Hands ownership over to the first zone the application is placed in."""

    job_type = JobType.OWNERSHIP_TRANSFER
    condition_type = ConditionType.OWNERSHIP_TRANSFER
    initial_status = OwnershipTransferStatus.PULLING.value

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.msg = "Ownership transfer in progress"

    async def run(self, context: JobContext) -> None:
        self.set_status(OwnershipTransferStatus.SUCCESS.value)
        condition = self.get_status()

        def mutate(status, zone_id):
            if status.owner != zone_id or not status.placements:
                return False, None
            new_owner = status.placements[0].zone
            status.owner = new_owner
            conditions.add_or_update(status, condition, zone_id)
            return True, global_state_change(
                f"Owner changed from '{zone_id}' to '{new_owner}'. "
            )

        try:
            await self.status_updater(context).update_status(mutate)
        except Exception as e:
            self.logger.error(f"Cannot transfer ownership of {self.application_id}: {e}")
            self.set_status(
                OwnershipTransferStatus.FAILURE.value,
                msg=f"Ownership transfer failure: {e}",
                reason="StatusUpdateError",
            )
            await self.report_failure(context)
