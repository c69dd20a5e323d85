from anyapp.events import local_state_change
from anyapp.jobs.base import AsyncJob, JobContext, JobType
from anyapp.status import conditions
from anyapp.types.models import ConditionType, Placement, PlacementStatus


class LocalPlacementJob(AsyncJob):
    """Places the application in the zone that owns it."""

    job_type = JobType.LOCAL_PLACEMENT
    condition_type = ConditionType.PLACEMENT
    initial_status = PlacementStatus.IN_PROGRESS.value

    async def run(self, context: JobContext) -> None:
        self.set_status(PlacementStatus.DONE.value)
        condition = self.get_status()

        def mutate(status, zone_id):
            status.placements = [Placement(zone=zone_id)]
            conditions.add_or_update(status, condition, zone_id)
            return True, local_state_change(
                f"Placement state changed to '{condition.status}'. "
                f"Application placed in zone '{zone_id}'."
            )

        try:
            await self.status_updater(context).update_status(mutate)
        except Exception as e:
            self.logger.error(f"Cannot update placement of {self.application_id}: {e}")
            self.set_status(
                PlacementStatus.FAILURE.value,
                msg=f"Cannot update application condition. {e}",
                reason="StatusUpdateError",
            )
            await self.report_failure(context)
