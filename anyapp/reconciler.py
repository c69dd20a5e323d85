import logging
from typing import Callable, NamedTuple, Optional, Tuple
from anyapp.events import Event, global_state_change
from anyapp.jobs.base import AsyncJob, JobType
from anyapp.jobs.registry import JobRegistry
from anyapp.state import GlobalApplication, JobConditions, StatusDelta
from anyapp.status import conditions
from anyapp.types.models import AnyApplicationStatus, GlobalState
from anyapp.utils.helpers import iso_datestr_to_datetime

logger = logging.getLogger(__name__)


class ReconcilerResult(NamedTuple):
    delta: Optional[StatusDelta]
    job_to_add: Optional[AsyncJob]
    job_to_remove: Optional[JobType]
    status: Optional[AnyApplicationStatus] = None
    previous_state: Optional[GlobalState] = None


class Reconciler:
    """Derives what one reconciliation of an application must do."""

    def __init__(self, registry: JobRegistry) -> None:
        self.registry = registry

    def do_reconcile(self, application: GlobalApplication) -> ReconcilerResult:
        current = self.registry.get_current(application.application_id)
        result = application.derive_new_status(JobConditions.from_job(current))
        return ReconcilerResult(
            delta=result.delta,
            job_to_add=result.jobs.job_to_add,
            job_to_remove=result.jobs.job_to_remove,
            status=result.status,
            previous_state=application.application.status.state,
        )


def _is_newer(existing, incoming) -> bool:
    """True if `existing` transitioned strictly after `incoming`."""
    if not existing.last_transition_time or not incoming.last_transition_time:
        return False
    try:
        return iso_datestr_to_datetime(existing.last_transition_time) > iso_datestr_to_datetime(
            incoming.last_transition_time
        )
    except ValueError:
        return False


def apply_status_delta(
    delta: StatusDelta,
) -> Callable[[AnyApplicationStatus, str], Tuple[bool, Optional[Event]]]:
    """Build a status mutation that merges `delta` into a freshly read status.

    Conditions that were updated after the delta was derived win over the
    delta's copy. A delta claiming ownership is dropped when another zone
    owns the application by now.
    """

    def mutate(status: AnyApplicationStatus, zone_id: str):
        if delta.owner is not None and status.owner not in (None, delta.owner):
            logger.info(
                f"Zone '{zone_id}' lost the ownership race to '{status.owner}', "
                f"discarding derived status"
            )
            return False, None

        changed = False
        msg = ""
        if delta.owner is not None and status.owner != delta.owner:
            status.owner = delta.owner
            changed = True
            msg += f"Owner changed to '{delta.owner}'. "
        if delta.state is not None and status.state != delta.state:
            status.state = delta.state
            changed = True
            msg += f"Global state changed to '{delta.state.value}'. "
        for ref in delta.conditions_to_remove:
            if conditions.remove(status, ref.type, ref.zone_id):
                changed = True
                msg += f"{ref.type.value} condition of zone '{ref.zone_id}' removed. "
        for condition in delta.conditions_to_add:
            existing = conditions.get_condition(status, condition.type, condition.zone_id)
            if existing is not None and _is_newer(existing, condition):
                continue
            if conditions.add_or_update(status, condition, condition.zone_id):
                changed = True
                msg += f"{condition.type.value} condition of zone '{condition.zone_id}' is '{condition.status}'. "
        return changed, global_state_change(msg.strip()) if msg else None

    return mutate
