import copy
import logging
from anyapp.jobs.factory import AsyncJobFactory
from anyapp.state.global_fsm import GlobalFSM
from anyapp.state.local_fsm import LocalFSM
from anyapp.state.types import (
    ConditionRef,
    JobConditions,
    NextStateResult,
    StatusDelta,
    StatusResult,
)
from anyapp.status import conditions
from anyapp.types.models import AnyApplication, ConditionStatus, GlobalState
from anyapp.types.settings import Settings

logger = logging.getLogger(__name__)


class GlobalApplication:
    """An application as seen by one zone.

    Combines the shared status with what this zone observes locally and
    derives the status delta and job delta for one reconciliation.
    """

    def __init__(
        self,
        application: AnyApplication,
        present: bool,
        settings: Settings,
        factory: AsyncJobFactory,
    ) -> None:
        self.application = application
        self.present = present
        self.settings = settings
        self.factory = factory

    @property
    def zone_id(self) -> str:
        return self.settings.zone_id

    @property
    def application_id(self):
        return self.application.application_id

    @property
    def is_owner(self) -> bool:
        return self.application.status.owner == self.zone_id

    @property
    def is_placement_target(self) -> bool:
        return self.application.status.is_placement_target(self.zone_id)

    def is_relevant(self) -> bool:
        """Whether this zone has anything to do for the application."""
        status = self.application.status
        return (
            self.present
            or status.state is None
            or self.is_owner
            or self.is_placement_target
        )

    def derive_new_status(self, job_conditions: JobConditions) -> StatusResult:
        status = copy.deepcopy(self.application.status)
        delta = StatusDelta()

        if status.state is None:
            status.owner = self.zone_id
            status.state = GlobalState.NEW
            delta.owner = self.zone_id
            delta.state = GlobalState.NEW

        if job_conditions.condition is not None:
            self._add(status, delta, copy.copy(job_conditions.condition))

        working = copy.copy(self.application)
        working.status = status
        result = self._next_state(working, job_conditions)

        for ref in result.conditions_to_remove:
            self._remove(status, delta, ref)
        for condition in result.conditions_to_add:
            self._add(status, delta, condition)

        if result.next_state is not None:
            status.state = result.next_state
            if result.next_state != self.application.status.state:
                delta.state = result.next_state

        return StatusResult(
            delta=None if delta.is_empty() else delta,
            jobs=result.jobs,
            status=status,
        )

    def _next_state(self, working: AnyApplication, job_conditions: JobConditions) -> NextStateResult:
        if working.status.owner == self.zone_id:
            return GlobalFSM(
                working, self.zone_id, self.present, job_conditions, self.factory, self.settings
            ).next_state()
        if self.present or working.status.is_placement_target(self.zone_id):
            return LocalFSM(
                working, self.zone_id, self.present, job_conditions, self.factory
            ).next_state()
        return NextStateResult()

    @staticmethod
    def _add(status, delta: StatusDelta, condition: ConditionStatus) -> None:
        if conditions.add_or_update(status, condition, condition.zone_id):
            ref = ConditionRef(condition.type, condition.zone_id)
            delta.conditions_to_remove = [r for r in delta.conditions_to_remove if r != ref]
            delta.conditions_to_add = [
                c
                for c in delta.conditions_to_add
                if ConditionRef(c.type, c.zone_id) != ref
            ]
            delta.conditions_to_add.append(condition)

    @staticmethod
    def _remove(status, delta: StatusDelta, ref: ConditionRef) -> None:
        if conditions.remove(status, ref.type, ref.zone_id):
            delta.conditions_to_add = [
                c
                for c in delta.conditions_to_add
                if ConditionRef(c.type, c.zone_id) != ref
            ]
            if ref not in delta.conditions_to_remove:
                delta.conditions_to_remove.append(ref)
