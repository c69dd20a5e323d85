import logging
from anyapp.jobs.base import JobType
from anyapp.jobs.factory import AsyncJobFactory
from anyapp.state.local_fsm import LocalFSM
from anyapp.state.types import JobConditions, NextStateResult
from anyapp.status import conditions
from anyapp.types.models import (
    AnyApplication,
    ConditionType,
    DeploymentStatus,
    GlobalState,
    OwnershipTransferStatus,
    PlacementStatus,
    PlacementStrategyType,
)
from anyapp.types.settings import Settings

logger = logging.getLogger(__name__)

#: Condition types whose failures count towards the global failure rule.
FAILURE_CONDITION_TYPES = frozenset(
    [ConditionType.LOCAL, ConditionType.DEPLOYMENT, ConditionType.UNDEPLOYMENT]
)

_TRANSFER_SUCCESS = OwnershipTransferStatus.SUCCESS.value

# In-flight or failed conditions whose job is not running get a new job.
_PLACEMENT_RESTARTABLE = frozenset(
    [PlacementStatus.IN_PROGRESS.value, PlacementStatus.FAILURE.value]
)
_TRANSFER_RESTARTABLE = frozenset(
    [OwnershipTransferStatus.PULLING.value, OwnershipTransferStatus.FAILURE.value]
)


def count_failed_zones(application: AnyApplication, failing_statuses) -> int:
    """Number of zones reporting a failing Local/Deployment/Undeployment condition."""
    failed = 0
    for zone in application.status.zones:
        if any(
            c.type in FAILURE_CONDITION_TYPES and c.status in failing_statuses
            for c in zone.conditions
        ):
            failed += 1
    return failed


class GlobalFSM:
    """Drives the global lifecycle state from the owner zone.

    Each handler returns a :class:`NextStateResult`; handlers delegate to one
    another when the current state is already resolved (for instance a placed
    application moves straight on to deployment in the same pass).
    """

    def __init__(
        self,
        application: AnyApplication,
        zone_id: str,
        present: bool,
        job_conditions: JobConditions,
        factory: AsyncJobFactory,
        settings: Settings,
    ) -> None:
        self.application = application
        self.zone_id = zone_id
        self.present = present
        self.job_conditions = job_conditions
        self.factory = factory
        self.settings = settings
        self.local_fsm = LocalFSM(application, zone_id, present, job_conditions, factory)

    @property
    def status(self):
        return self.application.status

    @property
    def is_placement_target(self) -> bool:
        return self.status.is_placement_target(self.zone_id)

    def condition(self, type: ConditionType):
        return conditions.get_condition(self.status, type, self.zone_id)

    def next_state(self) -> NextStateResult:
        handlers = {
            GlobalState.UNKNOWN: self.handle_new,
            GlobalState.NEW: self.handle_new,
            GlobalState.PLACEMENT: self.handle_placement,
            GlobalState.OPERATIONAL: self.handle_operational,
            GlobalState.RELOCATION: self.handle_relocation,
            GlobalState.FAILURE: self.handle_failure,
            GlobalState.OWNERSHIP_TRANSFER: self.handle_ownership_transfer,
        }
        state = self.status.state or GlobalState.NEW
        result = handlers[state]()
        logger.debug(
            f"{self.application.application_id}: {state.value} -> "
            f"{result.next_state.value if result.next_state else state.value}"
        )
        return result

    def is_failure(self) -> bool:
        tolerance = self.application.spec.recover_strategy.tolerance
        failed = count_failed_zones(self.application, self.settings.failing_condition_statuses)
        return failed > tolerance

    def handle_new(self) -> NextStateResult:
        return self.handle_placement()

    def handle_placement(self) -> NextStateResult:
        strategy = self.application.spec.placement_strategy.strategy
        placement = self.condition(ConditionType.PLACEMENT)
        if strategy == PlacementStrategyType.LOCAL and (
            placement is None
            or (
                placement.status in _PLACEMENT_RESTARTABLE
                and self.job_conditions.job_type != JobType.LOCAL_PLACEMENT
            )
        ):
            job = self.factory.create_local_placement_job(self.application)
            return NextStateResult.start_job(job, GlobalState.PLACEMENT)
        if not self.status.placements:
            return NextStateResult(next_state=GlobalState.PLACEMENT)
        if self.is_placement_target:
            return self.handle_operational()
        return NextStateResult(next_state=GlobalState.PLACEMENT)

    def handle_operational(self) -> NextStateResult:
        if self.is_failure():
            return self.handle_failure()
        if self.is_placement_target and not self.present:
            return self.handle_relocation()
        if not self.is_placement_target and not self.present and self.status.placements:
            job = self.factory.create_ownership_transfer_job(self.application)
            return NextStateResult.start_job(job, GlobalState.OWNERSHIP_TRANSFER)
        return self.local_fsm.next_state().with_state(GlobalState.OPERATIONAL)

    def handle_relocation(self) -> NextStateResult:
        if self.present and any(
            c is not None and c.status == DeploymentStatus.DONE.value
            for c in (
                self.condition(ConditionType.DEPLOYMENT),
                self.condition(ConditionType.RELOCATION),
            )
        ):
            return self.handle_operational()
        if self.local_fsm.retries_exhausted(ConditionType.DEPLOYMENT):
            return NextStateResult(next_state=GlobalState.FAILURE)
        return self.local_fsm.deploy().with_state(GlobalState.RELOCATION)

    def handle_failure(self) -> NextStateResult:
        if not self.is_failure():
            return self.handle_operational()
        return self.local_fsm.next_state().with_state(GlobalState.FAILURE)

    def handle_ownership_transfer(self) -> NextStateResult:
        if self.is_placement_target and self._ownership_transferred():
            result = self.handle_operational()
            result.jobs.remove(JobType.OWNERSHIP_TRANSFER)
            return result
        if not self.is_placement_target:
            transfer = self.condition(ConditionType.OWNERSHIP_TRANSFER)
            if self.condition(ConditionType.LOCAL) is None and (
                transfer is None
                or (
                    transfer.status in _TRANSFER_RESTARTABLE
                    and self.job_conditions.job_type != JobType.OWNERSHIP_TRANSFER
                )
            ):
                job = self.factory.create_ownership_transfer_job(self.application)
                return NextStateResult.start_job(job, GlobalState.OWNERSHIP_TRANSFER)
        return NextStateResult(next_state=GlobalState.OWNERSHIP_TRANSFER)

    def _ownership_transferred(self) -> bool:
        local = self.condition(ConditionType.LOCAL)
        if local is not None and local.status == _TRANSFER_SUCCESS:
            return True
        return any(
            c.type == ConditionType.OWNERSHIP_TRANSFER and c.status == _TRANSFER_SUCCESS
            for c in conditions.all_conditions(self.status)
        )
