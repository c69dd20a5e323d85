import logging
from typing import Callable
from anyapp.jobs.base import AsyncJob, JobType, max_retries_for
from anyapp.jobs.factory import AsyncJobFactory
from anyapp.state.types import ConditionRef, JobConditions, NextJobs, NextStateResult
from anyapp.status import conditions
from anyapp.types.models import (
    AnyApplication,
    ConditionType,
    DeploymentStatus,
    GlobalState,
    RelocationStatus,
    UndeploymentStatus,
)

logger = logging.getLogger(__name__)

_FAILURE = "Failure"


class LocalFSM:
    """Decides the zone-local action for an application.

    ============================================  =====================================
    this zone                                     action
    ============================================  =====================================
    not a placement target, resources present     undeploy, then drop Local condition
    placement target, resources absent            deploy (relocate during a transfer)
    placement target, resources present           operate (watch health)
    ============================================  =====================================

    A job is (re)started only when its condition is missing, or when the
    condition is still in flight but a different job is running (for example
    after an operator restart).
    """

    def __init__(
        self,
        application: AnyApplication,
        zone_id: str,
        present: bool,
        job_conditions: JobConditions,
        factory: AsyncJobFactory,
    ) -> None:
        self.application = application
        self.zone_id = zone_id
        self.present = present
        self.job_conditions = job_conditions
        self.factory = factory

    @property
    def status(self):
        return self.application.status

    @property
    def is_placement_target(self) -> bool:
        return self.status.is_placement_target(self.zone_id)

    @property
    def max_retries(self) -> int:
        return max_retries_for(self.application, self.factory.settings)

    def condition(self, type: ConditionType):
        return conditions.get_condition(self.status, type, self.zone_id)

    def running(self, job_type: JobType) -> bool:
        return self.job_conditions.job_type == job_type

    def next_state(self) -> NextStateResult:
        if not self.is_placement_target and self.present:
            return self.undeploy()
        if self.is_placement_target and not self.present:
            return self.deploy()
        if self.is_placement_target and self.present:
            return self.operate()
        return NextStateResult()

    def undeploy(self) -> NextStateResult:
        result = self._dispatch(
            ConditionType.UNDEPLOYMENT,
            JobType.UNDEPLOY,
            UndeploymentStatus.UNDEPLOY.value,
            self.factory.create_undeploy_job,
        )
        if result.jobs.job_to_add is not None:
            return result
        if self.condition(ConditionType.LOCAL) is not None:
            return NextStateResult(
                conditions_to_remove=[ConditionRef(ConditionType.LOCAL, self.zone_id)]
            )
        return NextStateResult()

    def deploy(self) -> NextStateResult:
        if self.status.state == GlobalState.OWNERSHIP_TRANSFER:
            return self._dispatch(
                ConditionType.RELOCATION,
                JobType.RELOCATE,
                RelocationStatus.PULL.value,
                self.factory.create_relocation_job,
            )
        return self._dispatch(
            ConditionType.DEPLOYMENT,
            JobType.DEPLOY,
            DeploymentStatus.PULL.value,
            self.factory.create_deploy_job,
        )

    def _dispatch(
        self,
        type: ConditionType,
        job_type: JobType,
        in_flight: str,
        create: Callable[[AnyApplication], AsyncJob],
    ) -> NextStateResult:
        current = self.condition(type)
        if current is None:
            return NextStateResult.start_job(create(self.application))
        if self.running(job_type):
            return NextStateResult()
        if current.status == in_flight or current.status == "Done":
            return NextStateResult.start_job(create(self.application))
        if current.status == _FAILURE and current.retry_attempt < self.max_retries:
            logger.info(
                f"Restarting {job_type.value} job for {self.application.application_id} "
                f"(restart {current.retry_attempt + 1} of {self.max_retries})"
            )
            return NextStateResult.start_job(create(self.application))
        return NextStateResult()

    def retries_exhausted(self, type: ConditionType) -> bool:
        current = self.condition(type)
        return (
            current is not None
            and current.status == _FAILURE
            and current.retry_attempt >= self.max_retries
        )

    def operate(self) -> NextStateResult:
        local = self.condition(ConditionType.LOCAL)
        if local is None:
            return NextStateResult.start_job(self.factory.create_operation_job(self.application))
        if not self.running(JobType.LOCAL_OPERATION):
            # Resume watching health without resetting the reported condition.
            return NextStateResult(
                jobs=NextJobs(job_to_add=self.factory.create_operation_job(self.application))
            )
        return NextStateResult()
