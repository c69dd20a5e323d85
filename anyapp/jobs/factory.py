import logging
from anyapp.jobs.base import AsyncJob, JobType
from anyapp.jobs.deploy import DeployJob
from anyapp.jobs.operation import LocalOperationJob
from anyapp.jobs.ownership_transfer import OwnershipTransferJob
from anyapp.jobs.placement import LocalPlacementJob
from anyapp.jobs.relocation import RelocationJob
from anyapp.jobs.undeploy import UndeployJob
from anyapp.status import conditions
from anyapp.types.models import AnyApplication, ConditionType
from anyapp.types.settings import Settings
from anyapp.utils.clock import Clock


class AsyncJobFactory:
    """Creates the jobs of one zone."""

    def __init__(
        self, settings: Settings, clock: Clock, logger: logging.Logger = None, sensor=None
    ) -> None:
        self.settings = settings
        self.clock = clock
        self.logger = logger
        self.sensor = sensor
        self._creators = {
            JobType.LOCAL_PLACEMENT: self.create_local_placement_job,
            JobType.DEPLOY: self.create_deploy_job,
            JobType.UNDEPLOY: self.create_undeploy_job,
            JobType.LOCAL_OPERATION: self.create_operation_job,
            JobType.RELOCATE: self.create_relocation_job,
            JobType.OWNERSHIP_TRANSFER: self.create_ownership_transfer_job,
        }

    @property
    def zone_id(self) -> str:
        return self.settings.zone_id

    def create(self, job_type: JobType, application: AnyApplication) -> AsyncJob:
        return self._creators[job_type](application)

    def _make(self, job_cls, application: AnyApplication, **kwargs) -> AsyncJob:
        return job_cls(
            application,
            self.zone_id,
            self.settings,
            self.clock,
            logger=self.logger,
            sensor=self.sensor,
            **kwargs,
        )

    def _next_retry_attempt(self, application: AnyApplication, type: ConditionType) -> int:
        """Count restarts of a job whose previous run failed."""
        previous = conditions.get_condition(application.status, type, self.zone_id)
        if previous is None or previous.status != "Failure":
            return 0
        return previous.retry_attempt + 1

    def create_local_placement_job(self, application: AnyApplication) -> LocalPlacementJob:
        return self._make(LocalPlacementJob, application)

    def create_deploy_job(self, application: AnyApplication) -> DeployJob:
        return self._make(
            DeployJob,
            application,
            retry_attempt=self._next_retry_attempt(application, ConditionType.DEPLOYMENT),
        )

    def create_undeploy_job(self, application: AnyApplication) -> UndeployJob:
        return self._make(
            UndeployJob,
            application,
            retry_attempt=self._next_retry_attempt(application, ConditionType.UNDEPLOYMENT),
        )

    def create_operation_job(self, application: AnyApplication) -> LocalOperationJob:
        return self._make(LocalOperationJob, application)

    def create_relocation_job(self, application: AnyApplication) -> RelocationJob:
        return self._make(
            RelocationJob,
            application,
            retry_attempt=self._next_retry_attempt(application, ConditionType.RELOCATION),
        )

    def create_ownership_transfer_job(self, application: AnyApplication) -> OwnershipTransferJob:
        return self._make(OwnershipTransferJob, application)
