from .base import AsyncJob, JobContext, JobId, JobType
from .deploy import DeployJob
from .undeploy import UndeployJob
from .operation import LocalOperationJob
from .placement import LocalPlacementJob
from .relocation import RelocationJob
from .ownership_transfer import OwnershipTransferJob
from .factory import AsyncJobFactory
from .registry import JobRegistry, JobWorker

__all__ = [
    "AsyncJob",
    "JobContext",
    "JobId",
    "JobType",
    "DeployJob",
    "UndeployJob",
    "LocalOperationJob",
    "LocalPlacementJob",
    "RelocationJob",
    "OwnershipTransferJob",
    "AsyncJobFactory",
    "JobRegistry",
    "JobWorker",
]
