from .types import (
    ConditionRef,
    JobConditions,
    NextJobs,
    NextStateResult,
    StatusDelta,
    StatusResult,
)
from .local_fsm import LocalFSM
from .global_fsm import GlobalFSM, count_failed_zones
from .application import GlobalApplication

__all__ = [
    "ConditionRef",
    "JobConditions",
    "NextJobs",
    "NextStateResult",
    "StatusDelta",
    "StatusResult",
    "LocalFSM",
    "GlobalFSM",
    "count_failed_zones",
    "GlobalApplication",
]
