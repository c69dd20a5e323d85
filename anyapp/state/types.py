from typing import List, NamedTuple, Optional
from anyapp.jobs.base import AsyncJob, JobType
from anyapp.types.models import AnyApplicationStatus, ConditionStatus, ConditionType, GlobalState


class JobConditions(NamedTuple):
    """The job currently running for an application, as seen by the registry."""

    condition: Optional[ConditionStatus] = None
    job_type: Optional[JobType] = None

    @classmethod
    def from_job(cls, job: Optional[AsyncJob]) -> "JobConditions":
        if job is None:
            return cls()
        return cls(job.get_status(), job.job_type)


class NextJobs:
    """Job delta proposed by a single state-machine pass."""

    def __init__(
        self, job_to_add: Optional[AsyncJob] = None, job_to_remove: Optional[JobType] = None
    ) -> None:
        self.job_to_add = job_to_add
        self.job_to_remove = job_to_remove

    def __repr__(self) -> str:
        return f"NextJobs(job_to_add={self.job_to_add!r}, job_to_remove={self.job_to_remove!r})"

    def add(self, job: AsyncJob) -> None:
        if self.job_to_add is not None:
            raise RuntimeError(
                f"Cannot schedule {job!r}, {self.job_to_add!r} is already scheduled"
            )
        self.job_to_add = job

    def remove(self, job_type: JobType) -> None:
        self.job_to_remove = job_type

    def merge(self, other: "NextJobs") -> None:
        if other.job_to_add is not None:
            self.add(other.job_to_add)
        if other.job_to_remove is not None:
            self.remove(other.job_to_remove)


class ConditionRef(NamedTuple):
    type: ConditionType
    zone_id: str


class NextStateResult:
    """Outcome of a state-machine pass.

    Every field is optional: a pass may change the global state, add or
    remove conditions, and propose at most one job to start or stop.
    """

    def __init__(
        self,
        next_state: Optional[GlobalState] = None,
        conditions_to_add: List[ConditionStatus] = None,
        conditions_to_remove: List[ConditionRef] = None,
        jobs: NextJobs = None,
    ) -> None:
        self.next_state = next_state
        self.conditions_to_add = list(conditions_to_add or [])
        self.conditions_to_remove = list(conditions_to_remove or [])
        self.jobs = jobs or NextJobs()

    def __repr__(self) -> str:
        return (
            f"NextStateResult(next_state={self.next_state}, "
            f"conditions_to_add={self.conditions_to_add}, "
            f"conditions_to_remove={self.conditions_to_remove}, jobs={self.jobs})"
        )

    @classmethod
    def start_job(cls, job: AsyncJob, next_state: GlobalState = None) -> "NextStateResult":
        return cls(
            next_state=next_state,
            conditions_to_add=[job.get_status()],
            jobs=NextJobs(job_to_add=job),
        )

    def with_state(self, next_state: GlobalState) -> "NextStateResult":
        self.next_state = next_state
        return self


class StatusResult(NamedTuple):
    """Status delta and job delta derived for one reconciliation."""

    delta: Optional["StatusDelta"]
    jobs: NextJobs
    status: Optional[AnyApplicationStatus] = None


class StatusDelta:
    """Changes to commit to the shared status record."""

    def __init__(
        self,
        state: Optional[GlobalState] = None,
        owner: Optional[str] = None,
        conditions_to_add: List[ConditionStatus] = None,
        conditions_to_remove: List[ConditionRef] = None,
    ) -> None:
        self.state = state
        self.owner = owner
        self.conditions_to_add = list(conditions_to_add or [])
        self.conditions_to_remove = list(conditions_to_remove or [])

    def __repr__(self) -> str:
        return (
            f"StatusDelta(state={self.state}, owner={self.owner}, "
            f"conditions_to_add={self.conditions_to_add}, "
            f"conditions_to_remove={self.conditions_to_remove})"
        )

    def is_empty(self) -> bool:
        return (
            self.state is None
            and self.owner is None
            and not self.conditions_to_add
            and not self.conditions_to_remove
        )
