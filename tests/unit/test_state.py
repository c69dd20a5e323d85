"""Unit tests for the global and local application state machines."""

import pytest
from anyapp.jobs import (
    DeployJob,
    JobType,
    LocalOperationJob,
    LocalPlacementJob,
    OwnershipTransferJob,
    RelocationJob,
    UndeployJob,
)
from anyapp.state import (
    ConditionRef,
    GlobalApplication,
    JobConditions,
    LocalFSM,
    NextJobs,
    StatusDelta,
    count_failed_zones,
)
from anyapp.types.models import ConditionType, GlobalState, PlacementStrategyType
from conftest import build_status, condition


def derive(app, settings, factory, present=False, job=None):
    global_app = GlobalApplication(app, present, settings, factory)
    return global_app.derive_new_status(JobConditions.from_job(job))


def added(result):
    return [(c.type, c.zone_id, c.status) for c in result.delta.conditions_to_add]


class TestNewApplication:
    """The first zone to see an application claims and places it."""

    def test_claims_ownership_and_starts_placement(self, make_application, settings, factory):
        result = derive(make_application(), settings, factory)

        assert result.delta.owner == "zone-a"
        assert result.delta.state == GlobalState.PLACEMENT
        assert added(result) == [(ConditionType.PLACEMENT, "zone-a", "InProgress")]
        assert isinstance(result.jobs.job_to_add, LocalPlacementJob)
        assert result.status.owner == "zone-a"

    def test_global_strategy_waits_for_placements(self, make_application, settings, factory):
        app = make_application(strategy=PlacementStrategyType.GLOBAL)
        result = derive(app, settings, factory)

        assert result.delta.state == GlobalState.PLACEMENT
        assert result.delta.conditions_to_add == []
        assert result.jobs.job_to_add is None

    def test_placement_failure_restarts_job(self, make_application, settings, factory):
        app = make_application(
            status=build_status(
                state=GlobalState.PLACEMENT,
                owner="zone-a",
                conditions=[condition(ConditionType.PLACEMENT, "zone-a", "Failure")],
            )
        )
        result = derive(app, settings, factory)
        assert isinstance(result.jobs.job_to_add, LocalPlacementJob)
        assert result.delta.state is None

    def test_placement_in_progress_waits(self, make_application, settings, factory):
        app = make_application(
            status=build_status(
                state=GlobalState.PLACEMENT,
                owner="zone-a",
                conditions=[condition(ConditionType.PLACEMENT, "zone-a", "InProgress")],
            )
        )
        job = factory.create_local_placement_job(app)
        result = derive(app, settings, factory, job=job)
        assert result.delta is None
        assert result.jobs.job_to_add is None

    def test_in_progress_placement_without_job_restarts(self, make_application, settings, factory):
        app = make_application(
            status=build_status(
                state=GlobalState.PLACEMENT,
                owner="zone-a",
                conditions=[condition(ConditionType.PLACEMENT, "zone-a", "InProgress")],
            )
        )
        result = derive(app, settings, factory)
        assert isinstance(result.jobs.job_to_add, LocalPlacementJob)
        assert result.status.state == GlobalState.PLACEMENT


class TestDeployment:
    """A placed application is pulled into its zone, then watched."""

    def test_placement_done_starts_deploy(self, make_application, settings, factory):
        app = make_application(
            status=build_status(
                state=GlobalState.PLACEMENT,
                owner="zone-a",
                placements=["zone-a"],
                conditions=[condition(ConditionType.PLACEMENT, "zone-a", "Done")],
            )
        )
        result = derive(app, settings, factory)

        assert result.delta.state == GlobalState.RELOCATION
        assert added(result) == [(ConditionType.DEPLOYMENT, "zone-a", "Pull")]
        assert isinstance(result.jobs.job_to_add, DeployJob)

    def test_running_deploy_is_left_alone(self, make_application, settings, factory):
        app = make_application(
            status=build_status(
                state=GlobalState.RELOCATION,
                owner="zone-a",
                placements=["zone-a"],
                conditions=[condition(ConditionType.DEPLOYMENT, "zone-a", "Pull")],
            )
        )
        result = derive(app, settings, factory, job=factory.create_deploy_job(app))
        assert result.delta is None
        assert result.jobs.job_to_add is None

    def test_in_flight_deploy_without_job_restarts(self, make_application, settings, factory):
        app = make_application(
            status=build_status(
                state=GlobalState.RELOCATION,
                owner="zone-a",
                placements=["zone-a"],
                conditions=[condition(ConditionType.DEPLOYMENT, "zone-a", "Pull")],
            )
        )
        result = derive(app, settings, factory)
        assert isinstance(result.jobs.job_to_add, DeployJob)

    def test_deploy_done_starts_operation(self, make_application, settings, factory):
        app = make_application(
            status=build_status(
                state=GlobalState.RELOCATION,
                owner="zone-a",
                placements=["zone-a"],
                conditions=[condition(ConditionType.DEPLOYMENT, "zone-a", "Done")],
            )
        )
        result = derive(app, settings, factory, present=True)

        assert result.delta.state == GlobalState.OPERATIONAL
        assert added(result) == [(ConditionType.LOCAL, "zone-a", "Progressing")]
        assert isinstance(result.jobs.job_to_add, LocalOperationJob)

    def test_failed_deploy_is_retried(self, make_application, settings, factory):
        app = make_application(
            status=build_status(
                state=GlobalState.RELOCATION,
                owner="zone-a",
                placements=["zone-a"],
                conditions=[
                    condition(ConditionType.DEPLOYMENT, "zone-a", "Failure", retry_attempt=1)
                ],
            )
        )
        result = derive(app, settings, factory)
        assert isinstance(result.jobs.job_to_add, DeployJob)
        assert result.jobs.job_to_add.retry_attempt == 2
        assert result.delta.state is None

    def test_exhausted_deploy_fails(self, make_application, settings, factory):
        app = make_application(
            status=build_status(
                state=GlobalState.RELOCATION,
                owner="zone-a",
                placements=["zone-a"],
                conditions=[
                    condition(ConditionType.DEPLOYMENT, "zone-a", "Failure", retry_attempt=3)
                ],
            )
        )
        result = derive(app, settings, factory)
        assert result.delta.state == GlobalState.FAILURE
        assert result.jobs.job_to_add is None


class TestOperational:
    """Steady state, failure tolerance and recovery."""

    def operational(self, make_application, local_status, **kwargs):
        return make_application(
            status=build_status(
                state=GlobalState.OPERATIONAL,
                owner="zone-a",
                placements=["zone-a"],
                conditions=[condition(ConditionType.LOCAL, "zone-a", local_status)],
            ),
            **kwargs,
        )

    def test_healthy_with_running_job_is_stable(self, make_application, settings, factory):
        app = self.operational(make_application, "Healthy")
        job = factory.create_operation_job(app)
        job.set_status("Healthy")
        result = derive(app, settings, factory, present=True, job=job)
        assert result.delta is None
        assert result.jobs.job_to_add is None
        assert result.jobs.job_to_remove is None

    def test_operation_job_resumed_without_resetting_condition(
        self, make_application, settings, factory
    ):
        app = self.operational(make_application, "Healthy")
        result = derive(app, settings, factory, present=True)
        assert result.delta is None
        assert isinstance(result.jobs.job_to_add, LocalOperationJob)

    def test_degraded_beyond_tolerance_fails(self, make_application, settings, factory):
        app = self.operational(make_application, "Degraded")
        result = derive(app, settings, factory, present=True)
        assert result.delta.state == GlobalState.FAILURE

    def test_degraded_within_tolerance(self, make_application, settings, factory):
        app = self.operational(make_application, "Degraded", tolerance=1)
        result = derive(app, settings, factory, present=True)
        assert result.delta is None

    def test_failing_statuses_are_configurable(self, make_application, settings, factory):
        settings.failing_condition_statuses = frozenset(["Failure"])
        app = self.operational(make_application, "Degraded")
        result = derive(app, settings, factory, present=True)
        assert result.delta is None

    def test_recovers_from_failure(self, make_application, settings, factory):
        app = make_application(
            status=build_status(
                state=GlobalState.FAILURE,
                owner="zone-a",
                placements=["zone-a"],
                conditions=[condition(ConditionType.LOCAL, "zone-a", "Healthy")],
            )
        )
        result = derive(app, settings, factory, present=True)
        assert result.delta.state == GlobalState.OPERATIONAL

    def test_count_failed_zones(self, make_application, settings):
        app = make_application(
            status=build_status(
                conditions=[
                    condition(ConditionType.LOCAL, "zone-a", "Degraded"),
                    condition(ConditionType.DEPLOYMENT, "zone-a", "Failure"),
                    condition(ConditionType.LOCAL, "zone-b", "Missing"),
                    condition(ConditionType.LOCAL, "zone-c", "Healthy"),
                    condition(ConditionType.PLACEMENT, "zone-c", "Failure"),
                ]
            )
        )
        assert count_failed_zones(app, settings.failing_condition_statuses) == 2


class TestPlacementChange:
    """A zone that is no longer a target removes its resources."""

    @pytest.fixture
    def moved_app(self, make_application):
        return make_application(
            status=build_status(
                state=GlobalState.OPERATIONAL,
                owner="zone-a",
                placements=["zone-b"],
                conditions=[condition(ConditionType.LOCAL, "zone-a", "Healthy")],
            )
        )

    def test_starts_undeploy_and_keeps_local(self, moved_app, settings, factory):
        result = derive(moved_app, settings, factory, present=True)

        assert isinstance(result.jobs.job_to_add, UndeployJob)
        assert added(result) == [(ConditionType.UNDEPLOYMENT, "zone-a", "Undeploy")]
        assert result.delta.conditions_to_remove == []
        assert result.delta.state is None

    def test_local_removed_once_undeploy_runs(self, moved_app, settings, factory):
        first = derive(moved_app, settings, factory, present=True)
        moved_app.status = first.status
        result = derive(moved_app, settings, factory, present=True, job=first.jobs.job_to_add)

        assert result.jobs.job_to_add is None
        assert result.delta.conditions_to_remove == [ConditionRef(ConditionType.LOCAL, "zone-a")]
        assert result.delta.conditions_to_add == []

    def test_owner_without_resources_hands_over(self, make_application, settings, factory):
        app = make_application(
            status=build_status(
                state=GlobalState.OPERATIONAL,
                owner="zone-a",
                placements=["zone-b"],
                conditions=[condition(ConditionType.UNDEPLOYMENT, "zone-a", "Done")],
            )
        )
        result = derive(app, settings, factory, present=False)

        assert result.delta.state == GlobalState.OWNERSHIP_TRANSFER
        assert isinstance(result.jobs.job_to_add, OwnershipTransferJob)
        assert added(result) == [(ConditionType.OWNERSHIP_TRANSFER, "zone-a", "Pulling")]


class TestOwnershipTransfer:
    """The zone receiving ownership takes over the lifecycle."""

    def test_new_owner_becomes_operational(self, make_application, settings, factory):
        app = make_application(
            status=build_status(
                state=GlobalState.OWNERSHIP_TRANSFER,
                owner="zone-a",
                placements=["zone-a"],
                conditions=[condition(ConditionType.OWNERSHIP_TRANSFER, "zone-b", "Success")],
            )
        )
        result = derive(app, settings, factory, present=True)

        assert result.delta.state == GlobalState.OPERATIONAL
        assert isinstance(result.jobs.job_to_add, LocalOperationJob)
        assert result.jobs.job_to_remove == JobType.OWNERSHIP_TRANSFER

    def test_new_owner_relocates_missing_resources(self, make_application, settings, factory):
        app = make_application(
            status=build_status(
                state=GlobalState.OWNERSHIP_TRANSFER,
                owner="zone-a",
                placements=["zone-a"],
                conditions=[condition(ConditionType.OWNERSHIP_TRANSFER, "zone-b", "Success")],
            )
        )
        result = derive(app, settings, factory, present=False)

        assert result.delta.state == GlobalState.RELOCATION
        assert isinstance(result.jobs.job_to_add, RelocationJob)

    def test_pending_transfer_waits(self, make_application, settings, factory):
        app = make_application(
            status=build_status(
                state=GlobalState.OWNERSHIP_TRANSFER,
                owner="zone-a",
                placements=["zone-b"],
                conditions=[condition(ConditionType.OWNERSHIP_TRANSFER, "zone-a", "Pulling")],
            )
        )
        job = factory.create_ownership_transfer_job(app)
        job.msg = ""
        result = derive(app, settings, factory, job=job)
        assert result.jobs.job_to_add is None
        assert result.delta is None

    def test_pulling_transfer_without_job_restarts(self, make_application, settings, factory):
        app = make_application(
            status=build_status(
                state=GlobalState.OWNERSHIP_TRANSFER,
                owner="zone-a",
                placements=["zone-b"],
                conditions=[condition(ConditionType.OWNERSHIP_TRANSFER, "zone-a", "Pulling")],
            )
        )
        result = derive(app, settings, factory)
        assert isinstance(result.jobs.job_to_add, OwnershipTransferJob)
        assert result.status.state == GlobalState.OWNERSHIP_TRANSFER

    def test_failed_transfer_is_restarted(self, make_application, settings, factory):
        app = make_application(
            status=build_status(
                state=GlobalState.OWNERSHIP_TRANSFER,
                owner="zone-a",
                placements=["zone-b"],
                conditions=[condition(ConditionType.OWNERSHIP_TRANSFER, "zone-a", "Failure")],
            )
        )
        result = derive(app, settings, factory)
        assert isinstance(result.jobs.job_to_add, OwnershipTransferJob)


class TestOtherZones:
    """Zones that do not own the application only act locally."""

    def test_target_zone_deploys(self, make_application, settings, factory):
        app = make_application(
            status=build_status(
                state=GlobalState.RELOCATION, owner="zone-b", placements=["zone-a"]
            )
        )
        result = derive(app, settings, factory)

        assert result.delta.state is None
        assert result.delta.owner is None
        assert added(result) == [(ConditionType.DEPLOYMENT, "zone-a", "Pull")]
        assert isinstance(result.jobs.job_to_add, DeployJob)

    def test_target_zone_pulls_during_transfer(self, make_application, settings, factory):
        app = make_application(
            status=build_status(
                state=GlobalState.OWNERSHIP_TRANSFER, owner="zone-b", placements=["zone-a"]
            )
        )
        result = derive(app, settings, factory)
        assert isinstance(result.jobs.job_to_add, RelocationJob)
        assert added(result) == [(ConditionType.RELOCATION, "zone-a", "Pull")]

    def test_unrelated_zone_is_not_relevant(self, make_application, settings, factory):
        app = make_application(
            status=build_status(
                state=GlobalState.OPERATIONAL, owner="zone-b", placements=["zone-c"]
            )
        )
        assert GlobalApplication(app, False, settings, factory).is_relevant() is False
        assert GlobalApplication(app, True, settings, factory).is_relevant() is True


class TestLocalFSM:
    """Direct tests of the local decision table."""

    def fsm(self, app, factory, present, job_type=None):
        return LocalFSM(app, "zone-a", present, JobConditions(job_type=job_type), factory)

    def test_nothing_to_do_outside_placements(self, make_application, factory):
        app = make_application(status=build_status(owner="zone-b", placements=["zone-b"]))
        result = self.fsm(app, factory, present=False).next_state()
        assert result.jobs.job_to_add is None
        assert result.conditions_to_add == []

    def test_exhausted_undeploy_is_not_restarted(self, make_application, factory):
        app = make_application(
            status=build_status(
                owner="zone-b",
                placements=["zone-b"],
                conditions=[
                    condition(ConditionType.UNDEPLOYMENT, "zone-a", "Failure", retry_attempt=3)
                ],
            )
        )
        fsm = self.fsm(app, factory, present=True)
        assert fsm.next_state().jobs.job_to_add is None
        assert fsm.retries_exhausted(ConditionType.UNDEPLOYMENT)

    def test_operate_with_running_job(self, make_application, factory):
        app = make_application(
            status=build_status(
                owner="zone-b",
                placements=["zone-a"],
                conditions=[condition(ConditionType.LOCAL, "zone-a", "Healthy")],
            )
        )
        result = self.fsm(app, factory, True, JobType.LOCAL_OPERATION).next_state()
        assert result.jobs.job_to_add is None


class TestResultTypes:
    """Tests for the state-machine result containers."""

    def test_next_jobs_refuses_two_jobs(self, make_application, factory):
        app = make_application()
        jobs = NextJobs(job_to_add=factory.create_deploy_job(app))
        with pytest.raises(RuntimeError):
            jobs.add(factory.create_undeploy_job(app))

    def test_merge(self, make_application, factory):
        app = make_application()
        jobs = NextJobs()
        jobs.merge(NextJobs(factory.create_deploy_job(app), JobType.LOCAL_OPERATION))
        assert isinstance(jobs.job_to_add, DeployJob)
        assert jobs.job_to_remove == JobType.LOCAL_OPERATION

    def test_empty_delta(self):
        assert StatusDelta().is_empty()
        assert not StatusDelta(owner="zone-a").is_empty()
