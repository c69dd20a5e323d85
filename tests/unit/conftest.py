"""Shared fixtures for AnyApplication operator unit tests."""

import asyncio
import copy
import pytest
from typing import Dict, List
from kubernetes_asyncio.client import ApiException
from anyapp.jobs import AsyncJobFactory, JobContext, JobRegistry
from anyapp.sync import Applications, DeleteResult, HealthStatus, LocalObservation, SyncResult
from anyapp.types.models import (
    AnyApplication,
    AnyApplicationSpec,
    AnyApplicationStatus,
    ApplicationId,
    ApplicationMatcher,
    ConditionStatus,
    HealthStatusCode,
    HelmSelector,
    Placement,
    PlacementStrategy,
    PlacementStrategyType,
    RecoverStrategy,
    SyncPolicy,
    ZoneStatus,
)
from anyapp.types.settings import Settings
from anyapp.utils.clock import FakeClock
from anyapp.utils.errors import StatusConflictError


class FakeEvents:
    """Records emitted events instead of posting them."""

    def __init__(self):
        self.emitted = []

    def emit(self, application, event):
        self.emitted.append((application.application_id, event))

    @property
    def messages(self) -> List[str]:
        return [event.msg for _, event in self.emitted]


class FakeApplicationStore:
    """In-memory application store with resource-version checks on status writes."""

    def __init__(self, *applications: AnyApplication):
        self.objects: Dict[ApplicationId, AnyApplication] = {}
        self.history: List[AnyApplicationStatus] = []
        self.writes = 0
        self.conflicts = 0
        self.update_error = None
        for application in applications:
            self.put(application)

    def put(self, application: AnyApplication) -> None:
        application = copy.deepcopy(application)
        application.resource_version = application.resource_version or "1"
        self.objects[application.application_id] = application

    def delete(self, application_id: ApplicationId) -> None:
        self.objects.pop(application_id, None)

    def current(self, application_id: ApplicationId) -> AnyApplication:
        return copy.deepcopy(self.objects[application_id])

    async def get(self, application_id: ApplicationId):
        await asyncio.sleep(0)
        application = self.objects.get(application_id)
        return copy.deepcopy(application) if application is not None else None

    async def update_status(self, application: AnyApplication) -> None:
        await asyncio.sleep(0)
        if self.update_error is not None:
            raise self.update_error
        stored = self.objects.get(application.application_id)
        if stored is None:
            raise ApiException(status=404, reason="Not Found")
        if stored.resource_version != application.resource_version:
            self.conflicts += 1
            raise StatusConflictError(f"{application.application_id} changed concurrently")
        stored.status = copy.deepcopy(application.status)
        stored.resource_version = str(int(stored.resource_version) + 1)
        self.writes += 1
        self.history.append(copy.deepcopy(application.status))


class FakeApplications(Applications):
    """Scriptable render/sync/health backend."""

    def __init__(self, present=False, deployed=False, health=None):
        self.present = present
        self.deployed = deployed
        self.health = health or HealthStatus(status=HealthStatusCode.HEALTHY)
        self.observations = []
        self.sync_error = None
        self.deploy_on_sync = True
        self.delete_removes = True
        self.delete_error = None
        self.on_sync = None
        self.sync_calls = 0
        self.delete_calls = 0
        self.rendered = []

    async def render(self, application, version):
        self.rendered.append(version)
        return [
            {
                "kind": "Deployment",
                "metadata": {"name": application.name, "namespace": application.namespace},
            }
        ]

    async def sync(self, application, resources):
        self.sync_calls += 1
        if self.on_sync is not None:
            self.on_sync()
        if self.sync_error is not None:
            raise self.sync_error
        if self.deploy_on_sync:
            self.present = True
            self.deployed = True
        return SyncResult(
            health=self.health,
            application_resources_deployed=self.deployed,
            application_resources_present=self.present,
            total=len(resources),
        )

    async def delete(self, application, resources):
        self.delete_calls += 1
        if self.delete_error is not None:
            raise self.delete_error
        if self.delete_removes:
            self.present = False
            self.deployed = False
        failed = len(resources) if self.present else 0
        return DeleteResult(
            total=len(resources),
            deleted=len(resources) - failed,
            delete_failed=failed,
            application_resources_present=self.present,
        )

    async def observe(self, application):
        if self.observations:
            item = self.observations.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        return LocalObservation(present=self.present, deployed=self.deployed, health=self.health)


def condition(type, zone_id, status, **kwargs) -> ConditionStatus:
    return ConditionStatus(type=type, zone_id=zone_id, status=status, **kwargs)


def build_status(state=None, owner=None, placements=(), conditions=()) -> AnyApplicationStatus:
    """Group `conditions` into zone statuses by zone id."""
    zones = {}
    for cond in conditions:
        zone = zones.setdefault(cond.zone_id, ZoneStatus(zone_id=cond.zone_id, zone_version=1))
        zone.conditions.append(cond)
    return AnyApplicationStatus(
        state=state,
        owner=owner,
        placements=[Placement(zone=z) for z in placements],
        zones=list(zones.values()),
    )


def build_application(
    name="app",
    namespace="default",
    status=None,
    strategy=PlacementStrategyType.LOCAL,
    tolerance=0,
    max_retries=None,
    sync_options=None,
    version="1.0.0",
) -> AnyApplication:
    return AnyApplication(
        name=name,
        namespace=namespace,
        uid=f"uid-{name}",
        resource_version="1",
        generation=1,
        spec=AnyApplicationSpec(
            application=ApplicationMatcher(
                helm=HelmSelector(repository="https://charts.example.com", chart=name, version=version)
            ),
            zones=1,
            placement_strategy=PlacementStrategy(strategy=strategy),
            recover_strategy=RecoverStrategy(tolerance=tolerance, max_retries=max_retries),
            sync_policy=SyncPolicy(sync_options=list(sync_options or [])),
        ),
        status=status or AnyApplicationStatus(),
    )


@pytest.fixture
def settings():
    return Settings(
        zone_id="zone-a",
        poll_operational_status_interval=0.01,
        poll_sync_status_interval=0.01,
        default_sync_timeout=10,
        default_undeploy_timeout=10,
        default_max_retries=3,
        status_update_max_retries=10,
        failing_condition_statuses={"Degraded", "Missing", "Failure"},
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def events():
    return FakeEvents()


@pytest.fixture
def applications():
    return FakeApplications()


@pytest.fixture
def make_application():
    return build_application


@pytest.fixture
def store():
    return FakeApplicationStore()


@pytest.fixture
def context(store, applications, events):
    return JobContext(store, applications, events)


@pytest.fixture
def registry(context):
    return JobRegistry(context)


@pytest.fixture
def factory(settings, clock):
    return AsyncJobFactory(settings, clock)


@pytest.fixture
def wait_until():
    async def _wait_until(predicate, timeout=2.0, interval=0.005):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not met in time")
            await asyncio.sleep(interval)

    return _wait_until
