import asyncio
import logging
from typing import Optional
from anyapp.events import Events
from anyapp.jobs.base import JobContext
from anyapp.jobs.factory import AsyncJobFactory
from anyapp.jobs.registry import JobRegistry
from anyapp.reconciler import Reconciler, ReconcilerResult, apply_status_delta
from anyapp.state import GlobalApplication
from anyapp.status.updater import StatusUpdater
from anyapp.types.models import AnyApplication
from anyapp.types.settings import Settings
from anyapp.utils.clock import Clock
from anyapp.utils.errors import CleanupError


class AnyApplicationController:
    """Runs reconciliations and cleanups of AnyApplications for this zone."""

    def __init__(
        self,
        settings: Settings,
        store,
        applications,
        events: Events,
        clock: Clock = None,
        sensor=None,
        registry: JobRegistry = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.applications = applications
        self.events = events
        self.clock = clock or Clock()
        self.sensor = sensor
        self.registry = registry or JobRegistry(
            JobContext(store, applications, events), sensor=sensor
        )
        self.reconciler = Reconciler(self.registry)

    @property
    def zone_id(self) -> str:
        return self.settings.zone_id

    async def reconcile(
        self, application: AnyApplication, logger: logging.Logger = None
    ) -> Optional[ReconcilerResult]:
        """Derive and apply the next status and job for `application`.

        Returns:
            The reconciliation outcome, or None when this zone has nothing to do.
        """
        logger = logger or logging.getLogger(__name__)
        app_id = application.application_id

        observation = await self.applications.observe(application)
        factory = AsyncJobFactory(self.settings, self.clock, logger=logger, sensor=self.sensor)
        global_application = GlobalApplication(
            application, observation.present, self.settings, factory
        )
        if not global_application.is_relevant():
            logger.debug(f"Application {app_id} is not relevant to zone '{self.zone_id}'")
            return None

        result = self.reconciler.do_reconcile(global_application)

        if result.delta is not None:
            updater = StatusUpdater(
                self.store,
                app_id,
                self.zone_id,
                self.events,
                max_retries=self.settings.status_update_max_retries,
                sensor=self.sensor,
                logger=logger,
            )
            written = await updater.update_status(apply_status_delta(result.delta))
            if not written and result.delta.owner is not None:
                logger.info(
                    f"Zone '{self.zone_id}' did not claim {app_id}, skipping job dispatch"
                )
                return result
            if written and result.delta.state is not None and self.sensor:
                self.sensor.on_state_transition(
                    app_id.name,
                    app_id.namespace,
                    result.previous_state.value if result.previous_state else "",
                    result.delta.state.value,
                )

        if result.job_to_remove is not None:
            current = self.registry.get_current(app_id)
            if current is not None and current.job_type == result.job_to_remove:
                self.registry.stop(app_id)

        if result.job_to_add is not None:
            self.registry.stop(app_id)
            self.registry.execute(result.job_to_add)
            logger.info(
                f"Dispatched {result.job_to_add.job_type.value} job for {app_id} "
                f"in zone '{self.zone_id}'"
            )
        return result

    async def cleanup(self, application: AnyApplication, logger: logging.Logger = None) -> None:
        """Stop the application's job and remove its resources from this zone."""
        logger = logger or logging.getLogger(__name__)
        app_id = application.application_id
        worker = self.registry.stop(app_id)
        if worker is not None:
            await worker.join()
        results = await self.applications.cleanup(application)
        for r in results:
            logger.info(
                f"Removed version {r.version} of {app_id}: total={r.total}, "
                f"deleted={r.deleted}, delete_failed={r.delete_failed}"
            )
            if r.application_resources_present:
                raise CleanupError(
                    f"{r.delete_failed} resources of {app_id} could not be deleted"
                )

    async def shutdown(self) -> None:
        """Stop all jobs and wait until none of them can still write."""
        workers = self.registry.stop_all()
        await asyncio.gather(*(worker.join() for worker in workers))
