import copy
import logging
from typing import Callable, Tuple
from anyapp.events import Event, Events, local_state_change
from anyapp.status import conditions
from anyapp.types.models import AnyApplicationStatus, ApplicationId, ConditionStatus, ConditionType
from anyapp.utils.errors import StatusConflictError, not_found_error

#: Mutation applied to a fresh copy of the status; returns (changed, event).
Mutation = Callable[[AnyApplicationStatus, str], Tuple[bool, Event]]


class StatusUpdater:
    """Commits status mutations under optimistic concurrency.

    Each attempt re-reads the application, applies the mutation to a copy of
    its status and writes it back conditioned on the resource version read.
    A lost race starts over from the read. Writes only happen when the
    mutation reports a change, and each accepted write bumps the zone version
    of the updating zone.
    """

    def __init__(
        self,
        store,
        application_id: ApplicationId,
        zone_id: str,
        events: Events,
        max_retries: int = 5,
        sensor=None,
        logger: logging.Logger = None,
    ) -> None:
        self.store = store
        self.application_id = application_id
        self.zone_id = zone_id
        self.events = events
        self.max_retries = max_retries
        self.sensor = sensor
        self.logger = logger or logging.getLogger(__name__)

    async def update_status(self, mutate: Mutation) -> bool:
        """Apply `mutate` to the stored status.

        Returns:
            True if a new status was written.

        Raises:
            StatusConflictError: every attempt lost a concurrency race.
        """
        for attempt in range(1, self.max_retries + 1):
            application = await self.store.get(self.application_id)
            if application is None:
                self.logger.info(
                    f"Application {self.application_id} is gone, skipping status update"
                )
                return False
            status = copy.deepcopy(application.status)
            changed, event = mutate(status, self.zone_id)
            if not changed:
                return False
            conditions.increment_zone_version(status, self.zone_id)
            application.status = status
            try:
                await self.store.update_status(application)
            except StatusConflictError:
                self.logger.debug(
                    f"Conflict updating status of {self.application_id} "
                    f"(attempt {attempt} of {self.max_retries}), retrying"
                )
                if self.sensor:
                    self.sensor.on_status_conflict(
                        self.application_id.name, self.application_id.namespace, self.zone_id
                    )
                continue
            except Exception as ex:
                if not_found_error(ex):
                    return False
                raise
            if self.sensor:
                self.sensor.on_status_update(
                    self.application_id.name, self.application_id.namespace, self.zone_id
                )
            if event is not None:
                self.events.emit(application, event)
            self.logger.info(
                f"Status of {self.application_id} updated by zone '{self.zone_id}': "
                f"{conditions.format_status(status)}"
            )
            return True
        raise StatusConflictError(
            f"Failed to update status of {self.application_id} "
            f"after {self.max_retries} attempts"
        )

    async def update_condition(
        self, event: Event, condition: ConditionStatus, *types_to_remove: ConditionType
    ) -> bool:
        """Upsert `condition` and drop this zone's conditions of `types_to_remove`."""

        def mutate(status: AnyApplicationStatus, zone_id: str):
            changed = conditions.add_or_update(status, condition, zone_id)
            for type_ in types_to_remove:
                if conditions.remove(status, type_, zone_id):
                    changed = True
            return changed, event

        return await self.update_status(mutate)


def condition_event(condition: ConditionStatus) -> Event:
    """Describe a zone-local condition change."""
    msg = f"{condition.type.value} state changed to '{condition.status}'."
    if condition.msg:
        msg = f"{msg} {condition.msg}"
    return local_state_change(msg)
