import asyncio
import kopf
from logging import Logger
from collections import defaultdict
from typing import Dict
from kubernetes_asyncio.client import ApiException
from anyapp.controller import AnyApplicationController
from anyapp.resources.anyapplication import (
    GROUP_NAME,
    GROUP_VERSION,
    PLURAL_NAME,
    application_from_body,
)
from anyapp.types.models import ApplicationId
from anyapp.types.settings import RECONCILE_INTERVAL_SECONDS
from anyapp.utils.errors import CleanupError, StatusConflictError, convert_api_exception

RESOURCE = (GROUP_NAME, GROUP_VERSION, PLURAL_NAME)

# Serializes reconciliations of the same application across handlers and timers
reconciliation_locks: Dict[ApplicationId, asyncio.Lock] = defaultdict(asyncio.Lock)


def get_controller(memo: kopf.Memo) -> AnyApplicationController:
    return memo.controller


async def reconcile(body, memo: kopf.Memo, logger: Logger, trigger_source: str, **kwargs):
    """Reconcile the AnyApplication."""
    controller = get_controller(memo)
    sensor = getattr(memo, "sensor", None)
    application = application_from_body(body)
    app_id = application.application_id

    sensor_state = None
    if sensor:
        sensor_state = sensor.on_reconcile_start(
            app_id.name, app_id.namespace, application.generation, trigger_source
        )
    success = True
    error = None
    try:
        async with reconciliation_locks[app_id]:
            await controller.reconcile(application, logger=logger)
    except StatusConflictError as e:
        success = False
        error = e
        logger.warning(f"Status of {app_id} is contended, retrying later: {e}")
        raise kopf.TemporaryError(str(e), delay=5)
    except ApiException as e:
        success = False
        error = e
        logger.error(f"Kubernetes API error during reconciliation of {app_id}: {e.reason}")
        convert_api_exception(e)
    except Exception as e:
        success = False
        error = e
        logger.error(f"Unexpected error during reconciliation of {app_id}: {e}")
        logger.exception(e)
        raise
    finally:
        if sensor:
            sensor.on_reconcile_complete(
                app_id.name, app_id.namespace, sensor_state, success, error
            )


@kopf.on.resume(*RESOURCE)
@kopf.on.create(*RESOURCE)
async def on_create(body, memo: kopf.Memo, logger: Logger, **kwargs):
    """Take part in the lifecycle of a new or resumed AnyApplication."""
    await reconcile(body, memo, logger, trigger_source="create")


@kopf.on.update(*RESOURCE, field="spec")
async def on_spec_update(body, memo: kopf.Memo, logger: Logger, **kwargs):
    await reconcile(body, memo, logger, trigger_source="update")


@kopf.on.event(*RESOURCE)
async def on_status_event(event, body, memo: kopf.Memo, logger: Logger, **kwargs):
    """React to status changes made by jobs and by other zones."""
    if event.get("type") != "MODIFIED":
        return
    if body.get("metadata", {}).get("deletionTimestamp"):
        return
    try:
        await reconcile(body, memo, logger, trigger_source="event")
    except (kopf.TemporaryError, kopf.PermanentError) as e:
        # Event handlers are not retried; the timer picks the application up again.
        logger.warning(f"Reconciliation after status change failed: {e}")


@kopf.timer(*RESOURCE, interval=RECONCILE_INTERVAL_SECONDS, initial_delay=RECONCILE_INTERVAL_SECONDS)
async def periodic_reconcile(body, memo: kopf.Memo, logger: Logger, **kwargs):
    await reconcile(body, memo, logger, trigger_source="timer")


@kopf.on.delete(*RESOURCE)
async def on_delete(body, memo: kopf.Memo, logger: Logger, **kwargs):
    """Stop the application's job and remove its resources from this zone."""
    controller = get_controller(memo)
    application = application_from_body(body)
    app_id = application.application_id
    try:
        async with reconciliation_locks[app_id]:
            await controller.cleanup(application, logger=logger)
    except CleanupError as e:
        raise kopf.TemporaryError(str(e), delay=10)
    reconciliation_locks.pop(app_id, None)
