import os
from typing import Any, FrozenSet

_TRUE, _FALSE = {"True", "true", "yes", "1"}, {"False", "false", "no", "0"}


def _getenv(name: str, *default: Any) -> Any:
    try:
        v = os.environ[name]
        if v in _TRUE:
            return True
        elif v in _FALSE:
            return False
        else:
            return v
    except KeyError:
        pass
    if default:
        return default[0]
    raise KeyError(name)


def _split(value: str) -> FrozenSet[str]:
    return frozenset(v.strip() for v in value.split(",") if v.strip())


# ------------------------------------------------
# ---- Defaults and environment variables ----
# ------------------------------------------------

#: Identifier of the zone this operator instance runs in
ZONE_ID = _getenv("ZONE_ID", "default")

#: Seconds between health polls of the local operation job
POLL_OPERATIONAL_STATUS_INTERVAL_SECONDS = float(
    _getenv("POLL_OPERATIONAL_STATUS_INTERVAL_SECONDS", 5)
)

#: Seconds between sync attempts of the deploy and undeploy jobs
POLL_SYNC_STATUS_INTERVAL_SECONDS = float(
    _getenv("POLL_SYNC_STATUS_INTERVAL_SECONDS", 5)
)

#: Seconds a deployment attempt may take before it is retried or failed
DEFAULT_SYNC_TIMEOUT_SECONDS = float(_getenv("DEFAULT_SYNC_TIMEOUT_SECONDS", 300))

#: Seconds an undeployment attempt may take before it is retried or failed
DEFAULT_UNDEPLOY_TIMEOUT_SECONDS = float(
    _getenv("DEFAULT_UNDEPLOY_TIMEOUT_SECONDS", 300)
)

#: Attempts granted to deploy/undeploy jobs when the application sets none
DEFAULT_MAX_RETRIES = int(_getenv("DEFAULT_MAX_RETRIES", 3))

#: Read-mutate-write attempts of a status update before giving up on conflicts
STATUS_UPDATE_MAX_RETRIES = int(_getenv("STATUS_UPDATE_MAX_RETRIES", 5))

#: Condition statuses counted by the global failure rule
FAILING_CONDITION_STATUSES = _split(
    _getenv("FAILING_CONDITION_STATUSES", "Degraded,Missing,Failure")
)

#: Seconds between periodic reconciliations of every application
RECONCILE_INTERVAL_SECONDS = float(_getenv("RECONCILE_INTERVAL_SECONDS", 30))

#: Dotted path (module:Class) of the render/sync/health backend
APPLICATIONS_BACKEND = _getenv("APPLICATIONS_BACKEND", None)


class Settings:
    """Operator settings"""

    zone_id: str = ZONE_ID
    poll_operational_status_interval: float = POLL_OPERATIONAL_STATUS_INTERVAL_SECONDS
    poll_sync_status_interval: float = POLL_SYNC_STATUS_INTERVAL_SECONDS
    default_sync_timeout: float = DEFAULT_SYNC_TIMEOUT_SECONDS
    default_undeploy_timeout: float = DEFAULT_UNDEPLOY_TIMEOUT_SECONDS
    default_max_retries: int = DEFAULT_MAX_RETRIES
    status_update_max_retries: int = STATUS_UPDATE_MAX_RETRIES
    failing_condition_statuses: FrozenSet[str] = FAILING_CONDITION_STATUSES
    reconcile_interval: float = RECONCILE_INTERVAL_SECONDS
    applications_backend: str = APPLICATIONS_BACKEND

    def __init__(
        self,
        *args,
        zone_id: str = None,
        poll_operational_status_interval: float = None,
        poll_sync_status_interval: float = None,
        default_sync_timeout: float = None,
        default_undeploy_timeout: float = None,
        default_max_retries: int = None,
        status_update_max_retries: int = None,
        failing_condition_statuses: FrozenSet[str] = None,
        reconcile_interval: float = None,
        applications_backend: str = None,
        **kwargs,
    ):
        if zone_id is not None:
            self.zone_id = zone_id

        if poll_operational_status_interval is not None:
            self.poll_operational_status_interval = poll_operational_status_interval

        if poll_sync_status_interval is not None:
            self.poll_sync_status_interval = poll_sync_status_interval

        if default_sync_timeout is not None:
            self.default_sync_timeout = default_sync_timeout

        if default_undeploy_timeout is not None:
            self.default_undeploy_timeout = default_undeploy_timeout

        if default_max_retries is not None:
            self.default_max_retries = default_max_retries

        if status_update_max_retries is not None:
            self.status_update_max_retries = status_update_max_retries

        if failing_condition_statuses is not None:
            self.failing_condition_statuses = frozenset(failing_condition_statuses)

        if reconcile_interval is not None:
            self.reconcile_interval = reconcile_interval

        if applications_backend is not None:
            self.applications_backend = applications_backend
