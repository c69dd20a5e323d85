from enum import Enum
from anyapp.types.base import BaseModel


class GlobalState(Enum):
    UNKNOWN = "Unknown"
    NEW = "New"
    PLACEMENT = "Placement"
    OPERATIONAL = "Operational"
    RELOCATION = "Relocation"
    FAILURE = "Failure"
    OWNERSHIP_TRANSFER = "OwnershipTransfer"


class ConditionType(Enum):
    LOCAL = "Local"
    PLACEMENT = "Placement"
    DEPLOYMENT = "Deployment"
    UNDEPLOYMENT = "Undeployment"
    RELOCATION = "Relocation"
    OWNERSHIP_TRANSFER = "OwnershipTransfer"


class PlacementStatus(Enum):
    IN_PROGRESS = "InProgress"
    DONE = "Done"
    FAILURE = "Failure"


class DeploymentStatus(Enum):
    PULL = "Pull"
    DONE = "Done"
    FAILURE = "Failure"


class UndeploymentStatus(Enum):
    UNDEPLOY = "Undeploy"
    DONE = "Done"
    FAILURE = "Failure"


class RelocationStatus(Enum):
    PULL = "Pull"
    UNDEPLOY = "Undeploy"
    DONE = "Done"
    FAILURE = "Failure"


class OwnershipTransferStatus(Enum):
    PULLING = "Pulling"
    SUCCESS = "Success"
    FAILURE = "Failure"


class HealthStatusCode(Enum):
    """Aggregated health of the zone-local application resources."""

    HEALTHY = "Healthy"
    PROGRESSING = "Progressing"
    SUSPENDED = "Suspended"
    DEGRADED = "Degraded"
    MISSING = "Missing"
    UNKNOWN = "Unknown"


#: Health codes after which the local operation job stops polling.
TERMINAL_HEALTH_CODES = frozenset(
    [HealthStatusCode.DEGRADED, HealthStatusCode.UNKNOWN, HealthStatusCode.MISSING]
)


class ConditionStatus(BaseModel):
    """Observation recorded by a zone for one condition type.

    `status` holds the value of the vocabulary enum matching `type`.
    """

    type: ConditionType
    zone_id: str
    status: str
    last_transition_time: str = None
    reason: str = ""
    msg: str = ""
    retry_attempt: int = 0
