from .conditions import (
    GlobalState,
    ConditionType,
    PlacementStatus,
    DeploymentStatus,
    UndeploymentStatus,
    RelocationStatus,
    OwnershipTransferStatus,
    HealthStatusCode,
    TERMINAL_HEALTH_CODES,
    ConditionStatus,
)
from .status import Placement, ZoneStatus, AnyApplicationStatus
from .application import (
    PlacementStrategyType,
    ApplicationId,
    HelmSelector,
    ResourceSelector,
    ApplicationMatcher,
    PlacementStrategy,
    RecoverStrategy,
    SyncPolicy,
    AnyApplicationSpec,
    AnyApplication,
)

__all__ = [
    "GlobalState",
    "ConditionType",
    "PlacementStatus",
    "DeploymentStatus",
    "UndeploymentStatus",
    "RelocationStatus",
    "OwnershipTransferStatus",
    "HealthStatusCode",
    "TERMINAL_HEALTH_CODES",
    "ConditionStatus",
    "Placement",
    "ZoneStatus",
    "AnyApplicationStatus",
    "PlacementStrategyType",
    "ApplicationId",
    "HelmSelector",
    "ResourceSelector",
    "ApplicationMatcher",
    "PlacementStrategy",
    "RecoverStrategy",
    "SyncPolicy",
    "AnyApplicationSpec",
    "AnyApplication",
]
