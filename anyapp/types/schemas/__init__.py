from .status import (
    ConditionStatusSchema,
    PlacementSchema,
    ZoneStatusSchema,
    AnyApplicationStatusSchema,
)
from .application import (
    HelmSelectorSchema,
    ResourceSelectorSchema,
    ApplicationMatcherSchema,
    PlacementStrategySchema,
    RecoverStrategySchema,
    SyncPolicySchema,
    AnyApplicationSpecSchema,
)

__all__ = [
    "ConditionStatusSchema",
    "PlacementSchema",
    "ZoneStatusSchema",
    "AnyApplicationStatusSchema",
    "HelmSelectorSchema",
    "ResourceSelectorSchema",
    "ApplicationMatcherSchema",
    "PlacementStrategySchema",
    "RecoverStrategySchema",
    "SyncPolicySchema",
    "AnyApplicationSpecSchema",
]
