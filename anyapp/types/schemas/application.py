from marshmallow import fields
from anyapp.types.base import BaseSchema
from anyapp.types.models.application import (
    PlacementStrategyType,
    HelmSelector,
    ResourceSelector,
    ApplicationMatcher,
    PlacementStrategy,
    RecoverStrategy,
    SyncPolicy,
    AnyApplicationSpec,
)


class HelmSelectorSchema(BaseSchema):
    __model__ = HelmSelector

    repository = fields.Str(data_key="repository", required=True)
    chart = fields.Str(data_key="chart", required=True)
    version = fields.Str(data_key="version", load_default=None, allow_none=True)
    namespace = fields.Str(data_key="namespace", load_default=None, allow_none=True)
    values = fields.Str(data_key="values", load_default=None, allow_none=True)


class ResourceSelectorSchema(BaseSchema):
    __model__ = ResourceSelector

    match_labels = fields.Dict(
        keys=fields.Str(), values=fields.Str(), data_key="matchLabels", load_default=dict
    )


class ApplicationMatcherSchema(BaseSchema):
    __model__ = ApplicationMatcher

    helm = fields.Nested(HelmSelectorSchema(), data_key="helm", load_default=None)
    resource_selector = fields.Nested(
        ResourceSelectorSchema(), data_key="resourceSelector", load_default=None
    )


class PlacementStrategySchema(BaseSchema):
    __model__ = PlacementStrategy

    strategy = fields.Enum(
        PlacementStrategyType,
        by_value=True,
        data_key="strategy",
        load_default=PlacementStrategyType.LOCAL,
    )


class RecoverStrategySchema(BaseSchema):
    __model__ = RecoverStrategy

    tolerance = fields.Int(data_key="tolerance", load_default=0)
    max_retries = fields.Int(data_key="maxRetries", load_default=None, allow_none=True)


class SyncPolicySchema(BaseSchema):
    __model__ = SyncPolicy

    sync_options = fields.List(fields.Str(), data_key="syncOptions", load_default=list)


class AnyApplicationSpecSchema(BaseSchema):
    __model__ = AnyApplicationSpec

    application = fields.Nested(
        ApplicationMatcherSchema(), data_key="application", required=True
    )
    zones = fields.Int(data_key="zones", load_default=1)
    placement_strategy = fields.Nested(
        PlacementStrategySchema(),
        data_key="placementStrategy",
        load_default=lambda: PlacementStrategy(),
    )
    recover_strategy = fields.Nested(
        RecoverStrategySchema(),
        data_key="recoverStrategy",
        load_default=lambda: RecoverStrategy(),
    )
    sync_policy = fields.Nested(
        SyncPolicySchema(), data_key="syncPolicy", load_default=lambda: SyncPolicy()
    )
