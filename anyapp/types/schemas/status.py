from marshmallow import fields, pre_load
from anyapp.types.base import BaseSchema
from anyapp.types.models.conditions import ConditionStatus, ConditionType, GlobalState
from anyapp.types.models.status import Placement, ZoneStatus, AnyApplicationStatus


class ConditionStatusSchema(BaseSchema):
    __model__ = ConditionStatus

    type = fields.Enum(ConditionType, by_value=True, data_key="type", required=True)
    zone_id = fields.Str(data_key="zoneId", required=True)
    status = fields.Str(data_key="status", required=True)
    last_transition_time = fields.Str(
        data_key="lastTransitionTime", load_default=None, allow_none=True
    )
    reason = fields.Str(data_key="reason", load_default="")
    msg = fields.Str(data_key="msg", load_default="")
    retry_attempt = fields.Int(data_key="retryAttempt", load_default=0)


class PlacementSchema(BaseSchema):
    __model__ = Placement

    zone = fields.Str(data_key="zone", required=True)
    node_affinity = fields.Str(data_key="nodeAffinity", load_default=None, allow_none=True)


class ZoneStatusSchema(BaseSchema):
    __model__ = ZoneStatus

    zone_id = fields.Str(data_key="zoneId", required=True)
    zone_version = fields.Int(data_key="version", load_default=0)
    conditions = fields.List(
        fields.Nested(ConditionStatusSchema()), data_key="conditions", load_default=list
    )


class AnyApplicationStatusSchema(BaseSchema):
    __model__ = AnyApplicationStatus

    state = fields.Enum(
        GlobalState, by_value=True, data_key="state", load_default=None, allow_none=True
    )
    owner = fields.Str(data_key="owner", load_default=None, allow_none=True)
    placements = fields.List(
        fields.Nested(PlacementSchema()), data_key="placements", load_default=list
    )
    zones = fields.List(
        fields.Nested(ZoneStatusSchema()), data_key="zones", load_default=list
    )

    @pre_load
    def drop_empty_values(self, data, **kwargs):
        """Kubernetes may hand back empty strings and nulls for unset fields."""
        return {k: v for k, v in (data or {}).items() if v not in ("", None)}
