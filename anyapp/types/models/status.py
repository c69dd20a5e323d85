from typing import List, Optional
from anyapp.types.base import BaseModel
from anyapp.types.models.conditions import ConditionStatus, GlobalState


class Placement(BaseModel):
    """Zone chosen to host the application."""

    zone: str
    node_affinity: Optional[str] = None


class ZoneStatus(BaseModel):
    """Conditions reported by a single zone."""

    zone_id: str
    zone_version: int = 0
    conditions: List[ConditionStatus] = []


class AnyApplicationStatus(BaseModel):
    """Shared, versioned status record of an AnyApplication."""

    state: Optional[GlobalState] = None
    owner: Optional[str] = None
    placements: List[Placement] = []
    zones: List[ZoneStatus] = []

    def placement_zones(self) -> List[str]:
        return [p.zone for p in self.placements]

    def is_placement_target(self, zone_id: str) -> bool:
        return zone_id in self.placement_zones()
