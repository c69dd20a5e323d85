"""Pure operations over an application status record.

Every function here mutates or inspects an in-memory
:class:`~anyapp.types.models.AnyApplicationStatus` and performs no I/O.
Within a zone status at most one condition exists per (type, zone) pair.
"""

from typing import Iterable, List, Optional
from anyapp.types.models import (
    AnyApplicationStatus,
    ConditionStatus,
    ConditionType,
    ZoneStatus,
)
from anyapp.types.schemas import AnyApplicationStatusSchema
from anyapp.utils.helpers import canonicalize_dict


def find_condition(
    conditions: Iterable[ConditionStatus], type: ConditionType, zone_id: str
) -> Optional[ConditionStatus]:
    for cond in conditions:
        if cond.type == type and cond.zone_id == zone_id:
            return cond
    return None


def get_status_for(status: AnyApplicationStatus, zone_id: str) -> Optional[ZoneStatus]:
    for zone in status.zones:
        if zone.zone_id == zone_id:
            return zone
    return None


def get_or_create_status_for(status: AnyApplicationStatus, zone_id: str) -> ZoneStatus:
    zone = get_status_for(status, zone_id)
    if zone is None:
        zone = ZoneStatus(zone_id=zone_id, zone_version=0, conditions=[])
        status.zones.append(zone)
    return zone


def remove_zone(status: AnyApplicationStatus, zone_id: str) -> bool:
    before = len(status.zones)
    status.zones = [z for z in status.zones if z.zone_id != zone_id]
    return len(status.zones) != before


def get_condition(
    status: AnyApplicationStatus, type: ConditionType, zone_id: str
) -> Optional[ConditionStatus]:
    """Return the condition of `type` reported by `zone_id`, if any."""
    zone = get_status_for(status, zone_id)
    if zone is None:
        return None
    return find_condition(zone.conditions, type, zone_id)


def add_or_update(
    status: AnyApplicationStatus, condition: ConditionStatus, zone_id: str
) -> bool:
    """Insert `condition` into the zone's conditions or overwrite the existing one.

    The existing entry is only replaced when status, reason or message differ,
    so applying the same condition twice changes nothing the second time.

    Returns:
        True if the status record was modified.
    """
    zone = get_or_create_status_for(status, zone_id)
    existing = find_condition(zone.conditions, condition.type, condition.zone_id)
    if existing is None:
        zone.conditions.append(condition)
        return True
    if (
        existing.status != condition.status
        or existing.reason != condition.reason
        or existing.msg != condition.msg
    ):
        existing.status = condition.status
        existing.reason = condition.reason
        existing.msg = condition.msg
        existing.last_transition_time = condition.last_transition_time
        existing.retry_attempt = condition.retry_attempt
        return True
    return False


def remove(status: AnyApplicationStatus, type: ConditionType, zone_id: str) -> bool:
    zone = get_status_for(status, zone_id)
    if zone is None:
        return False
    kept = [c for c in zone.conditions if not (c.type == type and c.zone_id == zone_id)]
    if len(kept) == len(zone.conditions):
        return False
    zone.conditions = kept
    return True


def increment_zone_version(status: AnyApplicationStatus, zone_id: str) -> None:
    get_or_create_status_for(status, zone_id).zone_version += 1


def all_conditions(status: AnyApplicationStatus) -> List[ConditionStatus]:
    return [c for zone in status.zones for c in zone.conditions]


def format_status(status: AnyApplicationStatus) -> str:
    return canonicalize_dict(AnyApplicationStatusSchema().dump(status))
