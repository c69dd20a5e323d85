from typing import List, Optional
from anyapp.types.base import BaseModel
from anyapp.types.models import HealthStatusCode


class HealthStatus(BaseModel):
    """Aggregated health of the application in this zone."""

    status: HealthStatusCode = HealthStatusCode.UNKNOWN
    message: str = ""


class ResourceResult(BaseModel):
    """Outcome of applying or deleting one manifest."""

    kind: str
    name: str
    namespace: Optional[str] = None
    status: str = ""
    message: str = ""


class SyncResult(BaseModel):
    health: HealthStatus
    resources: List[ResourceResult] = []
    application_resources_deployed: bool = False
    application_resources_present: bool = False
    total: int = 0
    created: int = 0
    updated: int = 0
    failed: int = 0
    skipped: int = 0


class DeleteResult(BaseModel):
    version: Optional[str] = None
    total: int = 0
    deleted: int = 0
    delete_failed: int = 0
    application_resources_present: bool = False


class LocalObservation(BaseModel):
    """What this zone sees of the application."""

    present: bool = False
    deployed: bool = False
    health: HealthStatus = None
