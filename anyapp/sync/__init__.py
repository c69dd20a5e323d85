from .types import (
    HealthStatus,
    ResourceResult,
    SyncResult,
    DeleteResult,
    LocalObservation,
)
from .applications import Applications, load_applications_backend

__all__ = [
    "HealthStatus",
    "ResourceResult",
    "SyncResult",
    "DeleteResult",
    "LocalObservation",
    "Applications",
    "load_applications_backend",
]
