from enum import Enum
from typing import Dict, List, NamedTuple, Optional
from anyapp.types.base import BaseModel
from anyapp.types.models.status import AnyApplicationStatus


class PlacementStrategyType(Enum):
    LOCAL = "Local"
    GLOBAL = "Global"


class ApplicationId(NamedTuple):
    name: str
    namespace: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


class HelmSelector(BaseModel):
    """Helm chart that renders the application resources."""

    repository: str
    chart: str
    version: Optional[str] = None
    namespace: Optional[str] = None
    values: Optional[str] = None


class ResourceSelector(BaseModel):
    """Label selector matching already-present application resources."""

    match_labels: Dict[str, str] = {}


class ApplicationMatcher(BaseModel):
    helm: Optional[HelmSelector] = None
    resource_selector: Optional[ResourceSelector] = None


class PlacementStrategy(BaseModel):
    strategy: PlacementStrategyType = PlacementStrategyType.LOCAL


class RecoverStrategy(BaseModel):
    tolerance: int = 0
    max_retries: Optional[int] = None


class SyncPolicy(BaseModel):
    sync_options: List[str] = []

    def option(self, key: str) -> Optional[str]:
        """Return the value of a `key=value` sync option."""
        for opt in self.sync_options:
            name, sep, value = opt.partition("=")
            if sep and name.strip() == key:
                return value.strip()
        return None


class AnyApplicationSpec(BaseModel):
    """AnyApplication desired state."""

    application: ApplicationMatcher
    zones: int = 1
    placement_strategy: PlacementStrategy
    recover_strategy: RecoverStrategy
    sync_policy: SyncPolicy


class AnyApplication(BaseModel):
    """An AnyApplication resource as read from the store."""

    name: str
    namespace: str
    uid: Optional[str] = None
    resource_version: Optional[str] = None
    generation: int = 0
    spec: AnyApplicationSpec
    status: AnyApplicationStatus

    @property
    def application_id(self) -> ApplicationId:
        return ApplicationId(self.name, self.namespace)

    @property
    def target_version(self) -> Optional[str]:
        helm = self.spec.application.helm
        return helm.version if helm is not None else None
