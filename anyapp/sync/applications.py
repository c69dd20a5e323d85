"""Contract of the render/sync/health engine.

The operator never renders charts or talks to workload APIs itself; it goes
through an :class:`Applications` backend configured with
``APPLICATIONS_BACKEND=package.module:ClassName``.
"""

import abc
import importlib
from typing import Any, Dict, List, Optional
from anyapp.sync.types import DeleteResult, LocalObservation, SyncResult
from anyapp.types.models import AnyApplication

Manifest = Dict[str, Any]


class Applications(abc.ABC):
    """Zone-local view of application resources."""

    @abc.abstractmethod
    async def render(self, application: AnyApplication, version: Optional[str]) -> List[Manifest]:
        """Render the manifests of `version` (the desired version when None)."""

    @abc.abstractmethod
    async def sync(self, application: AnyApplication, resources: List[Manifest]) -> SyncResult:
        """Apply and prune `resources` in this zone."""

    @abc.abstractmethod
    async def delete(self, application: AnyApplication, resources: List[Manifest]) -> DeleteResult:
        """Delete `resources` from this zone."""

    @abc.abstractmethod
    async def observe(self, application: AnyApplication) -> LocalObservation:
        """Report presence and aggregated health of the resources in this zone."""

    async def present_versions(self, application: AnyApplication) -> List[Optional[str]]:
        """Versions with resources currently present in this zone."""
        observation = await self.observe(application)
        return [application.target_version] if observation.present else []

    async def sync_version(self, application: AnyApplication, version: Optional[str] = None) -> SyncResult:
        resources = await self.render(application, version or application.target_version)
        return await self.sync(application, resources)

    async def cleanup(self, application: AnyApplication) -> List[DeleteResult]:
        """Delete every present version of the application."""
        results = []
        for version in await self.present_versions(application):
            resources = await self.render(application, version)
            result = await self.delete(application, resources)
            result.version = version
            results.append(result)
        return results


def load_applications_backend(path: str, **kwargs) -> Applications:
    """Instantiate the backend named by `path` (``module:ClassName``)."""
    if not path:
        raise ValueError("APPLICATIONS_BACKEND is not configured")
    module_name, _, class_name = path.partition(":")
    if not class_name:
        module_name, _, class_name = path.rpartition(".")
    module = importlib.import_module(module_name)
    backend_cls = getattr(module, class_name)
    backend = backend_cls(**kwargs)
    if not isinstance(backend, Applications):
        raise TypeError(f"{path} is not an Applications backend")
    return backend
