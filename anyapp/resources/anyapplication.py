import logging
from typing import Any, Dict, Optional
from kubernetes_asyncio.client import ApiClient, ApiException, CustomObjectsApi
from anyapp.types.models import AnyApplication, ApplicationId
from anyapp.types.schemas import AnyApplicationSpecSchema, AnyApplicationStatusSchema
from anyapp.utils.errors import StatusConflictError, conflict_error

GROUP_NAME = "anyapp.io"
GROUP_VERSION = "v1"
PLURAL_NAME = "anyapplications"


def application_from_body(body: Dict[str, Any]) -> AnyApplication:
    """Build an application model from a custom object body."""
    meta = body.get("metadata") or {}
    return AnyApplication(
        name=meta.get("name"),
        namespace=meta.get("namespace"),
        uid=meta.get("uid"),
        resource_version=meta.get("resourceVersion"),
        generation=meta.get("generation", 0),
        spec=AnyApplicationSpecSchema().load(dict(body.get("spec") or {})),
        status=AnyApplicationStatusSchema().load(dict(body.get("status") or {})),
    )


class ApplicationStore:
    """Reads AnyApplications and writes their status subresource."""

    shared_api_client: ApiClient = None

    _api_client: ApiClient = None
    _custom_objects_api: CustomObjectsApi = None

    def __init__(self, logger: logging.Logger = None) -> None:
        self.logger = logger or logging.getLogger(__name__)

    @property
    def api_client(self) -> ApiClient:
        if self._api_client is None:
            if self.shared_api_client is not None:
                self._api_client = self.shared_api_client
            else:
                self._api_client = ApiClient()
        return self._api_client

    @property
    def custom_objects_api(self) -> CustomObjectsApi:
        if self._custom_objects_api is None:
            self._custom_objects_api = CustomObjectsApi(self.api_client)
        return self._custom_objects_api

    async def get(self, application_id: ApplicationId) -> Optional[AnyApplication]:
        """Fetch the latest application, or None if it no longer exists."""
        try:
            body = await self.custom_objects_api.get_namespaced_custom_object(
                group=GROUP_NAME,
                version=GROUP_VERSION,
                namespace=application_id.namespace,
                plural=PLURAL_NAME,
                name=application_id.name,
            )
        except ApiException as ex:
            if ex.status == 404:
                return None
            raise
        return application_from_body(body)

    async def update_status(self, application: AnyApplication) -> None:
        """Write the status conditionally on the application's resource version.

        Raises:
            StatusConflictError: the stored resource version moved on.
        """
        body = {
            "apiVersion": f"{GROUP_NAME}/{GROUP_VERSION}",
            "kind": "AnyApplication",
            "metadata": {
                "name": application.name,
                "namespace": application.namespace,
                "resourceVersion": application.resource_version,
            },
            "status": AnyApplicationStatusSchema().dump(application.status),
        }
        try:
            await self.custom_objects_api.replace_namespaced_custom_object_status(
                group=GROUP_NAME,
                version=GROUP_VERSION,
                namespace=application.namespace,
                plural=PLURAL_NAME,
                name=application.name,
                body=body,
            )
        except ApiException as ex:
            if conflict_error(ex):
                raise StatusConflictError(
                    f"Status of {application.application_id} changed concurrently"
                ) from ex
            raise
