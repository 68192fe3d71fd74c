"""Compute Engine implementation of the resource type provider calls.

Every compute collection follows the same shape: a paged list per region or
zone, a delete call that returns an operation, and a per-scope operations
collection to poll. Concrete resource types only declare which collection,
scope and id parameter they use.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator

from googleapiclient.errors import HttpError

from ..models.resource_instance import ResourceInstance
from ..resources.base import LocationScope, ResourceType
from ..teardown.errors import OperationFailedError

logger = logging.getLogger(__name__)

OPERATION_COLLECTIONS = {
    LocationScope.REGION: "regionOperations",
    LocationScope.ZONE: "zoneOperations",
    LocationScope.GLOBAL: "globalOperations",
}


class ComputeResourceType(ResourceType):
    """Resource type backed by a Compute Engine v1 collection.

    Attributes:
        collection: Discovery collection name (e.g., "regionInstanceGroupManagers")
        id_param: Keyword naming the resource in delete calls (e.g., "instanceGroupManager")
        service: Compute Engine discovery client
    """

    collection: str = ""
    id_param: str = ""

    def __init__(self, service: Any) -> None:
        """Initialize with a Compute Engine client.

        Args:
            service: Client returned by googleapiclient.discovery.build("compute", "v1")
        """
        super().__init__()
        self.service = service

    @property
    def name(self) -> str:
        return type(self).__name__

    def _location_kwargs(self, location: str) -> dict[str, str]:
        if self.scope == LocationScope.REGION:
            return {"region": location}
        if self.scope == LocationScope.ZONE:
            return {"zone": location}
        return {}

    def _identifier(self, location: str, name: str) -> str:
        """Names are only unique per region or zone, so scoped identifiers carry the location."""
        if self.scope == LocationScope.GLOBAL:
            return name
        return f"{location}/{name}"

    def _resources(self) -> Any:
        return getattr(self.service, self.collection)()

    def _list_location(self, location: str) -> Iterator[ResourceInstance]:
        config = self._require_config()
        resources = self._resources()
        request = resources.list(project=config.project, **self._location_kwargs(location))

        while request is not None:
            response = request.execute()
            for item in response.get("items", []):
                yield ResourceInstance(
                    identifier=self._identifier(location, item["name"]),
                    location=location,
                    metadata={"name": item["name"], "selfLink": item.get("selfLink")},
                )
            request = resources.list_next(previous_request=request, previous_response=response)

    def _submit_delete(self, instance: ResourceInstance) -> str:
        config = self._require_config()
        params = {self.id_param: instance.metadata.get("name", instance.identifier)}
        operation = (
            self._resources()
            .delete(project=config.project, **self._location_kwargs(instance.location), **params)
            .execute()
        )
        return operation["name"]

    def _operation_status(self, instance: ResourceInstance, handle: str) -> str:
        config = self._require_config()
        operations = getattr(self.service, OPERATION_COLLECTIONS[self.scope])()
        operation = operations.get(
            project=config.project,
            operation=handle,
            **self._location_kwargs(instance.location),
        ).execute()

        status = operation.get("status", "")
        if status == self.done_status and operation.get("error"):
            raise OperationFailedError(handle, operation["error"].get("errors", []))
        return status

    def _is_not_found(self, error: BaseException) -> bool:
        return isinstance(error, HttpError) and getattr(error.resp, "status", None) == 404
