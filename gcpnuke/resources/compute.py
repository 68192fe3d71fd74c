"""Compute Engine resource types."""

from __future__ import annotations

from typing import Any

from ..gcp.compute import ComputeResourceType
from .base import LocationScope


class ComputeRegionAutoScalers(ComputeResourceType):
    """Regional autoscalers (regionAutoscalers). They have no dependencies."""

    scope = LocationScope.REGION
    collection = "regionAutoscalers"
    id_param = "autoscaler"


class ComputeInstanceGroupsRegion(ComputeResourceType):
    """Regional managed instance groups.

    An autoscaler pins its target group, so regional autoscalers must be gone
    before the groups can be deleted.
    """

    scope = LocationScope.REGION
    collection = "regionInstanceGroupManagers"
    id_param = "instanceGroupManager"

    @property
    def dependencies(self) -> frozenset[str]:
        return frozenset({"ComputeRegionAutoScalers"})


class ComputeZoneAutoScalers(ComputeResourceType):
    """Zonal autoscalers (autoscalers). They have no dependencies."""

    scope = LocationScope.ZONE
    collection = "autoscalers"
    id_param = "autoscaler"


class ComputeInstanceGroupsZone(ComputeResourceType):
    """Zonal managed instance groups (instanceGroupManagers). An attached autoscaler blocks the delete."""

    scope = LocationScope.ZONE
    collection = "instanceGroupManagers"
    id_param = "instanceGroupManager"

    @property
    def dependencies(self) -> frozenset[str]:
        return frozenset({"ComputeZoneAutoScalers"})


class ComputeInstances(ComputeResourceType):
    """VM instances. Managed groups recreate their members, so groups go first."""

    scope = LocationScope.ZONE
    collection = "instances"
    id_param = "instance"

    @property
    def dependencies(self) -> frozenset[str]:
        return frozenset({"ComputeInstanceGroupsRegion", "ComputeInstanceGroupsZone"})


class ComputeDisks(ComputeResourceType):
    """Persistent disks (disks). A disk still attached to a VM cannot be deleted."""

    scope = LocationScope.ZONE
    collection = "disks"
    id_param = "disk"

    @property
    def dependencies(self) -> frozenset[str]:
        return frozenset({"ComputeInstances"})


class ComputeInstanceTemplates(ComputeResourceType):
    """Global instance templates (instanceTemplates). Templates in use by a managed group cannot be deleted."""

    scope = LocationScope.GLOBAL
    collection = "instanceTemplates"
    id_param = "instanceTemplate"

    @property
    def dependencies(self) -> frozenset[str]:
        return frozenset({"ComputeInstanceGroupsRegion", "ComputeInstanceGroupsZone"})


COMPUTE_RESOURCE_TYPES = (
    ComputeRegionAutoScalers,
    ComputeInstanceGroupsRegion,
    ComputeZoneAutoScalers,
    ComputeInstanceGroupsZone,
    ComputeInstances,
    ComputeDisks,
    ComputeInstanceTemplates,
)


def default_resource_types(service: Any) -> list[ComputeResourceType]:
    """Instantiate every built-in resource type against a Compute Engine client."""
    return [resource_type(service) for resource_type in COMPUTE_RESOURCE_TYPES]
