"""Thread-safe instance cache owned by each resource type."""

from __future__ import annotations

import threading
from typing import Iterable, Optional

from ..models.resource_instance import ResourceInstance


class InstanceCache:
    """Mapping of identifier to ResourceInstance.

    Membership means the instance is believed to still exist remotely.
    Deletion threads remove entries while the orchestrator reads the cache,
    so every access goes through a lock and readers get copies.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._instances: dict[str, ResourceInstance] = {}

    def store(self, instance: ResourceInstance) -> None:
        with self._lock:
            self._instances[instance.identifier] = instance

    def delete(self, identifier: str) -> None:
        with self._lock:
            self._instances.pop(identifier, None)

    def get(self, identifier: str) -> Optional[ResourceInstance]:
        with self._lock:
            return self._instances.get(identifier)

    def replace(self, instances: Iterable[ResourceInstance]) -> None:
        """Swap the whole cache contents in one step."""
        fresh = {instance.identifier: instance for instance in instances}
        with self._lock:
            self._instances = fresh

    def clear(self) -> None:
        with self._lock:
            self._instances = {}

    def sorted_keys(self) -> list[str]:
        with self._lock:
            return sorted(self._instances)

    def snapshot(self) -> list[ResourceInstance]:
        """Return the cached instances ordered by identifier."""
        with self._lock:
            return [self._instances[key] for key in sorted(self._instances)]

    def __contains__(self, identifier: object) -> bool:
        with self._lock:
            return identifier in self._instances

    def __len__(self) -> int:
        with self._lock:
            return len(self._instances)
