"""Registry of resource types."""

from __future__ import annotations

from typing import Iterable, Iterator, Optional

from ..resources.base import ResourceType


class Registry:
    """Collection of resource types keyed by name.

    Built once before a run and read-only afterwards. Iteration is sorted by
    name so that orchestrator passes are deterministic regardless of
    registration order.
    """

    def __init__(self, resource_types: Optional[Iterable[ResourceType]] = None) -> None:
        self._types: dict[str, ResourceType] = {}
        for resource_type in resource_types or []:
            self.register(resource_type)

    def register(self, resource_type: ResourceType) -> None:
        """Add a resource type.

        Raises:
            ValueError: If a resource type with the same name is already registered
        """
        name = resource_type.name
        if name in self._types:
            raise ValueError(f"Resource type '{name}' is already registered")
        self._types[name] = resource_type

    def get(self, name: str) -> Optional[ResourceType]:
        return self._types.get(name)

    @property
    def names(self) -> list[str]:
        return sorted(self._types)

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __iter__(self) -> Iterator[ResourceType]:
        return iter([self._types[name] for name in self.names])

    def __len__(self) -> int:
        return len(self._types)
