"""Resource type dependency graph.

Builds the graph of declared resource type dependencies and orders types for
deletion using Kahn's algorithm. The orchestrator itself does not need a
precomputed order; this resolver backs the optional fail-fast cycle check
and the tiered listing shown by the CLI.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .errors import DependencyCycleError
from .registry import Registry


class DependencyResolver:
    """Dependency graph of resource types.

    Attributes:
        graph: Maps each resource type to the resource types that must be
            drained before it
    """

    def __init__(self) -> None:
        self.graph: dict[str, list[str]] = {}

    @classmethod
    def from_registry(cls, registry: Registry) -> "DependencyResolver":
        """Build the graph from every registered type.

        Dependencies on unregistered names are dropped, since the orchestrator
        treats them as already satisfied.
        """
        resolver = cls()
        for resource_type in registry:
            resolver.graph.setdefault(resource_type.name, [])
            for dependency in sorted(resource_type.dependencies):
                if dependency in registry:
                    resolver.add_dependency(resource_type.name, dependency)
        return resolver

    def add_dependency(self, resource_type: str, depends_on: str) -> None:
        """Record that resource_type may only be processed once depends_on is empty."""
        dependencies = self.graph.setdefault(resource_type, [])
        if depends_on not in dependencies:
            dependencies.append(depends_on)
        self.graph.setdefault(depends_on, [])

    def compute_deletion_order(self, resource_types: Optional[Iterable[str]] = None) -> list[str]:
        """Order resource types so that every type follows its dependencies.

        Args:
            resource_types: Types to order (default: every type in the graph)

        Returns:
            Resource type names in deletion order

        Raises:
            DependencyCycleError: If the types contain a dependency cycle
        """
        tiers = self.get_deletion_tiers(resource_types)
        return [name for tier in sorted(tiers) for name in tiers[tier]]

    def get_deletion_tiers(self, resource_types: Optional[Iterable[str]] = None) -> dict[int, list[str]]:
        """Group resource types into tiers.

        Tier 1 has no dependencies; tier N depends only on tiers below N.

        Raises:
            DependencyCycleError: If the types contain a dependency cycle
        """
        names = set(self.graph if resource_types is None else resource_types)
        pending = {name: {dep for dep in self.graph.get(name, []) if dep in names} for name in names}

        tiers: dict[int, list[str]] = {}
        tier = 0
        while pending:
            ready = sorted(name for name, deps in pending.items() if not deps)
            if not ready:
                raise DependencyCycleError(self.find_cycle(pending) or sorted(pending))

            tier += 1
            tiers[tier] = ready
            for name in ready:
                del pending[name]
            for deps in pending.values():
                deps.difference_update(ready)

        return tiers

    def has_cycle(self) -> bool:
        return self.find_cycle() is not None

    def find_cycle(self, graph: Optional[dict[str, set[str]]] = None) -> Optional[list[str]]:
        """Return the members of one dependency cycle, or None if the graph is acyclic."""
        edges = graph if graph is not None else {name: set(deps) for name, deps in self.graph.items()}
        visiting: list[str] = []
        visited: set[str] = set()

        def visit(name: str) -> Optional[list[str]]:
            if name in visiting:
                return visiting[visiting.index(name):]
            if name in visited:
                return None
            visiting.append(name)
            for dependency in sorted(edges.get(name, ())):
                cycle = visit(dependency)
                if cycle:
                    return cycle
            visiting.pop()
            visited.add(name)
            return None

        for name in sorted(edges):
            cycle = visit(name)
            if cycle:
                return cycle
        return None
