"""Test fixtures for in-memory resource types and configurations."""

from __future__ import annotations

import threading
from typing import Callable, Dict, Iterable, List, Optional, Union
from unittest.mock import Mock

from gcpnuke.models.nuke_config import NukeConfig
from gcpnuke.models.resource_instance import ResourceInstance
from gcpnuke.resources.base import LocationScope, ResourceType

StatusStep = Union[str, Exception]


def create_mock_event() -> Mock:
    """Create a cancellation event that never fires and never blocks.

    Returns:
        Mock standing in for threading.Event
    """
    event = Mock(spec=threading.Event)
    event.is_set.return_value = False
    event.wait.return_value = False
    return event


def create_config(**overrides) -> NukeConfig:
    """Create a NukeConfig for tests.

    Defaults to one region "r1", one zone "z1", execute mode, a 1 second
    poll interval, a 3 second timeout and a non-blocking cancellation event.
    """
    values = {
        "project": "test-project",
        "regions": ["r1"],
        "zones": ["z1"],
        "poll_interval": 1,
        "timeout": 3,
        "cancel_event": create_mock_event(),
        "dry_run": False,
        "max_stalled_passes": 1,
    }
    values.update(overrides)
    return NukeConfig(**values)


class FakeResourceType(ResourceType):
    """Resource type backed by an in-memory "remote" inventory.

    Attributes:
        remote: Identifier to location of resources that exist remotely
        status_steps: Per-identifier statuses (or exceptions) returned by
            successive status polls; an identifier without steps completes
            on the first poll
        submit_errors: Per-identifier exceptions raised by the delete call
        list_error: Exception raised by every listing call (optional)
        on_remove: Callback invoked at the start of every remove() (optional)
        remove_calls: Number of remove() invocations
    """

    scope = LocationScope.REGION

    def __init__(
        self,
        name: str,
        instances: Optional[Dict[str, str]] = None,
        dependencies: Iterable[str] = (),
    ) -> None:
        super().__init__()
        self._name = name
        self._dependencies = frozenset(dependencies)
        self.remote: Dict[str, str] = dict(instances or {})
        self.status_steps: Dict[str, List[StatusStep]] = {}
        self.submit_errors: Dict[str, Exception] = {}
        self.list_error: Optional[Exception] = None
        self.on_remove: Optional[Callable[[], None]] = None
        self.remove_calls = 0
        self.status_calls: Dict[str, int] = {}

    @property
    def name(self) -> str:
        return self._name

    @property
    def dependencies(self) -> frozenset:
        return self._dependencies

    def remove(self):
        self.remove_calls += 1
        if self.on_remove:
            self.on_remove()
        return super().remove()

    def _list_location(self, location: str) -> List[ResourceInstance]:
        if self.list_error:
            raise self.list_error
        return [
            ResourceInstance(identifier=identifier, location=loc)
            for identifier, loc in sorted(self.remote.items())
            if loc == location
        ]

    def _submit_delete(self, instance: ResourceInstance) -> str:
        if instance.identifier in self.submit_errors:
            raise self.submit_errors[instance.identifier]
        return f"operation-{instance.identifier}"

    def _operation_status(self, instance: ResourceInstance, handle: str) -> str:
        self.status_calls[instance.identifier] = self.status_calls.get(instance.identifier, 0) + 1
        steps = self.status_steps.get(instance.identifier)
        step: StatusStep = steps.pop(0) if steps else "DONE"
        if isinstance(step, Exception):
            raise step
        if step == self.done_status:
            self.remote.pop(instance.identifier, None)
        return step


def create_fake_type(
    name: str,
    instances: Optional[Iterable[str]] = None,
    dependencies: Iterable[str] = (),
    location: str = "r1",
    config: Optional[NukeConfig] = None,
) -> FakeResourceType:
    """Create a FakeResourceType, set up and listed when a config is given."""
    resource_type = FakeResourceType(
        name,
        instances={identifier: location for identifier in instances or []},
        dependencies=dependencies,
    )
    if config is not None:
        resource_type.setup(config)
        resource_type.list_instances(refresh_cache=True)
    return resource_type
