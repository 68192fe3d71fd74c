"""Resource instance model.

One concrete cloud object discovered by a resource type listing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ResourceInstance:
    """A single resource known to exist remotely.

    Instances are created when a listing discovers them and are never mutated
    afterwards. They are dropped from their type's cache once the delete is
    confirmed.

    Attributes:
        identifier: Resource name, unique within its resource type
        location: Region, zone or "global"
        metadata: Extra attributes needed to issue the delete call (optional)
    """

    identifier: str
    location: str
    metadata: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)
