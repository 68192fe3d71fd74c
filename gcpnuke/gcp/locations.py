"""Discovery of the regions and zones available to a project."""

from __future__ import annotations

import logging
from typing import Any

from ..teardown.errors import ListingError

logger = logging.getLogger(__name__)


def _list_names(service: Any, collection: str, project: str) -> list[str]:
    resources = getattr(service, collection)()
    request = resources.list(project=project)
    names: list[str] = []

    try:
        while request is not None:
            response = request.execute()
            names.extend(item["name"] for item in response.get("items", []) if item.get("status", "UP") == "UP")
            request = resources.list_next(previous_request=request, previous_response=response)
    except Exception as e:
        raise ListingError(collection, project, "global", e) from e

    return sorted(names)


def discover_regions(service: Any, project: str) -> list[str]:
    """Return every region that is up for the project."""
    regions = _list_names(service, "regions", project)
    logger.debug(f"Discovered {len(regions)} regions for {project}")
    return regions


def discover_zones(service: Any, project: str) -> list[str]:
    """Return every zone that is up for the project."""
    zones = _list_names(service, "zones", project)
    logger.debug(f"Discovered {len(zones)} zones for {project}")
    return zones
