"""Base class for resource types.

A resource type lists every instance of one kind of cloud object, caches
them, and deletes them concurrently. Each deletion submits the provider's
delete call and then polls the returned operation until it finishes, fails,
or runs out of time.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, as_completed
from enum import Enum
from typing import Iterable, Optional

from ..models.deletion_record import DeletionRecord, DeletionState
from ..models.nuke_config import NukeConfig
from ..models.resource_instance import ResourceInstance
from ..teardown.errors import (
    DeletionCancelledError,
    DeletionError,
    DeletionTimeoutError,
    ListingError,
)
from .cache import InstanceCache

logger = logging.getLogger(__name__)


class LocationScope(Enum):
    """Which configured locations a resource type enumerates."""

    REGION = "region"
    ZONE = "zone"
    GLOBAL = "global"


GLOBAL_LOCATION = "global"


class ResourceType(ABC):
    """Abstract base class for all resource types.

    Each resource type should:
    1. Have a unique name
    2. Declare the resource types that must be drained before it
    3. Implement the three provider calls: list a location, submit a delete,
       and fetch an operation status

    Attributes:
        scope: Location scope enumerated by list_instances()
        done_status: Operation status that marks a delete as finished
        cache: Instances believed to still exist remotely
    """

    scope: LocationScope = LocationScope.REGION
    done_status: str = "DONE"

    def __init__(self) -> None:
        """Initialize the resource type with an empty cache."""
        self.config: Optional[NukeConfig] = None
        self.cache = InstanceCache()
        self._records: list[DeletionRecord] = []
        self._records_lock = threading.Lock()

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable identifier used for dependency references and logging.

        Returns:
            String identifier (e.g., "ComputeInstanceGroupsRegion")
        """
        pass

    @property
    def dependencies(self) -> frozenset[str]:
        """Names of the resource types that must be empty before this one is processed."""
        return frozenset()

    @abstractmethod
    def _list_location(self, location: str) -> Iterable[ResourceInstance]:
        """Enumerate live resources in one location.

        Args:
            location: Region, zone or "global"

        Returns:
            Resource instances found in the location
        """
        pass

    @abstractmethod
    def _submit_delete(self, instance: ResourceInstance) -> str:
        """Submit the asynchronous delete call.

        Args:
            instance: Instance to delete

        Returns:
            Provider operation handle to poll
        """
        pass

    @abstractmethod
    def _operation_status(self, instance: ResourceInstance, handle: str) -> str:
        """Fetch the status of a delete operation.

        Args:
            instance: Instance being deleted
            handle: Operation handle returned by _submit_delete()

        Returns:
            Opaque status string; only done_status is treated as finished
        """
        pass

    def _is_not_found(self, error: BaseException) -> bool:
        """Whether a delete error means the resource is already gone."""
        return False

    def setup(self, config: NukeConfig) -> None:
        """Inject the shared configuration. Must be called before listing or removing."""
        self.config = config

    def locations(self) -> list[str]:
        """Locations enumerated by list_instances(), chosen by scope."""
        config = self._require_config()
        if self.scope == LocationScope.REGION:
            return list(config.regions)
        if self.scope == LocationScope.ZONE:
            return list(config.zones)
        return [GLOBAL_LOCATION]

    def list_instances(self, refresh_cache: bool = False) -> list[str]:
        """List the identifiers of this type.

        Args:
            refresh_cache: Re-enumerate every location from the provider
                instead of returning the current cache contents

        Returns:
            Sorted list of identifiers

        Raises:
            ListingError: If any provider listing call fails
        """
        config = self._require_config()

        if not refresh_cache:
            return self.cache.sorted_keys()

        discovered: list[ResourceInstance] = []
        for location in self.locations():
            try:
                discovered.extend(self._list_location(location))
            except Exception as e:
                raise ListingError(self.name, config.project, location, e) from e

        self.cache.replace(discovered)
        identifiers = self.cache.sorted_keys()
        logger.debug(f"Listed {len(identifiers)} {self.name} in project {config.project}")
        return identifiers

    def remove(self) -> Optional[DeletionError]:
        """Delete every cached instance concurrently.

        All deletions run to completion. The error returned is the first one
        seen in completion order, so which failure wins is not deterministic
        when several instances fail.

        Returns:
            First deletion error encountered, or None if every instance was deleted
        """
        config = self._require_config()
        instances = self.cache.snapshot()
        if not instances:
            return None

        workers = len(instances)
        if config.max_workers:
            workers = min(workers, config.max_workers)

        first_error: Optional[DeletionError] = None
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=self.name) as executor:
            futures = [executor.submit(self._delete_instance, instance) for instance in instances]
            for future in as_completed(futures):
                record = future.result()
                with self._records_lock:
                    self._records.append(record)
                if record.error is not None and first_error is None:
                    first_error = record.error

        return first_error

    def drain_records(self) -> list[DeletionRecord]:
        """Return and forget the deletion records collected so far."""
        with self._records_lock:
            records, self._records = self._records, []
        return records

    def _delete_instance(self, instance: ResourceInstance) -> DeletionRecord:
        """Drive one instance through the deletion state machine.

        Args:
            instance: Instance to delete

        Returns:
            DeletionRecord in a terminal state
        """
        config = self._require_config()
        record = DeletionRecord(
            resource_type=self.name,
            identifier=instance.identifier,
            location=instance.location,
            project=config.project,
        )

        if config.cancel_event.is_set():
            return self._cancelled(record)

        try:
            handle = self._submit_delete(instance)
        except Exception as e:
            if self._is_not_found(e):
                logger.info(
                    f"[Info] Resource already deleted {instance.identifier} "
                    f"[type: {self.name} project: {config.project} location: {instance.location}]"
                )
                return self._done(record)
            return self._failed(record, e)

        record.state = DeletionState.DELETE_REQUESTED
        record.operation_id = handle
        record.state = DeletionState.POLLING

        while True:
            logger.info(
                f"[Info] Resource currently being deleted {instance.identifier} "
                f"[type: {self.name} project: {config.project} location: {instance.location}] "
                f"({record.elapsed_seconds} seconds)"
            )
            try:
                status = self._operation_status(instance, handle)
            except Exception as e:
                return self._failed(record, e)

            if status == self.done_status:
                return self._done(record)

            if config.cancel_event.wait(config.poll_interval):
                return self._cancelled(record)

            record.elapsed_seconds += config.poll_interval
            if record.elapsed_seconds > config.timeout:
                record.state = DeletionState.TIMED_OUT
                record.error = DeletionTimeoutError(
                    instance.identifier, self.name, config.project, instance.location, config.timeout
                )
                logger.error(f"[Error] {record.error}")
                return record

    def _done(self, record: DeletionRecord) -> DeletionRecord:
        self.cache.delete(record.identifier)
        record.state = DeletionState.DONE
        logger.info(
            f"[Info] Resource deleted {record.identifier} "
            f"[type: {self.name} project: {record.project} location: {record.location}] "
            f"({record.elapsed_seconds} seconds)"
        )
        return record

    def _failed(self, record: DeletionRecord, cause: BaseException) -> DeletionRecord:
        record.state = DeletionState.FAILED
        record.error = DeletionError(record.identifier, self.name, record.project, record.location, cause=cause)
        logger.error(f"[Error] {record.error}")
        return record

    def _cancelled(self, record: DeletionRecord) -> DeletionRecord:
        record.state = DeletionState.CANCELLED
        record.error = DeletionCancelledError(record.identifier, self.name, record.project, record.location)
        logger.warning(f"[Warning] {record.error}")
        return record

    def _require_config(self) -> NukeConfig:
        if self.config is None:
            raise RuntimeError(f"Resource type {self.name} used before setup()")
        return self.config

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"
