"""Teardown orchestrator.

Drains every registered resource type, never removing a type while any of
its dependencies still has cached instances.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from ..models.nuke_config import NukeConfig
from ..models.teardown_run import RunMode, RunStatus, TeardownRun
from ..resources.base import ResourceType
from .dependency import DependencyResolver
from .errors import OrchestrationCancelledError, OrchestrationStallError
from .registry import Registry

logger = logging.getLogger(__name__)


class Orchestrator:
    """Dependency-aware teardown orchestrator.

    Every resource type is listed once up front so that each cache reflects
    remote state. The orchestrator then makes passes over the registry. In
    each pass a type whose dependencies all have empty caches is eligible.
    Eligible types are re-listed and removed, and re-listed again after
    removal. Eligibility is re-evaluated every pass, so partial progress
    in one type can unblock its dependents in the same run.

    A run stalls when a pass finds no eligible type, or when
    max_stalled_passes consecutive passes neither drain a type nor reduce the
    number of cached instances. A pass without progress is followed by a
    poll_interval wait, so deletes still running remotely get time to finish.

    Attributes:
        registry: Resource types to drain
        config: Shared run configuration
        last_run: Most recent run, including failed ones (optional)
    """

    def __init__(self, registry: Registry, config: NukeConfig) -> None:
        """Initialize orchestrator.

        Args:
            registry: Registry of resource types
            config: Configuration passed to every resource type
        """
        self.registry = registry
        self.config = config
        self.last_run: Optional[TeardownRun] = None
        self._is_setup = False

    def setup(self) -> None:
        """Validate configuration and set up every registered resource type."""
        self.config.validate()
        for resource_type in self.registry:
            resource_type.setup(self.config)
        self._is_setup = True

    def resolver(self) -> DependencyResolver:
        return DependencyResolver.from_registry(self.registry)

    def validate_dependencies(self) -> None:
        """Reject dependency cycles among registered types.

        Raises:
            DependencyCycleError: If the declared dependencies contain a cycle
        """
        self.resolver().get_deletion_tiers()

    def unmet_dependencies(self, resource_type: ResourceType) -> list[str]:
        """Registered dependencies of resource_type whose caches are not empty.

        Unregistered dependency names are treated as satisfied.
        """
        unmet = []
        for name in sorted(resource_type.dependencies):
            dependency = self.registry.get(name)
            if dependency is not None and dependency.list_instances(refresh_cache=False):
                unmet.append(name)
        return unmet

    def run(self) -> TeardownRun:
        """Run the teardown.

        Returns:
            TeardownRun in planned (dry-run) or completed status

        Raises:
            ListingError: If any listing fails
            DependencyCycleError: If fail_on_cycle is set and a cycle exists
            OrchestrationStallError: If the run stops making progress
            OrchestrationCancelledError: If the cancellation signal is set
        """
        if not self._is_setup:
            self.setup()

        mode = RunMode.DRY_RUN if self.config.dry_run else RunMode.EXECUTE
        run = TeardownRun(
            run_id=f"run_{uuid.uuid4()}",
            project=self.config.project,
            mode=mode,
            status=RunStatus.PLANNED if self.config.dry_run else RunStatus.EXECUTING,
        )
        self.last_run = run

        try:
            if self.config.fail_on_cycle:
                self.validate_dependencies()

            run.discovered = self._list_all()
            run.remaining = self._remaining()
            logger.info(
                f"Found {run.total_discovered} resources across {len(self.registry)} resource types "
                f"in project {self.config.project}"
            )

            if self.config.dry_run:
                run.finish(RunStatus.PLANNED)
                return run

            self._drain(run)
        except (OrchestrationStallError, OrchestrationCancelledError):
            raise
        except Exception:
            run.remaining = self._remaining()
            run.finish(RunStatus.FAILED)
            raise

        return run

    def _drain(self, run: TeardownRun) -> None:
        done: set[str] = set()
        passes_without_progress = 0

        while len(done) < len(self.registry):
            self._check_cancelled(run)
            run.passes += 1
            cached_before = self._cached_total()
            eligible = 0
            drained = 0

            for resource_type in self.registry:
                if resource_type.name in done:
                    continue
                self._check_cancelled(run)

                unmet = self.unmet_dependencies(resource_type)
                if unmet:
                    logger.debug(f"{resource_type.name} waiting on: {', '.join(unmet)}")
                    continue

                eligible += 1
                if self._drain_type(resource_type, run):
                    done.add(resource_type.name)
                    drained += 1

            run.remaining = self._remaining()
            cached_after = self._cached_total()
            logger.info(
                f"Pass {run.passes}: {len(done)}/{len(self.registry)} resource types drained, "
                f"{cached_after} resources remaining"
            )

            if len(done) == len(self.registry):
                break

            if eligible == 0:
                self._stall(run, done)

            if drained or cached_after < cached_before:
                passes_without_progress = 0
            else:
                passes_without_progress += 1
                if passes_without_progress >= self.config.max_stalled_passes:
                    self._stall(run, done)
                logger.info(f"No progress in pass {run.passes}, retrying in {self.config.poll_interval} seconds")
                self.config.cancel_event.wait(self.config.poll_interval)

        run.remaining = {}
        run.finish(RunStatus.COMPLETED)
        logger.info(f"Project {self.config.project} drained in {run.passes} passes")

    def _drain_type(self, resource_type: ResourceType, run: TeardownRun) -> bool:
        """List and remove one eligible type. Returns True once its cache is empty."""
        if not resource_type.list_instances(refresh_cache=True):
            return True

        error = resource_type.remove()
        run.records.extend(resource_type.drain_records())
        if error is not None:
            run.pass_errors.append(str(error))
            logger.warning(f"[Warning] {resource_type.name}: {error}")

        return not resource_type.list_instances(refresh_cache=True)

    def _list_all(self) -> dict[str, list[str]]:
        discovered = {}
        for resource_type in self.registry:
            identifiers = resource_type.list_instances(refresh_cache=True)
            logger.debug(f"{resource_type.name}: {len(identifiers)} found")
            discovered[resource_type.name] = identifiers
        return discovered

    def _remaining(self) -> dict[str, list[str]]:
        remaining = {}
        for resource_type in self.registry:
            identifiers = resource_type.list_instances(refresh_cache=False)
            if identifiers:
                remaining[resource_type.name] = identifiers
        return remaining

    def _cached_total(self) -> int:
        return sum(len(resource_type.list_instances(refresh_cache=False)) for resource_type in self.registry)

    def _check_cancelled(self, run: TeardownRun) -> None:
        if self.config.cancel_event.is_set():
            run.remaining = self._remaining()
            run.finish(RunStatus.CANCELLED)
            raise OrchestrationCancelledError(run)

    def _stall(self, run: TeardownRun, done: set[str]) -> None:
        stuck = {
            resource_type.name: self.unmet_dependencies(resource_type)
            for resource_type in self.registry
            if resource_type.name not in done
        }
        run.stuck = stuck
        run.remaining = self._remaining()
        run.finish(RunStatus.STALLED)
        error = OrchestrationStallError(stuck, run.remaining, run)
        logger.error(f"[Error] {error}")
        raise error
