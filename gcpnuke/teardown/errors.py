"""Exception hierarchy for teardown runs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..models.teardown_run import TeardownRun


class NukeError(Exception):
    """Base class for all teardown errors."""


class CredentialError(NukeError):
    """Raised when GCP credentials cannot be loaded."""


class ListingError(NukeError):
    """Listing a resource type failed.

    Fatal: without accurate listings the orchestrator cannot decide which
    resource types are safe to delete.
    """

    def __init__(self, resource_type: str, project: str, location: str, cause: BaseException) -> None:
        self.resource_type = resource_type
        self.project = project
        self.location = location
        self.cause = cause
        super().__init__(
            f"Failed to list {resource_type} [project: {project} location: {location}]: {cause}"
        )


class DeletionError(NukeError):
    """Deleting a single resource instance failed.

    The instance stays cached and is retried on the next pass.
    """

    def __init__(
        self,
        identifier: str,
        resource_type: str,
        project: str,
        location: str,
        message: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.identifier = identifier
        self.resource_type = resource_type
        self.project = project
        self.location = location
        self.cause = cause
        detail = message or (str(cause) if cause else "deletion failed")
        super().__init__(
            f"Failed to delete {identifier} [type: {resource_type} project: {project} location: {location}]: {detail}"
        )


class DeletionTimeoutError(DeletionError):
    """The provider accepted the delete but did not confirm it within the timeout."""

    def __init__(self, identifier: str, resource_type: str, project: str, location: str, timeout: int) -> None:
        self.timeout = timeout
        super().__init__(
            identifier,
            resource_type,
            project,
            location,
            message=f"deletion timed out after {timeout} seconds",
        )


class DeletionCancelledError(DeletionError):
    """Deletion was interrupted by the cancellation signal."""

    def __init__(self, identifier: str, resource_type: str, project: str, location: str) -> None:
        super().__init__(identifier, resource_type, project, location, message="deletion cancelled")


class DependencyCycleError(NukeError):
    """The declared resource type dependencies contain a cycle."""

    def __init__(self, members: list[str]) -> None:
        self.members = members
        super().__init__(f"Circular dependency between resource types: {', '.join(members)}")


class OrchestrationStallError(NukeError):
    """A pass made no progress, so the remaining types can never drain."""

    def __init__(
        self,
        stuck: dict[str, list[str]],
        remaining: dict[str, list[str]],
        run: Optional["TeardownRun"] = None,
    ) -> None:
        self.stuck = stuck
        self.remaining = remaining
        self.run = run
        details = "; ".join(
            f"{name} (waiting on: {', '.join(deps) or 'none'}, remaining: {len(remaining.get(name, []))})"
            for name, deps in sorted(stuck.items())
        )
        super().__init__(f"Teardown stalled: {details}")


class OrchestrationCancelledError(NukeError):
    """The run was aborted by the cancellation signal."""

    def __init__(self, run: Optional["TeardownRun"] = None) -> None:
        self.run = run
        super().__init__("Teardown cancelled")


class OperationFailedError(NukeError):
    """A provider operation finished but reported errors."""

    def __init__(self, operation: str, errors: list) -> None:
        self.operation = operation
        self.errors = errors
        messages = ", ".join(str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors)
        super().__init__(f"Operation {operation} finished with errors: {messages}")
