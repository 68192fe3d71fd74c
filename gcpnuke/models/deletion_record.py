"""Deletion record model.

Outcome of driving a single resource instance through deletion.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..teardown.errors import DeletionError


class DeletionState(Enum):
    """Per-instance deletion state.

    State transitions:
        pending → delete_requested → polling → done
        pending → delete_requested → failed (submission error)
        polling → failed (status error, or operation finished with an error)
        polling → timed_out (timeout budget exhausted)
        any non-terminal → cancelled (cancellation signal)
    """

    PENDING = "pending"
    DELETE_REQUESTED = "delete_requested"
    POLLING = "polling"
    DONE = "done"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (
            DeletionState.DONE,
            DeletionState.FAILED,
            DeletionState.TIMED_OUT,
            DeletionState.CANCELLED,
        )


@dataclass
class DeletionRecord:
    """Deletion record entity.

    Tracks one instance through the deletion state machine. A record that
    ends in any state other than DONE leaves its instance in the cache so a
    later pass retries it.

    Attributes:
        resource_type: Name of the owning resource type
        identifier: Resource identifier
        location: Region, zone or "global"
        project: GCP project identifier
        state: Current deletion state
        operation_id: Provider operation handle once submitted (optional)
        elapsed_seconds: Polling time accumulated so far
        error: Error that ended the state machine (optional)
        timestamp: When the record was created (UTC)
    """

    resource_type: str
    identifier: str
    location: str
    project: str
    state: DeletionState = DeletionState.PENDING
    operation_id: Optional[str] = None
    elapsed_seconds: int = 0
    error: Optional["DeletionError"] = None
    timestamp: datetime = field(default_factory=datetime.utcnow)

    @property
    def succeeded(self) -> bool:
        return self.state == DeletionState.DONE

    def validate(self) -> bool:
        """Validate record invariants.

        Returns:
            True if validation passes

        Raises:
            ValueError: If any validation rule fails
        """
        if self.state == DeletionState.DONE and self.error is not None:
            raise ValueError("Done state cannot carry an error")

        if self.state in (DeletionState.FAILED, DeletionState.TIMED_OUT, DeletionState.CANCELLED):
            if self.error is None:
                raise ValueError(f"{self.state.value} state requires an error")

        if self.elapsed_seconds < 0:
            raise ValueError("Elapsed seconds cannot be negative")

        return True

    def to_dict(self) -> dict:
        """Serialize the record for audit storage."""
        return {
            "resource_type": self.resource_type,
            "identifier": self.identifier,
            "location": self.location,
            "project": self.project,
            "state": self.state.value,
            "operation_id": self.operation_id,
            "elapsed_seconds": self.elapsed_seconds,
            "error": str(self.error) if self.error else None,
            "timestamp": self.timestamp.isoformat() + "Z",
        }
