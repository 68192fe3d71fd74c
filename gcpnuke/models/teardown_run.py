"""Teardown run model.

Represents one invocation of the orchestrator with its outcome per resource type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from .deletion_record import DeletionRecord, DeletionState


class RunMode(Enum):
    """Run execution mode."""

    DRY_RUN = "dry-run"
    EXECUTE = "execute"


class RunStatus(Enum):
    """Run status with state transitions."""

    PLANNED = "planned"
    EXECUTING = "executing"
    COMPLETED = "completed"
    STALLED = "stalled"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class TeardownRun:
    """Teardown run entity.

    State transitions:
        planned (dry-run, listing only)
        executing → completed (every resource type drained)
        executing → stalled (a pass made no progress)
        executing → cancelled (cancellation signal)
        executing → failed (fatal listing or unexpected error)

    Attributes:
        run_id: Unique identifier for the run
        project: GCP project identifier
        mode: dry-run or execute
        status: Current run status
        passes: Number of orchestrator passes performed
        discovered: Identifiers found per resource type by the initial listing
        remaining: Identifiers still cached per resource type
        stuck: Unmet dependencies per resource type when the run stalled
        pass_errors: Errors returned by remove() during the passes
        records: Deletion records collected from every remove() call
        started_at: When the run started (UTC)
        completed_at: When the run finished (optional)
        duration_seconds: Total run duration (optional)
    """

    run_id: str
    project: str
    mode: RunMode
    status: RunStatus
    passes: int = 0
    discovered: dict[str, list[str]] = field(default_factory=dict)
    remaining: dict[str, list[str]] = field(default_factory=dict)
    stuck: dict[str, list[str]] = field(default_factory=dict)
    pass_errors: list[str] = field(default_factory=list)
    records: list[DeletionRecord] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None

    @property
    def total_discovered(self) -> int:
        return sum(len(ids) for ids in self.discovered.values())

    @property
    def total_remaining(self) -> int:
        return sum(len(ids) for ids in self.remaining.values())

    @property
    def deleted_count(self) -> int:
        return sum(1 for r in self.records if r.state == DeletionState.DONE)

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.records if r.state in (DeletionState.FAILED, DeletionState.CANCELLED))

    @property
    def timed_out_count(self) -> int:
        return sum(1 for r in self.records if r.state == DeletionState.TIMED_OUT)

    def finish(self, status: RunStatus) -> None:
        """Mark the run finished with the given status."""
        self.status = status
        self.completed_at = datetime.utcnow()
        self.duration_seconds = (self.completed_at - self.started_at).total_seconds()

    def validate(self) -> bool:
        """Validate run invariants.

        Validation rules:
            - dry-run mode must have planned status
            - completed_at must not be before started_at
            - a completed run has no remaining resources

        Returns:
            True if validation passes

        Raises:
            ValueError: If any validation rule fails
        """
        if self.mode == RunMode.DRY_RUN and self.status != RunStatus.PLANNED:
            raise ValueError("Dry-run mode must have planned status")

        if self.completed_at and self.completed_at < self.started_at:
            raise ValueError("Completion time before start time")

        if self.status == RunStatus.COMPLETED and self.total_remaining:
            raise ValueError("Completed run still has remaining resources")

        return True
