"""Shared configuration handed to every resource type on setup."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class NukeConfig:
    """Runtime configuration for a teardown run.

    A single instance is shared read-only by the orchestrator and every
    registered resource type.

    Attributes:
        project: GCP project identifier
        regions: Regions scanned by region-scoped resource types
        zones: Zones scanned by zone-scoped resource types
        poll_interval: Seconds to wait between operation status checks
        timeout: Seconds an instance may spend polling before it times out
        cancel_event: Process-wide cancellation signal
        max_workers: Upper bound on concurrent deletions per type (optional,
            one worker per instance when unset)
        dry_run: List resources without deleting anything
        max_stalled_passes: Consecutive passes without progress tolerated
            before the run is declared stalled
        fail_on_cycle: Reject dependency cycles before the first pass
    """

    project: str
    regions: list[str] = field(default_factory=list)
    zones: list[str] = field(default_factory=list)
    poll_interval: int = 10
    timeout: int = 400
    cancel_event: threading.Event = field(default_factory=threading.Event)
    max_workers: Optional[int] = None
    dry_run: bool = True
    max_stalled_passes: int = 3
    fail_on_cycle: bool = False

    def validate(self) -> bool:
        """Validate configuration values.

        Returns:
            True if validation passes

        Raises:
            ValueError: If any value is out of range
        """
        if not self.project:
            raise ValueError("Project must be set")

        if self.poll_interval <= 0:
            raise ValueError("Poll interval must be greater than zero")

        if self.timeout < 0:
            raise ValueError("Timeout cannot be negative")

        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError("Max workers must be at least 1")

        if self.max_stalled_passes < 1:
            raise ValueError("Max stalled passes must be at least 1")

        return True
