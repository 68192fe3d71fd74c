"""Audit storage for teardown runs.

Stores and retrieves run logs in YAML format for compliance and troubleshooting.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

import yaml

from ..models.teardown_run import TeardownRun


class AuditStorage:
    """Audit log storage and retrieval.

    Stores teardown run logs as YAML files organized by year/month.
    Supports querying runs by date range and retrieving a single run log.

    Storage structure:
        ~/.gcp-nuke/audit-logs/
            2026/
                10/
                    run-run_123.yaml
                    run-run_456.yaml

    Attributes:
        storage_dir: Base directory for audit logs
    """

    def __init__(self, storage_dir: Optional[str] = None) -> None:
        """Initialize audit storage.

        Args:
            storage_dir: Base directory for audit logs (default: ~/.gcp-nuke/audit-logs)
        """
        if storage_dir is None:
            storage_dir = str(Path.home() / ".gcp-nuke" / "audit-logs")

        self.storage_dir = Path(storage_dir)
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    def log_run(self, run: TeardownRun) -> Path:
        """Log a teardown run to audit storage.

        Overwrites an existing log with the same run ID.

        Args:
            run: Teardown run to log

        Returns:
            Path of the written audit file
        """
        year_month_dir = self.storage_dir / str(run.started_at.year) / f"{run.started_at.month:02d}"
        year_month_dir.mkdir(parents=True, exist_ok=True)

        audit_data = {
            "metadata": {
                "version": "1.0",
                "log_type": "project_teardown",
                "created_at": datetime.utcnow().isoformat() + "Z",
            },
            "run": {
                "run_id": run.run_id,
                "project": run.project,
                "mode": run.mode.value,
                "status": run.status.value,
                "passes": run.passes,
                "started_at": run.started_at.isoformat() + "Z",
                "completed_at": run.completed_at.isoformat() + "Z" if run.completed_at else None,
                "duration_seconds": run.duration_seconds,
                "total_discovered": run.total_discovered,
                "deleted_count": run.deleted_count,
                "failed_count": run.failed_count,
                "timed_out_count": run.timed_out_count,
                "discovered": run.discovered,
                "remaining": run.remaining,
                "stuck": run.stuck,
                "pass_errors": run.pass_errors,
            },
            "records": [record.to_dict() for record in run.records],
        }

        audit_file = year_month_dir / f"run-{run.run_id}.yaml"
        with open(audit_file, "w") as f:
            yaml.dump(audit_data, f, default_flow_style=False, sort_keys=False)
        return audit_file

    def get_run(self, run_id: str) -> Optional[dict]:
        """Retrieve a run audit log by ID.

        Returns:
            Audit log dictionary if found, None otherwise
        """
        for audit_file in self.storage_dir.glob(f"*/*/run-{run_id}.yaml"):
            with open(audit_file, "r") as f:
                return yaml.safe_load(f)

        return None

    def list_runs(self, since: Optional[datetime] = None, until: Optional[datetime] = None) -> list[dict]:
        """Query runs within a date range.

        Args:
            since: Start date (inclusive), None for all
            until: End date (inclusive), None for all

        Returns:
            Run audit logs matching the range, oldest first
        """
        results = []

        for audit_file in sorted(self.storage_dir.glob("*/*/run-*.yaml")):
            with open(audit_file, "r") as f:
                audit_data = yaml.safe_load(f)

            started_at = datetime.fromisoformat(audit_data["run"]["started_at"].rstrip("Z"))
            if since and started_at < since:
                continue
            if until and started_at > until:
                continue

            results.append(audit_data)

        results.sort(key=lambda data: data["run"]["started_at"])
        return results
