"""Data models for teardown runs and the resources they delete."""

from __future__ import annotations

from .deletion_record import DeletionRecord, DeletionState
from .nuke_config import NukeConfig
from .resource_instance import ResourceInstance
from .teardown_run import RunMode, RunStatus, TeardownRun

__all__ = [
    "DeletionRecord",
    "DeletionState",
    "NukeConfig",
    "ResourceInstance",
    "RunMode",
    "RunStatus",
    "TeardownRun",
]
