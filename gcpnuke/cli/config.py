"""CLI configuration loading.

Settings are resolved from built-in defaults, then a YAML config file, then
GCP_NUKE_* environment variables. Command line options override all three.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from ..models.nuke_config import NukeConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".gcp-nuke" / "config.yaml"

ENV_PREFIX = "GCP_NUKE_"
LIST_FIELDS = {"regions", "zones"}
INT_FIELDS = {"poll_interval", "timeout", "max_workers", "max_stalled_passes"}


@dataclass
class Config:
    """Resolved CLI settings.

    Attributes:
        project: GCP project identifier (optional until a run needs it)
        regions: Regions to scan (empty means discover)
        zones: Zones to scan (empty means discover)
        poll_interval: Seconds between operation status checks
        timeout: Seconds an instance may poll before timing out
        max_workers: Concurrent deletions per resource type (optional)
        max_stalled_passes: Passes without progress before giving up
        keyfile: Service account key path (optional)
        log_level: Default log level
        audit_dir: Audit log directory (optional)
    """

    project: Optional[str] = None
    regions: list[str] = field(default_factory=list)
    zones: list[str] = field(default_factory=list)
    poll_interval: int = 10
    timeout: int = 400
    max_workers: Optional[int] = None
    max_stalled_passes: int = 3
    keyfile: Optional[str] = None
    log_level: str = "INFO"
    audit_dir: Optional[str] = None

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        """Load configuration from file and environment.

        Args:
            path: Config file path (default: $GCP_NUKE_CONFIG or ~/.gcp-nuke/config.yaml)

        Returns:
            Config instance

        Raises:
            ValueError: If the file or an environment variable holds an invalid value
        """
        config = cls()

        config_path = Path(path or os.environ.get(f"{ENV_PREFIX}CONFIG") or DEFAULT_CONFIG_PATH).expanduser()
        if config_path.exists():
            with open(config_path, "r") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ValueError(f"Config file {config_path} must contain a mapping")
            config._apply(data, source=str(config_path))
        elif path:
            raise ValueError(f"Config file {config_path} not found")

        env_values = {}
        for config_field in fields(cls):
            value = os.environ.get(f"{ENV_PREFIX}{config_field.name.upper()}")
            if value is not None:
                env_values[config_field.name] = value
        config._apply(env_values, source="environment")

        return config

    def _apply(self, values: dict[str, Any], source: str) -> None:
        known = {f.name for f in fields(self)}
        for key, value in values.items():
            name = key.replace("-", "_")
            if name not in known:
                logger.warning(f"Ignoring unknown config key '{key}' from {source}")
                continue
            setattr(self, name, self._coerce(name, value, source))

    @staticmethod
    def _coerce(name: str, value: Any, source: str) -> Any:
        if value is None:
            return value
        if name in LIST_FIELDS:
            if isinstance(value, str):
                return parse_list(value)
            return [str(item) for item in value]
        if name in INT_FIELDS:
            try:
                return int(value)
            except (TypeError, ValueError):
                raise ValueError(f"Invalid integer for '{name}' in {source}: {value!r}")
        return str(value)

    def to_nuke_config(
        self,
        cancel_event: Optional[threading.Event] = None,
        dry_run: bool = True,
        fail_on_cycle: bool = False,
    ) -> NukeConfig:
        """Build the runtime configuration shared by the orchestrator and resource types.

        Raises:
            ValueError: If no project is configured
        """
        if not self.project:
            raise ValueError("No project configured. Use --project or set GCP_NUKE_PROJECT.")

        return NukeConfig(
            project=self.project,
            regions=list(self.regions),
            zones=list(self.zones),
            poll_interval=self.poll_interval,
            timeout=self.timeout,
            cancel_event=cancel_event or threading.Event(),
            max_workers=self.max_workers,
            dry_run=dry_run,
            max_stalled_passes=self.max_stalled_passes,
            fail_on_cycle=fail_on_cycle,
        )


def parse_list(value: str) -> list[str]:
    """Split a comma separated option into a list, dropping blanks."""
    return [item.strip() for item in value.split(",") if item.strip()]
