"""gcp-nuke - dependency-aware teardown of every resource in a GCP project."""

__version__ = "0.1.0"
