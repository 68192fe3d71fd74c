"""Compute Engine client construction."""

from __future__ import annotations

import logging
from typing import Any, Optional

import google.auth
from google.auth.exceptions import DefaultCredentialsError
from google.oauth2 import service_account
from googleapiclient import discovery

from ..teardown.errors import CredentialError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]


def load_credentials(keyfile: Optional[str] = None) -> Any:
    """Load GCP credentials.

    Args:
        keyfile: Path to a service account JSON key (optional, falls back to
            application default credentials)

    Returns:
        google.auth credentials object

    Raises:
        CredentialError: If no usable credentials are found
    """
    try:
        if keyfile:
            logger.debug(f"Loading service account credentials from {keyfile}")
            return service_account.Credentials.from_service_account_file(keyfile, scopes=SCOPES)

        credentials, _ = google.auth.default(scopes=SCOPES)
        return credentials
    except (DefaultCredentialsError, FileNotFoundError, ValueError) as e:
        raise CredentialError(f"Unable to load GCP credentials: {e}") from e


def create_compute_service(keyfile: Optional[str] = None) -> Any:
    """Build a Compute Engine v1 discovery client.

    Args:
        keyfile: Path to a service account JSON key (optional)

    Returns:
        Compute Engine client
    """
    credentials = load_credentials(keyfile)
    return discovery.build("compute", "v1", credentials=credentials, cache_discovery=False)
