"""Credential validation for service startup.

Checks that every required environment variable is present and warns about
missing optional ones. All missing variables are reported in a single
aggregated error.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

from airtable_mcp.errors import ConfigError

logger = logging.getLogger(__name__)

REQUIRED_ENV = ("AIRTABLE_API_KEY", "AIRTABLE_BASE_ID")
OPTIONAL_ENV = ("DEFAULT_TABLE", "AIRTABLE_TABLE_IDS")


class CredentialError(ConfigError):
    """Raised when required credentials are missing."""


def validate_credentials(
    env_required: tuple[str, ...] | list[str] = REQUIRED_ENV,
    env_optional: tuple[str, ...] | list[str] = OPTIONAL_ENV,
    environ: Mapping[str, str] | None = None,
) -> None:
    """Validate that all required environment variables are set.

    Parameters
    ----------
    env_required:
        Variables that must be present and non-empty.
    env_optional:
        Variables that only produce a warning when absent.
    environ:
        Mapping to read from. Defaults to ``os.environ``.

    Raises
    ------
    CredentialError
        If any required variable is missing, listing every missing name.
    """
    env = os.environ if environ is None else environ

    missing = [var for var in env_required if not env.get(var)]

    for var in env_optional:
        if not env.get(var):
            logger.debug("Optional env var %s is not set", var)

    if missing:
        lines = [f"  - {var}" for var in missing]
        raise CredentialError("Missing required environment variables:\n" + "\n".join(lines))


def redact(secret: str) -> str:
    """Return a log-safe prefix of *secret*."""
    return f"{secret[:8]}..." if secret else "<empty>"
