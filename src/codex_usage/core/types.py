# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

"""
Shared type definitions for codex_usage.

Credentials are resolved once per run and only ever held in memory.
Usage snapshots are built once from the API response and never mutated.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


# =============================================================================
# CREDENTIAL TYPES
# =============================================================================


class CredentialOrigin(str, Enum):
    """Where a resolved credential came from."""

    ENV_OVERRIDE = "env_override"  # CODEX_ACCESS_TOKEN
    API_KEY = "api_key"  # OPENAI_API_KEY, env or auth.json
    OAUTH_FILE = "oauth_file"  # tokens block in auth.json
    OAUTH_KEYCHAIN = "oauth_keychain"  # macOS Keychain entry


@dataclass(frozen=True)
class Credential:
    """
    A usable credential.

    The token is kept out of repr so it never ends up in logs or tracebacks.
    """

    token: str = field(repr=False)
    origin: CredentialOrigin
    account_id: Optional[str] = None
    source: Optional[str] = None  # Env var name, file path or keychain service

    def __post_init__(self):
        if not self.token or not self.token.strip():
            raise ValueError("Credential token must be non-empty")

    @property
    def is_oauth(self) -> bool:
        """OAuth tokens can read usage limits; plain API keys cannot."""
        return self.origin is not CredentialOrigin.API_KEY


# =============================================================================
# USAGE TYPES
# =============================================================================


@dataclass(frozen=True)
class RateWindow:
    """One rate-limit window (e.g. 5-hour session, 7-day rolling)."""

    used_percent: Optional[float] = None  # 0-100, None = unknown
    reset_after_seconds: Optional[int] = None  # None = unknown


@dataclass(frozen=True)
class UsageSnapshot:
    """Parsed response of the usage endpoint. Every field is optional."""

    plan_type: Optional[str] = None
    primary_window: Optional[RateWindow] = None
    secondary_window: Optional[RateWindow] = None
    limit_reached: Optional[bool] = None
