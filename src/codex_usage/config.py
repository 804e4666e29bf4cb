# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

"""Configuration management for codex_usage."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from dotenv import find_dotenv, load_dotenv


# =============================================================================
# FIXED CONTRACTS - names and paths shared with the Codex CLI
# =============================================================================

CODEX_USAGE_URL = "https://chatgpt.com/backend-api/wham/usage"
USER_AGENT = "Mozilla/5.0 (compatible; codex-usage/0.1)"
ACCOUNT_ID_HEADER = "chatgpt-account-id"

ENV_ACCESS_TOKEN = "CODEX_ACCESS_TOKEN"
ENV_ACCOUNT_ID = "CODEX_ACCOUNT_ID"
ENV_API_KEY = "OPENAI_API_KEY"

# Relative to the home directory; checked in this order
AUTH_FILE_CANDIDATES = (
    Path(".codex") / "auth.json",
    Path(".config") / "codex" / "auth.json",
)

KEYCHAIN_SERVICES = ("Codex", "codex", "openai-codex", "Codex CLI")
KEYCHAIN_COMMAND = "security"


@dataclass
class UsageConfig:
    """Runtime settings loaded from the environment (and .env if present)."""

    usage_url: str = CODEX_USAGE_URL
    log_level: str = "WARNING"
    home_dir: Path = field(default_factory=Path.home)
    keychain_services: List[str] = field(
        default_factory=lambda: list(KEYCHAIN_SERVICES)
    )

    def __post_init__(self):
        self.log_level = self.log_level.upper()
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(
                f"CODEX_USAGE_LOG_LEVEL must be a logging level name, got {self.log_level!r}"
            )

    @property
    def auth_file_paths(self) -> List[Path]:
        return [self.home_dir / rel for rel in AUTH_FILE_CANDIDATES]


def load_config(use_dotenv: bool = True) -> UsageConfig:
    """Load configuration from environment variables.

    Credential variables (CODEX_ACCESS_TOKEN, OPENAI_API_KEY, ...) are not
    part of the config; the credential store reads them at resolve time.

    Returns:
        UsageConfig: Configured settings

    Raises:
        ValueError: If CODEX_USAGE_LOG_LEVEL is not a known level name
    """
    if use_dotenv:
        load_dotenv(find_dotenv(usecwd=True))

    home = os.getenv("HOME")
    return UsageConfig(
        usage_url=os.getenv("CODEX_USAGE_URL", CODEX_USAGE_URL).strip() or CODEX_USAGE_URL,
        log_level=os.getenv("CODEX_USAGE_LOG_LEVEL", "WARNING"),
        home_dir=Path(home) if home else Path.home(),
    )
