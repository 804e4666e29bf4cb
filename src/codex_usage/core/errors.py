# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

"""
Error types for codex_usage.

Everything raised out of credential resolution or the usage fetch derives
from CodexUsageError. Each error's str() is a single line suitable for
showing to the user.
"""

from typing import List, Optional


LOGIN_HINT = "Log in with: codex login"


class CodexUsageError(Exception):
    """Base class for user-facing failures."""


# =============================================================================
# CREDENTIAL ERRORS
# =============================================================================


class CredentialSourceError(CodexUsageError):
    """
    A credential source could not be read (I/O or process failure).

    Raised by individual probes and recovered by the store, which moves on
    to the next source. Never shown to the user on its own.
    """

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"{source}: {reason}")


class NoCredentialFoundError(CodexUsageError):
    """Every credential source was tried and none produced a token."""

    def __init__(self, sources: List[str], attempts: Optional[List[str]] = None):
        self.sources = sources
        self.attempts = attempts or []
        tried = ", ".join(sources)
        super().__init__(
            f"No OpenAI / Codex credentials found (tried: {tried}). "
            f"{LOGIN_HINT} or set OPENAI_API_KEY=sk-..."
        )


# =============================================================================
# USAGE API ERRORS
# =============================================================================


class ApiKeyUnsupportedError(CodexUsageError):
    """A plain API key was found; usage limits need an OAuth session token."""

    def __init__(self):
        super().__init__(
            "Only an API key was found - Codex usage limits are only visible "
            f"via an OAuth session token. {LOGIN_HINT}"
        )


class UnauthorizedError(CodexUsageError):
    """The endpoint rejected the token (HTTP 401/403)."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(
            f"Token expired or unauthorised (HTTP {status_code}). "
            "Try: codex logout && codex login"
        )


class ApiError(CodexUsageError):
    """Any other non-2xx response. Keeps the raw body for diagnostics."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"API returned HTTP {status_code}: {_one_line(body)}")


class MalformedResponseError(CodexUsageError):
    """A 2xx response whose body could not be parsed as usage data."""

    def __init__(self, raw: str, reason: str = ""):
        self.raw = raw
        self.reason = reason
        detail = f" ({reason})" if reason else ""
        super().__init__(
            f"Failed to parse usage response{detail}: {_one_line(raw)}"
        )


class UsageTransportError(CodexUsageError):
    """The request never got a response (DNS, connect, timeout...)."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Failed to reach ChatGPT API: {reason}")


def _one_line(text: str) -> str:
    """Collapse whitespace so a multi-line body stays on one output line."""
    return " ".join(text.split())
