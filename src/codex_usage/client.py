# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

"""
Codex usage API client.

API Details:
- Endpoint: GET https://chatgpt.com/backend-api/wham/usage
- Auth: Bearer OAuth access token (plain API keys are rejected up front)
- Optional header: chatgpt-account-id
- Response: {"plan_type": str,
             "rate_limit": {"primary_window": {"used_percent": float,
                                               "reset_after_seconds": int},
                            "secondary_window": {...},
                            "limit_reached": bool}}

Every response field is optional and unknown fields are ignored, so the
parser keeps working as the server schema grows.
"""

import json
import logging
from typing import Any, Dict, Optional, Type

import httpx

from .config import ACCOUNT_ID_HEADER, CODEX_USAGE_URL, USER_AGENT
from .core.errors import (
    ApiError,
    ApiKeyUnsupportedError,
    MalformedResponseError,
    UnauthorizedError,
    UsageTransportError,
)
from .core.types import Credential, RateWindow, UsageSnapshot

lib_logger = logging.getLogger("codex_usage")


# =============================================================================
# RESPONSE PARSING
# =============================================================================


def _reject_constant(name: str) -> Any:
    # json.loads accepts NaN / Infinity, which are not valid JSON
    raise ValueError(f"non-finite number {name}")


def _optional(obj: Dict[str, Any], key: str, *types: Type) -> Any:
    """Fetch an optional field, rejecting values of the wrong type."""
    value = obj.get(key)
    if value is None:
        return None
    # bool is an int subclass; only accept it where bool is asked for
    if not isinstance(value, types) or (isinstance(value, bool) and bool not in types):
        raise ValueError(f"{key} has wrong type {type(value).__name__}")
    return value


def _parse_window(obj: Dict[str, Any], key: str) -> Optional[RateWindow]:
    data = _optional(obj, key, dict)
    if data is None:
        return None

    used_percent = _optional(data, "used_percent", int, float)
    reset_after = _optional(data, "reset_after_seconds", int)
    if reset_after is not None and reset_after < 0:
        raise ValueError("reset_after_seconds must be non-negative")

    return RateWindow(
        used_percent=float(used_percent) if used_percent is not None else None,
        reset_after_seconds=reset_after,
    )


def parse_usage(text: str) -> UsageSnapshot:
    """
    Parse a usage response body.

    Raises:
        MalformedResponseError: If the body is not a JSON object, holds a
            NaN/Infinity literal, or a known field has the wrong type. The
            raw text is kept on the error.
    """
    try:
        data = json.loads(text, parse_constant=_reject_constant)
        if not isinstance(data, dict):
            raise ValueError("response is not a JSON object")

        rate_limit = _optional(data, "rate_limit", dict) or {}
        return UsageSnapshot(
            plan_type=_optional(data, "plan_type", str),
            primary_window=_parse_window(rate_limit, "primary_window"),
            secondary_window=_parse_window(rate_limit, "secondary_window"),
            limit_reached=_optional(rate_limit, "limit_reached", bool),
        )
    except ValueError as e:
        # json.JSONDecodeError is a ValueError too
        raise MalformedResponseError(text, str(e)) from e


# =============================================================================
# CLIENT
# =============================================================================


class UsageClient:
    """Fetches the rate-limit snapshot for one credential."""

    def __init__(self, url: str = CODEX_USAGE_URL, client: Optional[httpx.Client] = None):
        self.url = url
        self._client = client

    def _build_headers(self, credential: Credential) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {credential.token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }
        if credential.account_id:
            headers[ACCOUNT_ID_HEADER] = credential.account_id
        return headers

    def _get(self, headers: Dict[str, str]) -> httpx.Response:
        if self._client is not None:
            return self._client.get(self.url, headers=headers)
        with httpx.Client() as client:
            return client.get(self.url, headers=headers)

    def fetch(self, credential: Credential) -> UsageSnapshot:
        """
        Fetch and parse current usage.

        Args:
            credential: Resolved credential; must be an OAuth token

        Returns:
            UsageSnapshot parsed from the response

        Raises:
            ApiKeyUnsupportedError: For plain API keys (no request is made)
            UnauthorizedError: On HTTP 401/403
            ApiError: On any other non-2xx status
            MalformedResponseError: If a 2xx body can't be parsed
            UsageTransportError: If no response was received
        """
        if not credential.is_oauth:
            raise ApiKeyUnsupportedError()

        try:
            response = self._get(self._build_headers(credential))
        except httpx.RequestError as e:
            lib_logger.debug(f"Usage request to {self.url} failed: {e!r}")
            raise UsageTransportError(str(e) or type(e).__name__) from e

        status = response.status_code
        lib_logger.debug(f"Usage endpoint returned HTTP {status}")

        if status in (401, 403):
            raise UnauthorizedError(status)
        if not response.is_success:
            raise ApiError(status, response.text)

        return parse_usage(response.text)
