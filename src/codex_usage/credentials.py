# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

"""
Credential discovery.

The store walks an ordered list of probes and returns the first credential
any of them yields:

1. CODEX_ACCESS_TOKEN env var (OAuth override, optional CODEX_ACCOUNT_ID)
2. OPENAI_API_KEY env var
3. ~/.codex/auth.json
4. ~/.config/codex/auth.json
5. macOS Keychain, under a few plausible service names

A probe returns None on a miss and raises CredentialSourceError when the
source could not be read. Both are recorded and the next probe is tried;
only when every probe misses does resolve() fail.
"""

import json
import logging
import os
import subprocess
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence

from .config import (
    ENV_ACCESS_TOKEN,
    ENV_ACCOUNT_ID,
    ENV_API_KEY,
    KEYCHAIN_COMMAND,
    UsageConfig,
)
from .core.errors import CredentialSourceError, NoCredentialFoundError
from .core.types import Credential, CredentialOrigin

lib_logger = logging.getLogger("codex_usage")


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def _non_blank(value: Any) -> Optional[str]:
    """Return the stripped string, or None for non-strings and blank strings."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _display_path(path: Path, home: Path) -> str:
    """Show paths under the home directory as ~/..."""
    try:
        return "~/" + path.relative_to(home).as_posix()
    except ValueError:
        return str(path)


def _is_auth_blob(data: Any) -> bool:
    """Check the auth.json shape; a wrong-typed known field spoils the whole blob."""
    if not isinstance(data, dict):
        return False
    tokens = data.get("tokens")
    if tokens is not None:
        if not isinstance(tokens, dict):
            return False
        for key in ("access_token", "account_id"):
            if tokens.get(key) is not None and not isinstance(tokens[key], str):
                return False
    api_key = data.get(ENV_API_KEY)
    return api_key is None or isinstance(api_key, str)


def credential_from_auth_blob(
    data: Any, oauth_origin: CredentialOrigin, source: Optional[str] = None
) -> Optional[Credential]:
    """
    Extract a credential from a parsed auth.json-shaped object.

    Shape (every field optional):
        {"tokens": {"access_token": str, "account_id": str},
         "OPENAI_API_KEY": str}

    The OAuth token wins over the plain key when both are usable.

    Returns:
        Credential, or None if the object is not auth-shaped or holds no
        usable token
    """
    if not _is_auth_blob(data):
        return None

    tokens = data.get("tokens")
    if tokens:
        access_token = _non_blank(tokens.get("access_token"))
        if access_token:
            return Credential(
                token=access_token,
                origin=oauth_origin,
                account_id=_non_blank(tokens.get("account_id")),
                source=source,
            )

    api_key = _non_blank(data.get(ENV_API_KEY))
    if api_key:
        return Credential(token=api_key, origin=CredentialOrigin.API_KEY, source=source)

    return None


# =============================================================================
# PROBES
# =============================================================================


class CredentialProbe:
    """One credential source. Subclasses implement probe()."""

    #: Shown to the user when every source misses
    description: str = ""

    def probe(self) -> Optional[Credential]:
        raise NotImplementedError


class EnvOverrideProbe(CredentialProbe):
    """OAuth bearer token supplied directly through the environment."""

    description = f"{ENV_ACCESS_TOKEN} env var"

    def probe(self) -> Optional[Credential]:
        token = _non_blank(os.environ.get(ENV_ACCESS_TOKEN))
        if not token:
            return None
        return Credential(
            token=token,
            origin=CredentialOrigin.ENV_OVERRIDE,
            account_id=_non_blank(os.environ.get(ENV_ACCOUNT_ID)),
            source=ENV_ACCESS_TOKEN,
        )


class ApiKeyEnvProbe(CredentialProbe):
    """Plain OpenAI API key from the environment."""

    description = f"{ENV_API_KEY} env var"

    def probe(self) -> Optional[Credential]:
        key = _non_blank(os.environ.get(ENV_API_KEY))
        if not key:
            return None
        return Credential(token=key, origin=CredentialOrigin.API_KEY, source=ENV_API_KEY)


class AuthFileProbe(CredentialProbe):
    """
    A Codex CLI auth.json file.

    A file that is missing, empty, not JSON, or has no usable token is a
    miss rather than a fatal error.
    """

    def __init__(self, path: Path, display_name: Optional[str] = None):
        self.path = path
        self.description = display_name or str(path)

    def probe(self) -> Optional[Credential]:
        if not self.path.is_file():
            return None

        try:
            raw = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise CredentialSourceError(self.description, f"could not read file: {e}")

        try:
            data = json.loads(raw.strip())
        except json.JSONDecodeError as e:
            raise CredentialSourceError(self.description, f"could not parse file: {e}")

        credential = credential_from_auth_blob(
            data, CredentialOrigin.OAUTH_FILE, source=str(self.path)
        )
        if credential is None:
            lib_logger.debug(f"{self.description} found but contained no usable token")
        return credential


Runner = Callable[..., "subprocess.CompletedProcess[str]"]


class KeychainProbe(CredentialProbe):
    """
    macOS Keychain generic-password lookup.

    Each service name is tried in order with
    `security find-generic-password -s <service> -w`. A non-zero exit or
    blank output is a miss. The secret may be an auth.json blob or a bare
    access token.
    """

    def __init__(self, services: Sequence[str], runner: Optional[Runner] = None):
        self.services = list(services)
        self.runner = runner or subprocess.run
        names = ", ".join(f'"{s}"' for s in self.services)
        self.description = f"macOS Keychain (services {names})"

    def _lookup(self, service: str) -> Optional[str]:
        try:
            result = self.runner(
                [KEYCHAIN_COMMAND, "find-generic-password", "-s", service, "-w"],
                capture_output=True,
                text=True,
                errors="replace",
                check=False,
            )
        except OSError as e:
            raise CredentialSourceError(
                self.description, f"could not run {KEYCHAIN_COMMAND}: {e}"
            )
        if result.returncode != 0:
            return None
        return _non_blank(result.stdout)

    def probe(self) -> Optional[Credential]:
        for service in self.services:
            raw = self._lookup(service)
            if not raw:
                lib_logger.debug(f"Keychain service {service!r}: no entry")
                continue

            source = f"keychain:{service}"
            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                data = None
            credential = credential_from_auth_blob(
                data, CredentialOrigin.OAUTH_KEYCHAIN, source=source
            )
            if credential is not None:
                return credential

            # Not an auth blob: treat the secret itself as the access token
            return Credential(
                token=raw, origin=CredentialOrigin.OAUTH_KEYCHAIN, source=source
            )
        return None


# =============================================================================
# STORE
# =============================================================================


def default_probes(config: UsageConfig) -> List[CredentialProbe]:
    """Build the probe chain in priority order."""
    probes: List[CredentialProbe] = [EnvOverrideProbe(), ApiKeyEnvProbe()]
    for path in config.auth_file_paths:
        probes.append(AuthFileProbe(path, _display_path(path, config.home_dir)))
    probes.append(KeychainProbe(config.keychain_services))
    return probes


class CredentialStore:
    """Resolves a single credential from the first source that has one."""

    def __init__(
        self,
        config: Optional[UsageConfig] = None,
        probes: Optional[List[CredentialProbe]] = None,
    ):
        if probes is None:
            probes = default_probes(config or UsageConfig())
        self.probes = probes

    def resolve(self) -> Credential:
        """
        Walk the probes in order and return the first credential found.

        Raises:
            NoCredentialFoundError: If no probe yields a token. The error
                lists every source tried plus any read failures seen.
        """
        attempts: List[str] = []
        for probe in self.probes:
            try:
                credential = probe.probe()
            except CredentialSourceError as e:
                lib_logger.debug(f"Credential source failed: {e}")
                attempts.append(str(e))
                continue

            if credential is not None:
                lib_logger.debug(
                    f"Using credential from {probe.description} "
                    f"(origin={credential.origin.value}, oauth={credential.is_oauth})"
                )
                return credential

            attempts.append(f"{probe.description}: not found")

        raise NoCredentialFoundError(
            [probe.description for probe in self.probes], attempts
        )
