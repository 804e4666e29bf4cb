import json
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Union

import pytest

from codex_usage.config import UsageConfig


CREDENTIAL_ENV_VARS = (
    "CODEX_ACCESS_TOKEN",
    "CODEX_ACCOUNT_ID",
    "OPENAI_API_KEY",
    "CODEX_USAGE_URL",
    "CODEX_USAGE_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in CREDENTIAL_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def home(tmp_path) -> Path:
    return tmp_path


@pytest.fixture
def config(home) -> UsageConfig:
    # No keychain services: tests never touch a real keychain
    return UsageConfig(home_dir=home, keychain_services=[])


def write_auth_file(home: Path, relative: str, payload) -> Path:
    path = home / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(payload, str):
        path.write_text(payload)
    else:
        path.write_text(json.dumps(payload))
    return path


class FakeSecurity:
    """Stands in for subprocess.run when calling the `security` tool."""

    def __init__(
        self, secrets: Optional[Dict[str, Union[str, bytes]]] = None, missing: bool = False
    ):
        self.secrets = secrets or {}
        self.missing = missing
        self.calls: List[List[str]] = []
        self.kwargs: List[dict] = []

    def __call__(self, cmd, **kwargs):
        self.calls.append(cmd)
        self.kwargs.append(kwargs)
        if self.missing:
            raise FileNotFoundError(2, "No such file or directory", cmd[0])
        service = cmd[cmd.index("-s") + 1]
        if service in self.secrets:
            stdout = self.secrets[service]
            if isinstance(stdout, bytes):
                # Decode the way subprocess.run does with text=True
                stdout = stdout.decode("utf-8", kwargs.get("errors") or "strict")
            return subprocess.CompletedProcess(cmd, 0, stdout=stdout, stderr="")
        return subprocess.CompletedProcess(
            cmd, 44, stdout="", stderr="security: SecKeychainSearchCopyNext: not found"
        )

    @property
    def services(self) -> List[str]:
        return [cmd[cmd.index("-s") + 1] for cmd in self.calls]


@pytest.fixture
def write_auth(home):
    def _write(relative: str, payload) -> Path:
        return write_auth_file(home, relative, payload)

    return _write


@pytest.fixture
def fake_security():
    return FakeSecurity
