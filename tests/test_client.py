import json

import httpx
import pytest
import respx

from codex_usage.client import UsageClient, parse_usage
from codex_usage.config import CODEX_USAGE_URL
from codex_usage.core.errors import (
    ApiError,
    ApiKeyUnsupportedError,
    MalformedResponseError,
    UnauthorizedError,
    UsageTransportError,
)
from codex_usage.core.types import Credential, CredentialOrigin, RateWindow, UsageSnapshot

FULL_RESPONSE = {
    "plan_type": "plus",
    "rate_limit": {
        "primary_window": {"used_percent": 42.5, "reset_after_seconds": 3600},
        "secondary_window": {"used_percent": 12, "reset_after_seconds": 86400},
        "limit_reached": False,
    },
}


def oauth_credential(account_id=None) -> Credential:
    return Credential(
        token="oauth-token", origin=CredentialOrigin.ENV_OVERRIDE, account_id=account_id
    )


# =============================================================================
# REQUEST
# =============================================================================


@respx.mock
def test_fetch_sends_expected_headers():
    route = respx.get(CODEX_USAGE_URL).mock(
        return_value=httpx.Response(200, json=FULL_RESPONSE)
    )

    UsageClient().fetch(oauth_credential(account_id="acct-1"))

    assert route.call_count == 1
    request = route.calls.last.request
    assert request.headers["Authorization"] == "Bearer oauth-token"
    assert request.headers["Accept"] == "application/json"
    assert request.headers["Content-Type"] == "application/json"
    assert request.headers["User-Agent"] == "Mozilla/5.0 (compatible; codex-usage/0.1)"
    assert request.headers["chatgpt-account-id"] == "acct-1"


@respx.mock
def test_fetch_omits_account_header_without_account_id():
    route = respx.get(CODEX_USAGE_URL).mock(
        return_value=httpx.Response(200, json=FULL_RESPONSE)
    )

    UsageClient().fetch(oauth_credential())

    assert "chatgpt-account-id" not in route.calls.last.request.headers


@respx.mock
def test_fetch_uses_configured_url():
    url = "https://usage.example.test/wham/usage"
    route = respx.get(url).mock(return_value=httpx.Response(200, json={}))

    UsageClient(url).fetch(oauth_credential())

    assert route.called


@pytest.mark.parametrize(
    "origin", [CredentialOrigin.OAUTH_FILE, CredentialOrigin.OAUTH_KEYCHAIN]
)
@respx.mock
def test_fetch_accepts_every_oauth_origin(origin):
    respx.get(CODEX_USAGE_URL).mock(return_value=httpx.Response(200, json={}))

    snapshot = UsageClient().fetch(Credential(token="t", origin=origin))

    assert snapshot == UsageSnapshot()


def test_fetch_api_key_never_hits_network():
    with respx.mock(assert_all_called=False) as mock:
        route = mock.get(CODEX_USAGE_URL).mock(return_value=httpx.Response(200, json={}))

        with pytest.raises(ApiKeyUnsupportedError, match="codex login"):
            UsageClient().fetch(Credential(token="sk-1", origin=CredentialOrigin.API_KEY))

        assert not route.called


# =============================================================================
# STATUS MAPPING
# =============================================================================


@pytest.mark.parametrize("status", [401, 403])
@respx.mock
def test_fetch_unauthorized(status):
    respx.get(CODEX_USAGE_URL).mock(return_value=httpx.Response(status, text="nope"))

    with pytest.raises(UnauthorizedError) as excinfo:
        UsageClient().fetch(oauth_credential())

    assert excinfo.value.status_code == status
    assert "codex logout && codex login" in str(excinfo.value)


@pytest.mark.parametrize("status", [400, 404, 429, 500, 503])
@respx.mock
def test_fetch_other_errors_keep_body(status):
    body = '{"detail": "something\nwent wrong"}'
    respx.get(CODEX_USAGE_URL).mock(return_value=httpx.Response(status, text=body))

    with pytest.raises(ApiError) as excinfo:
        UsageClient().fetch(oauth_credential())

    assert excinfo.value.status_code == status
    assert excinfo.value.body == body
    assert f"HTTP {status}" in str(excinfo.value)
    assert "\n" not in str(excinfo.value)


@respx.mock
def test_fetch_transport_error():
    respx.get(CODEX_USAGE_URL).mock(side_effect=httpx.ConnectError("connection refused"))

    with pytest.raises(UsageTransportError, match="Failed to reach ChatGPT API"):
        UsageClient().fetch(oauth_credential())


@respx.mock
def test_fetch_parses_success_body():
    respx.get(CODEX_USAGE_URL).mock(return_value=httpx.Response(200, json=FULL_RESPONSE))

    snapshot = UsageClient().fetch(oauth_credential())

    assert snapshot == UsageSnapshot(
        plan_type="plus",
        primary_window=RateWindow(used_percent=42.5, reset_after_seconds=3600),
        secondary_window=RateWindow(used_percent=12.0, reset_after_seconds=86400),
        limit_reached=False,
    )


@respx.mock
def test_fetch_malformed_body_keeps_raw_text():
    respx.get(CODEX_USAGE_URL).mock(return_value=httpx.Response(200, text="<html>oops</html>"))

    with pytest.raises(MalformedResponseError) as excinfo:
        UsageClient().fetch(oauth_credential())

    assert excinfo.value.raw == "<html>oops</html>"


# =============================================================================
# LENIENT PARSING
# =============================================================================


def test_parse_empty_object():
    assert parse_usage("{}") == UsageSnapshot()


def test_parse_partial_windows_and_unknown_fields():
    body = json.dumps(
        {
            "plan_type": "pro",
            "email": "someone@example.com",
            "credits": {"has_credits": True},
            "rate_limit": {
                "primary_window": {"used_percent": 5, "limit_window_seconds": 18000},
                "secondary_window": None,
            },
        }
    )

    snapshot = parse_usage(body)

    assert snapshot.plan_type == "pro"
    assert snapshot.primary_window == RateWindow(used_percent=5.0, reset_after_seconds=None)
    assert isinstance(snapshot.primary_window.used_percent, float)
    assert snapshot.secondary_window is None
    assert snapshot.limit_reached is None


def test_parse_null_rate_limit():
    snapshot = parse_usage('{"plan_type": "free", "rate_limit": null}')

    assert snapshot == UsageSnapshot(plan_type="free")


@pytest.mark.parametrize(
    "body",
    [
        "",
        "not json",
        "[]",
        '"just a string"',
        '{"plan_type": 3}',
        '{"rate_limit": []}',
        '{"rate_limit": {"primary_window": "full"}}',
        '{"rate_limit": {"primary_window": {"used_percent": "high"}}}',
        '{"rate_limit": {"primary_window": {"used_percent": true}}}',
        '{"rate_limit": {"primary_window": {"reset_after_seconds": -5}}}',
        '{"rate_limit": {"primary_window": {"reset_after_seconds": 1.5}}}',
        '{"rate_limit": {"limit_reached": "yes"}}',
        '{"rate_limit": {"primary_window": {"used_percent": NaN}}}',
        '{"rate_limit": {"primary_window": {"used_percent": Infinity}}}',
        '{"rate_limit": {"secondary_window": {"used_percent": -Infinity}}}',
    ],
)
def test_parse_rejects_malformed(body):
    with pytest.raises(MalformedResponseError) as excinfo:
        parse_usage(body)

    assert excinfo.value.raw == body


@respx.mock
def test_fetch_non_finite_percent_is_malformed():
    body = '{"plan_type": "plus", "rate_limit": {"primary_window": {"used_percent": NaN}}}'
    respx.get(CODEX_USAGE_URL).mock(return_value=httpx.Response(200, text=body))

    with pytest.raises(MalformedResponseError) as excinfo:
        UsageClient().fetch(oauth_credential())

    assert excinfo.value.raw == body
