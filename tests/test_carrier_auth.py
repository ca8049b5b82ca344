import base64
import json

import pytest

from carrier_gateway.error_handler import InvalidCredentials, InvalidTokenFormat, MalformedResponse, ServiceUnavailable
from carrier_gateway.integrations.clients.mocks.mock_carrier import AUTH_PATH, HANDSHAKE_PATH, make_token
from carrier_gateway.integrations.contracts.policy import Credentials
from carrier_gateway.integrations.clients.real_http.auth import (
    CarrierAuthClient,
    authorization_header,
    extract_subject,
    mask_token,
)


def _client(mock_carrier, retry_policy, auth_scheme=""):
    return CarrierAuthClient(mock_carrier.config(auth_scheme), retry_policy=retry_policy, transport=mock_carrier.transport)


# ---------------------------------------------------------------------------
# Token decoding
# ---------------------------------------------------------------------------

def test_extract_subject_reads_user_id():
    assert extract_subject(make_token({"userId": "u-42", "sub": "other"})) == "u-42"


def test_extract_subject_falls_back_to_sub():
    assert extract_subject(make_token({"sub": "subject-7"})) == "subject-7"


def test_extract_subject_accepts_padded_standard_base64():
    segment = base64.b64encode(json.dumps({"userId": "padded"}).encode()).decode()
    assert extract_subject(f"header.{segment}.sig") == "padded"


@pytest.mark.parametrize(
    "token",
    [
        "no-dots-at-all",
        "header.%%%not-base64%%%.sig",
        "header." + base64.b64encode(b"not json").decode() + ".sig",
        "header." + base64.b64encode(b"[1, 2]").decode() + ".sig",
        make_token({"name": "no subject"}),
    ],
)
def test_extract_subject_rejects_bad_tokens(token):
    with pytest.raises(InvalidTokenFormat):
        extract_subject(token)


def test_mask_token_and_authorization_header():
    assert mask_token("abcdefghijkl") == "abcdef…"
    assert mask_token(None) == "<none>"
    assert authorization_header("tok") == "Bearer tok"
    assert authorization_header("tok", "") == "tok"


# ---------------------------------------------------------------------------
# Credential exchange
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_exchange_returns_access_token(mock_carrier, retry_policy, credentials):
    token = await _client(mock_carrier, retry_policy).exchange(credentials)

    assert token == mock_carrier.access_token
    body = json.loads(mock_carrier.requests[0].content)
    assert body == {"username": "jdoe", "password": "s3cret"}


@pytest.mark.asyncio
async def test_exchange_with_bad_password_makes_one_attempt(mock_carrier, retry_policy, sleeps):
    with pytest.raises(InvalidCredentials):
        await _client(mock_carrier, retry_policy).exchange(Credentials(username="jdoe", password="wrong"))

    assert mock_carrier.calls[AUTH_PATH] == 1
    assert sleeps.delays == []


@pytest.mark.asyncio
async def test_exchange_missing_token_is_malformed(mock_carrier, retry_policy, credentials):
    mock_carrier.respond_with(AUTH_PATH, {"data": {}})

    with pytest.raises(MalformedResponse) as excinfo:
        await _client(mock_carrier, retry_policy).exchange(credentials)

    assert "auth token missing" in str(excinfo.value)
    assert mock_carrier.calls[AUTH_PATH] == 1


@pytest.mark.asyncio
async def test_exchange_gives_up_after_three_unavailable_attempts(mock_carrier, retry_policy, sleeps, credentials):
    mock_carrier.fail(AUTH_PATH, 503, 503, 503)

    with pytest.raises(ServiceUnavailable):
        await _client(mock_carrier, retry_policy).exchange(credentials)

    assert mock_carrier.calls[AUTH_PATH] == 3
    assert sleeps.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_exchange_honours_retry_after(mock_carrier, retry_policy, sleeps, credentials):
    mock_carrier.fail(AUTH_PATH, 429, headers={"Retry-After": "2"})

    token = await _client(mock_carrier, retry_policy).exchange(credentials)

    assert token == mock_carrier.access_token
    assert sleeps.delays == [2.0]


# ---------------------------------------------------------------------------
# Session handshake
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_handshake_sends_user_id_and_token(mock_carrier, retry_policy):
    session, policy_number = await _client(mock_carrier, retry_policy).handshake(mock_carrier.access_token)

    assert (session, policy_number) == ("S1", "P1")
    request = mock_carrier.requests[-1]
    assert json.loads(request.content) == {"userId": "user-123"}
    assert request.headers["authorization"] == mock_carrier.access_token


@pytest.mark.asyncio
async def test_handshake_uses_bearer_scheme_when_configured(mock_carrier, retry_policy):
    await _client(mock_carrier, retry_policy, auth_scheme="Bearer").handshake(mock_carrier.access_token)

    assert mock_carrier.requests[-1].headers["authorization"] == f"Bearer {mock_carrier.access_token}"


@pytest.mark.asyncio
async def test_handshake_with_undecodable_token_makes_no_call(mock_carrier, retry_policy):
    with pytest.raises(InvalidTokenFormat):
        await _client(mock_carrier, retry_policy).handshake("garbage")

    assert mock_carrier.total_calls() == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"data": {"policyNumber": "P1"}},
        {"data": {"session": "S1"}},
        {"data": {"session": "", "policyNumber": "P1"}},
        {},
    ],
)
async def test_handshake_requires_session_and_policy_number(mock_carrier, retry_policy, body):
    mock_carrier.respond_with(HANDSHAKE_PATH, body)

    with pytest.raises(MalformedResponse):
        await _client(mock_carrier, retry_policy).handshake(mock_carrier.access_token)

    assert mock_carrier.calls[HANDSHAKE_PATH] == 1


@pytest.mark.asyncio
async def test_each_phase_gets_its_own_attempt_budget(mock_carrier, retry_policy, sleeps, credentials):
    mock_carrier.fail(AUTH_PATH, 503, 503)
    mock_carrier.fail(HANDSHAKE_PATH, 502, 504)

    context = await _client(mock_carrier, retry_policy).get_session_context(credentials)

    assert context.is_complete()
    assert context.session_token == "S1"
    assert context.policy_number == "P1"
    assert mock_carrier.calls[AUTH_PATH] == 3
    assert mock_carrier.calls[HANDSHAKE_PATH] == 3
    assert sleeps.delays == [1.0, 2.0, 1.0, 2.0]
