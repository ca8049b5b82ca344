import json

import httpx
import pytest

from carrier_gateway.error_handler import MalformedResponse
from carrier_gateway.integrations.clients.mocks.mock_carrier import POLICIES_PATH
from carrier_gateway.integrations.clients.real_http.policies import PolicyClient
from carrier_gateway.integrations.contracts.policy import SessionContext


def _context(mock_carrier):
    return SessionContext(
        access_token=mock_carrier.access_token,
        session_token=mock_carrier.session_token,
        policy_number=mock_carrier.policy_number,
    )


@pytest.mark.asyncio
async def test_fetch_returns_policy_data(mock_carrier):
    client = PolicyClient(mock_carrier.config(), transport=mock_carrier.transport)

    policy = await client.fetch(_context(mock_carrier))

    assert policy["agreement"]["displayNumber"] == "P1"
    request = mock_carrier.requests[-1]
    assert request.url.path == POLICIES_PATH
    assert request.headers["authorization"] == mock_carrier.access_token
    assert request.headers["x-session-id"] == "S1"
    assert json.loads(request.content) == {"policyNumber": "P1"}


@pytest.mark.asyncio
async def test_fetch_is_single_attempt(mock_carrier):
    mock_carrier.fail(POLICIES_PATH, 503)
    client = PolicyClient(mock_carrier.config(), transport=mock_carrier.transport)

    with pytest.raises(httpx.HTTPStatusError) as excinfo:
        await client.fetch(_context(mock_carrier))

    assert excinfo.value.response.status_code == 503
    assert mock_carrier.calls[POLICIES_PATH] == 1


@pytest.mark.asyncio
async def test_fetch_rejects_incomplete_session(mock_carrier):
    client = PolicyClient(mock_carrier.config(), transport=mock_carrier.transport)
    context = SessionContext(access_token=mock_carrier.access_token, session_token="", policy_number="P1")

    with pytest.raises(MalformedResponse):
        await client.fetch(context)

    assert mock_carrier.total_calls() == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{}, {"data": None}, {"data": "text"}, {"data": {"coverages": []}}])
async def test_fetch_requires_agreement(mock_carrier, body):
    mock_carrier.respond_with(POLICIES_PATH, body)
    client = PolicyClient(mock_carrier.config(), transport=mock_carrier.transport)

    with pytest.raises(MalformedResponse):
        await client.fetch(_context(mock_carrier))


@pytest.mark.asyncio
async def test_fetch_propagates_connection_errors(mock_carrier):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = PolicyClient(mock_carrier.config(), transport=httpx.MockTransport(refuse))

    with pytest.raises(httpx.ConnectError):
        await client.fetch(_context(mock_carrier))
