"""
Mock Carrier: in-process carrier endpoints.

⚠️  This is a mock implementation for development and testing.
    It answers the three carrier endpoints (auth, handshake, policies) behind an
    httpx.MockTransport, so the real HTTP clients run unchanged against it.
    Failures can be scripted per endpoint via MockCarrier.fail().
"""

import base64
import copy
import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from carrier_gateway.integrations.contracts.policy import CarrierConfig

logger = logging.getLogger(__name__)

MOCK_CARRIER_BASE_URL = "https://mock-carrier.test"
AUTH_PATH = "/auth"
HANDSHAKE_PATH = "/handshake"
POLICIES_PATH = "/policies"


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------

_SAMPLE_POLICY: Dict[str, Any] = {
    "agreement": {
        "effectiveDate": "2024-03-01T00:00:00Z",
        "endDate": "2024-09-01T00:00:00Z",
        "displayNumber": "P1",
        "productLineCode": "A",
        "productDescriptionText": "Private Passenger Auto",
        "policyAddress": {
            "addressLine1": "123 MAIN ST",
            "city": "SACRAMENTO",
            "state": "ca",
            "postalCode": "95814-1234",
        },
    },
    "coverages": [
        {
            "name": "BODILY_INJURY",
            "lineDetails": [
                {"value": "Limit Per Person $100,000"},
                {"value": "Limit Per Accident $300,000"},
            ],
        },
        {
            "name": "COLLISION",
            "lineDetails": [{"value": "Deductible $500"}],
        },
        {
            "name": "UNINSURED_MOTOR_VEHICLE_CTGRY",
            "lineDetails": [
                {"value": "UE BI Uninsured Motorists Bodily Injury"},
                {"value": "Limit Per Person $50,000"},
                {"value": "Limit Per Accident $100,000"},
                {"value": "UE PD Uninsured Motorists Property Damage"},
                {"value": "Limit Per Accident $25,000"},
                {"value": "Deductible $250"},
            ],
        },
    ],
    "vehicle": {
        "bodyStyle": "sedan",
        "vin": "1HGCM82633A004352",
        "model": "ACCORD",
        "year": "2003",
        "make": "HONDA",
    },
}


def sample_policy_payload() -> Dict[str, Any]:
    return copy.deepcopy(_SAMPLE_POLICY)


def make_token(claims: Dict[str, Any]) -> str:
    """JWT-shaped token (unsigned) carrying ``claims`` in its second segment."""

    def _segment(data: Dict[str, Any]) -> str:
        raw = json.dumps(data, separators=(",", ":")).encode("utf-8")
        return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")

    return ".".join([_segment({"alg": "none", "typ": "JWT"}), _segment(claims), "mock-signature"])


class MockCarrier:
    def __init__(
        self,
        username: str = "demo",
        password: str = "demo-pass",
        user_id: str = "user-123",
        session_token: str = "S1",
        policy_number: str = "P1",
        policy: Optional[Dict[str, Any]] = None,
        base_url: str = MOCK_CARRIER_BASE_URL,
    ) -> None:
        self.username = username
        self.password = password
        self.user_id = user_id
        self.session_token = session_token
        self.policy_number = policy_number
        self.policy = policy if policy is not None else sample_policy_payload()
        self.base_url = base_url.rstrip("/")
        self.access_token = make_token({"userId": user_id})
        self.calls: Dict[str, int] = {AUTH_PATH: 0, HANDSHAKE_PATH: 0, POLICIES_PATH: 0}
        self.requests: List[httpx.Request] = []
        self._failures: Dict[str, List[Tuple[int, Dict[str, str], Dict[str, Any]]]] = {}
        self._overrides: Dict[str, Dict[str, Any]] = {}

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def config(self, auth_scheme: str = "") -> CarrierConfig:
        return CarrierConfig(
            auth_endpoint=f"{self.base_url}{AUTH_PATH}",
            handshake_endpoint=f"{self.base_url}{HANDSHAKE_PATH}",
            policy_endpoint=f"{self.base_url}{POLICIES_PATH}/",
            auth_scheme=auth_scheme,
        )

    def fail(
        self,
        path: str,
        *statuses: int,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> "MockCarrier":
        """Answer the next ``len(statuses)`` calls to ``path`` with these statuses."""
        queue = self._failures.setdefault(path, [])
        for status in statuses:
            queue.append((status, dict(headers or {}), dict(body or {"message": f"mock failure {status}"})))
        return self

    def respond_with(self, path: str, body: Dict[str, Any]) -> "MockCarrier":
        """Replace the success body for ``path``."""
        self._overrides[path] = body
        return self

    def total_calls(self) -> int:
        return sum(self.calls.values())

    # -- request handling --

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.rstrip("/") or "/"
        self.requests.append(request)
        if path in self.calls:
            self.calls[path] += 1
        logger.debug("Mock carrier received %s %s", request.method, path)

        queue = self._failures.get(path)
        if queue:
            status, headers, body = queue.pop(0)
            return httpx.Response(status, json=body, headers=headers)

        if path in self._overrides:
            return httpx.Response(200, json=self._overrides[path])

        payload = json.loads(request.content or b"{}")
        if path == AUTH_PATH:
            return self._authenticate(payload)
        if path == HANDSHAKE_PATH:
            return self._handshake(request, payload)
        if path == POLICIES_PATH:
            return self._policies(request, payload)
        return httpx.Response(404, json={"message": f"Unknown path {path}"})

    def _token_from(self, request: httpx.Request) -> str:
        value = request.headers.get("authorization", "")
        return value[len("Bearer "):] if value.startswith("Bearer ") else value

    def _authenticate(self, payload: Dict[str, Any]) -> httpx.Response:
        if payload.get("username") != self.username or payload.get("password") != self.password:
            return httpx.Response(401, json={"message": "Invalid credentials"})
        return httpx.Response(200, json={"data": {"accessToken": self.access_token}})

    def _handshake(self, request: httpx.Request, payload: Dict[str, Any]) -> httpx.Response:
        if self._token_from(request) != self.access_token:
            return httpx.Response(401, json={"message": "Invalid access token"})
        if payload.get("userId") != self.user_id:
            return httpx.Response(403, json={"message": "Unknown user"})
        return httpx.Response(
            200,
            json={"data": {"session": self.session_token, "policyNumber": self.policy_number}},
        )

    def _policies(self, request: httpx.Request, payload: Dict[str, Any]) -> httpx.Response:
        if self._token_from(request) != self.access_token:
            return httpx.Response(401, json={"message": "Invalid access token"})
        if request.headers.get("x-session-id") != self.session_token:
            return httpx.Response(403, json={"message": "Invalid session"})
        if payload.get("policyNumber") != self.policy_number:
            return httpx.Response(404, json={"message": "Policy not found"})
        return httpx.Response(200, json={"data": self.policy})
