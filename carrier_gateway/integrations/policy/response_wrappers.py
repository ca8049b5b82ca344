from __future__ import annotations

from typing import Any, Dict, Tuple

import httpx

from carrier_gateway.error_handler import MalformedResponse


def read_json(response: httpx.Response, label: str) -> Dict[str, Any]:
    try:
        data = response.json() if response.content else {}
    except ValueError as exc:
        raise MalformedResponse(f"{label} failed: response body is not valid JSON.") from exc
    if not isinstance(data, dict):
        raise MalformedResponse(f"{label} failed: response body is not a JSON object.")
    return data


def require_field(data: Dict[str, Any], *path: str, message: str) -> Any:
    """Walk ``path`` through nested dicts; raise MalformedResponse if any step is missing or empty."""
    node: Any = data
    for key in path:
        if not isinstance(node, dict):
            raise MalformedResponse(message)
        node = node.get(key)
        if node is None:
            raise MalformedResponse(message)
        if isinstance(node, str) and not node.strip():
            raise MalformedResponse(message)
    return node


def normalize_auth_response(raw: Dict[str, Any]) -> str:
    token = require_field(raw, "data", "accessToken", message="Authentication failed: auth token missing in response.")
    return str(token)


def normalize_handshake_response(raw: Dict[str, Any]) -> Tuple[str, str]:
    session = require_field(raw, "data", "session", message="Handshake failed: session token missing in response.")
    policy_number = require_field(
        raw, "data", "policyNumber", message="Handshake failed: policy number missing in response."
    )
    return str(session), str(policy_number)


def normalize_policy_response(raw: Dict[str, Any]) -> Dict[str, Any]:
    data = require_field(raw, "data", message="Policy fetch failed: policy data missing in response.")
    if not isinstance(data, dict):
        raise MalformedResponse("Policy fetch failed: policy data is not an object.")
    agreement = data.get("agreement")
    if not isinstance(agreement, dict):
        raise MalformedResponse("Policy fetch failed: agreement missing in policy data.")
    return data
