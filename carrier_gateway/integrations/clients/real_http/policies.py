"""
Carrier Policy HTTP Client.

Fetches the raw policy document for a completed session. Single attempt: any
failure propagates to the caller and stops the request.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from carrier_gateway.error_handler import MalformedResponse
from carrier_gateway.integrations.clients.real_http.auth import authorization_header
from carrier_gateway.integrations.contracts.policy import CarrierConfig, SessionContext
from carrier_gateway.integrations.policy.response_wrappers import normalize_policy_response, read_json

logger = logging.getLogger(__name__)


class PolicyClient:
    def __init__(
        self,
        config: CarrierConfig,
        timeout_seconds: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self.policy_endpoint = config.policy_endpoint.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    async def fetch(self, context: SessionContext) -> Dict[str, Any]:
        if not context.is_complete():
            raise MalformedResponse("Session context is incomplete; refusing to fetch policy.")

        headers = {
            "Authorization": authorization_header(context.access_token, self.config.auth_scheme),
            "X-SESSION-ID": context.session_token,
        }
        try:
            logger.info("Fetching policy %s from %s", context.policy_number, self.policy_endpoint)
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport) as client:
                response = await client.post(
                    self.policy_endpoint,
                    json={"policyNumber": context.policy_number},
                    headers=headers,
                )
                response.raise_for_status()
                data = read_json(response, "Policy fetch")
        except httpx.HTTPStatusError as e:
            logger.error("Failed to fetch policies: %s %s", e.response.status_code, e.response.text)
            raise
        except httpx.RequestError as e:
            logger.error("Request error connecting to policy endpoint: %s", e)
            raise

        policy = normalize_policy_response(data)
        logger.info("Policies fetched successfully")
        return policy
