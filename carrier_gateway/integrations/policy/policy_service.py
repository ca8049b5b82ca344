"""
Policy Service

Runs one policy request end to end:
exchange credentials -> session handshake -> fetch policy -> normalize.

Each stage returns its result explicitly; nothing is shared between requests.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

import httpx

from carrier_gateway.error_handler import UnsupportedCarrier
from carrier_gateway.integrations.clients.real_http.auth import CarrierAuthClient
from carrier_gateway.integrations.clients.real_http.policies import PolicyClient
from carrier_gateway.integrations.contracts.policy import CanonicalPolicy, Credentials
from carrier_gateway.integrations.policy.retry_policy import RetryPolicy
from carrier_gateway.processors.policy_normalizer import normalize
from carrier_gateway.utils.config_loader import GatewayConfig

logger = logging.getLogger(__name__)


class PolicyService:
    def __init__(
        self,
        config: GatewayConfig,
        retry_policy: Optional[RetryPolicy] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self.retry_policy = retry_policy or RetryPolicy(max_attempts=config.max_attempts)
        self.transport = transport

    def supports(self, carrier: str) -> bool:
        return self.config.get_carrier(carrier) is not None

    async def get_policy(
        self,
        carrier: str,
        credentials: Credentials,
        now: Optional[datetime] = None,
    ) -> CanonicalPolicy:
        carrier_config = self.config.get_carrier(carrier)
        if carrier_config is None:
            raise UnsupportedCarrier(carrier)

        auth_client = CarrierAuthClient(
            carrier_config,
            retry_policy=self.retry_policy,
            timeout_seconds=self.config.request_timeout_seconds,
            transport=self.transport,
        )
        session = await auth_client.get_session_context(credentials)

        policy_client = PolicyClient(
            carrier_config,
            timeout_seconds=self.config.request_timeout_seconds,
            transport=self.transport,
        )
        raw_policy = await policy_client.fetch(session)

        logger.info("Transforming policy data for carrier %s", carrier)
        return normalize(raw_policy, carrier, now=now)
