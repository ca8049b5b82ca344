"""
Carrier Authentication HTTP Client.

Purpose:
- Exchanges end-user credentials for a carrier access token
- Performs the session handshake that yields a session token and policy number

Implementation notes:
- Both phases run under RetryPolicy, each with its own attempt budget
- The subject id is read from the access token payload, never from the caller
- Passwords and tokens are never logged in cleartext
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Optional, Tuple

import httpx

from carrier_gateway.error_handler import InvalidTokenFormat
from carrier_gateway.integrations.contracts.policy import CarrierConfig, Credentials, SessionContext
from carrier_gateway.integrations.policy.response_wrappers import (
    normalize_auth_response,
    normalize_handshake_response,
    read_json,
)
from carrier_gateway.integrations.policy.retry_policy import RetryPolicy

logger = logging.getLogger(__name__)


def mask_token(token: Optional[str]) -> str:
    if not token:
        return "<none>"
    return f"{token[:6]}…" if len(token) > 6 else "****"


def authorization_header(token: str, scheme: str = "Bearer") -> str:
    return f"{scheme} {token}" if scheme else token


def extract_subject(token: str) -> str:
    """
    Read ``userId`` (falling back to ``sub``) from the token's second segment.

    The segment is base64 JSON; the url-safe alphabet and missing padding are
    both accepted.
    """
    try:
        segment = token.split(".")[1]
        segment = segment.replace("-", "+").replace("_", "/")
        segment += "=" * (-len(segment) % 4)
        payload = json.loads(base64.b64decode(segment, validate=True).decode("utf-8"))
    except (AttributeError, IndexError, binascii.Error, UnicodeDecodeError, ValueError) as exc:
        logger.error("Error decoding token payload: %s", exc)
        raise InvalidTokenFormat() from exc

    if not isinstance(payload, dict):
        raise InvalidTokenFormat()

    subject = payload.get("userId") or payload.get("sub")
    if subject is None or subject == "":
        raise InvalidTokenFormat("Invalid token format. Token carries no userId or sub.")
    return str(subject)


class CarrierAuthClient:
    def __init__(
        self,
        config: CarrierConfig,
        retry_policy: Optional[RetryPolicy] = None,
        timeout_seconds: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport)

    async def exchange(self, credentials: Credentials) -> str:
        logger.info("Authenticating user %s at endpoint: %s", credentials.username, self.config.auth_endpoint)

        async def _call() -> str:
            payload = {
                "username": credentials.username,
                "password": credentials.password.get_secret_value(),
            }
            async with self._client() as client:
                response = await client.post(self.config.auth_endpoint, json=payload)
                response.raise_for_status()
                data = read_json(response, "Authentication")
            return normalize_auth_response(data)

        token = await self.retry_policy.execute(_call)
        logger.info("Authentication successful. Received auth token: %s", mask_token(token))
        return token

    async def handshake(self, access_token: str) -> Tuple[str, str]:
        user_id = extract_subject(access_token)
        logger.info("Performing handshake for userId %s at endpoint: %s", user_id, self.config.handshake_endpoint)
        headers = {"Authorization": authorization_header(access_token, self.config.auth_scheme)}

        async def _call() -> Tuple[str, str]:
            async with self._client() as client:
                response = await client.post(self.config.handshake_endpoint, json={"userId": user_id}, headers=headers)
                if response.is_error:
                    logger.error("Handshake error response: %s %s", response.status_code, response.text)
                response.raise_for_status()
                data = read_json(response, "Handshake")
            return normalize_handshake_response(data)

        session_token, policy_number = await self.retry_policy.execute(_call)
        logger.info("Handshake successful. Received session token: %s", mask_token(session_token))
        return session_token, policy_number

    async def get_session_context(self, credentials: Credentials) -> SessionContext:
        access_token = await self.exchange(credentials)
        session_token, policy_number = await self.handshake(access_token)
        return SessionContext(
            access_token=access_token,
            session_token=session_token,
            policy_number=policy_number,
        )
