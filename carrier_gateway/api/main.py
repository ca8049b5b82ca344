"""
FastAPI application - Main entry point
"""

from dotenv import load_dotenv

load_dotenv()

import logging
import os
import time
from typing import Any, Dict, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import SecretStr

from carrier_gateway.error_handler import ErrorHandler, RequestValidationFailed, UnsupportedCarrier
from carrier_gateway.integrations.clients.mocks.mock_carrier import MockCarrier
from carrier_gateway.integrations.contracts.policy import CanonicalPolicy, Credentials
from carrier_gateway.integrations.policy.policy_service import PolicyService
from carrier_gateway.integrations.policy.retry_policy import RetryPolicy
from carrier_gateway.utils.config_loader import GatewayConfig, load_gateway_config

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _use_mock_carrier() -> bool:
    return os.getenv("INTEGRATIONS_MODE", "").strip().lower() in {"mock", "test"}


async def _read_payload(request: Request) -> Dict[str, Any]:
    """JSON object body of ``request``; anything else reads as an empty body."""
    try:
        payload = await request.json()
    except ValueError:
        logger.info("Request body is missing or not valid JSON.")
        return {}
    return payload if isinstance(payload, dict) else {}


def _credential(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def create_app(
    config: GatewayConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    retry_policy: Optional[RetryPolicy] = None,
) -> FastAPI:
    app = FastAPI(
        title="Carrier Policy Gateway",
        description="Fetches carrier policies and returns them in one canonical schema",
        version="1.0.0",
    )
    policy_service = PolicyService(config, retry_policy=retry_policy, transport=transport)
    error_handler = ErrorHandler()
    app.state.config = config
    app.state.policy_service = policy_service

    def _error_response(exc: Exception, context: Optional[Dict[str, Any]] = None) -> JSONResponse:
        body = error_handler.handle_exception(exc, context=context)
        return JSONResponse(status_code=error_handler.status_for(exc), content=body)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.errors())
        return _error_response(RequestValidationFailed("Invalid request."), context={"path": request.url.path})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        return _error_response(exc, context={"path": request.url.path})

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s -> %s (%.1fms)", request.method, request.url.path, response.status_code, elapsed_ms)
        return response

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"status": "ok", "carriers": sorted(config.carriers)}

    @app.post("/{carrier}/policies", response_model=CanonicalPolicy)
    async def fetch_policies(carrier: str, request: Request):
        logger.info("Received request on /%s/policies", carrier)

        if not policy_service.supports(carrier):
            logger.info("Configuration for carrier '%s' not found.", carrier)
            return _error(404, UnsupportedCarrier(carrier).message)

        payload = await _read_payload(request)
        username = _credential(payload.get("username"))
        password = _credential(payload.get("password"))
        logger.info(
            "Request body - Username: %s, Password: %s",
            username,
            "****" if password else "Not provided",
        )
        if not username or not password:
            logger.info("Missing username or password in request.")
            return _error(400, RequestValidationFailed().message)

        credentials = Credentials(username=username, password=SecretStr(password))
        try:
            policy = await policy_service.get_policy(carrier, credentials)
        except Exception as exc:
            return _error_response(exc, context={"carrier": carrier, "username": credentials.username})

        logger.info("Data transformation complete. Sending response to client.")
        return policy

    return app


def build_default_app() -> FastAPI:
    config = load_gateway_config()
    if not _use_mock_carrier():
        return create_app(config)

    mock_carrier = MockCarrier()
    logger.warning("INTEGRATIONS_MODE=mock: serving 'mock-carrier' from the in-process mock carrier.")
    config = config.model_copy(update={"carriers": {"mock-carrier": mock_carrier.config()}})
    return create_app(config, transport=mock_carrier.transport)


app = build_default_app()
