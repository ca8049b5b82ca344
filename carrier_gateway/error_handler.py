"""Error taxonomy and JSON error envelope for the carrier gateway."""
from typing import Any, Dict, Optional
import logging

import httpx

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Base class for failures surfaced to the gateway caller."""

    status_code = 500
    default_message = "An unexpected error occurred."

    def __init__(self, message: Optional[str] = None, *, status_code: Optional[int] = None) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class RequestValidationFailed(GatewayError):
    status_code = 400
    default_message = "Username and password are required"


class UnsupportedCarrier(GatewayError):
    status_code = 404

    def __init__(self, carrier: str) -> None:
        self.carrier = carrier
        super().__init__(f"Unsupported carrier: {carrier}")


class InvalidCredentials(GatewayError):
    status_code = 401
    default_message = "Authentication failed: invalid username or password."


class RateLimited(GatewayError):
    status_code = 429
    default_message = "Rate limited by carrier. Please try again later."


class ServiceUnavailable(GatewayError):
    status_code = 503
    default_message = "Service temporarily unavailable. Please try again later."


class MalformedResponse(GatewayError):
    status_code = 502
    default_message = "Carrier returned an unexpected response."


class InvalidTokenFormat(GatewayError):
    status_code = 502
    default_message = "Invalid token format. Could not extract userId."


class ErrorHandler:
    @staticmethod
    def status_for(exc: Exception) -> int:
        if isinstance(exc, GatewayError):
            return exc.status_code
        # Carrier answered with an error, or could not be reached.
        if isinstance(exc, (httpx.HTTPStatusError, httpx.RequestError)):
            return 502
        return getattr(exc, "status_code", None) or 500

    def handle_exception(self, exc: Exception, context: Dict[str, Any] = None) -> Dict[str, Any]:
        """Log ``exc`` and build the ``{"error": {message, statusCode}}`` envelope."""
        status_code = self.status_for(exc)
        message = str(exc) or "An unexpected error occurred."

        if isinstance(exc, GatewayError):
            logger.error("Policy request failed (%s): %s context=%s", status_code, message, context or {})
        else:
            logger.error("Unhandled exception in policy pipeline: %s", exc, exc_info=True)

        return {
            "error": {
                "message": message,
                "statusCode": status_code,
            }
        }
