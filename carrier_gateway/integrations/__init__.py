"""
Integrations layer.
This package contains all code used to communicate with insurance carriers:
- carrier identity services (credential exchange, session handshake)
- carrier policy endpoints (raw policy documents)

Key rule:
- API routes MUST NOT call carrier endpoints directly.
- Routes call PolicyService, which drives the clients under integrations/clients.
- The in-process mock carrier is selected in ONE place (carrier_gateway/api/main.py).
"""

from .contracts.policy import (
    CanonicalPolicy,
    CarrierConfig,
    CoverageRecord,
    Credentials,
    PolicyAddress,
    PropertyRecord,
    SessionContext,
    VehicleDetails,
)

__all__ = [
    "CanonicalPolicy", "CarrierConfig", "CoverageRecord", "Credentials",
    "PolicyAddress", "PropertyRecord", "SessionContext", "VehicleDetails",
]
