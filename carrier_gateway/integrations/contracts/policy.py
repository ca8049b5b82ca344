"""
Policy contracts.

Defines the shapes exchanged with carriers and returned to gateway callers:
- Credentials and SessionContext (request-scoped, never persisted)
- CarrierConfig (static endpoints per carrier identifier)
- CanonicalPolicy and its parts (the carrier-agnostic output schema)

Raw carrier payloads stay plain dicts; only the normalizer reads them.
Canonical models use snake_case attributes and serialize camelCase.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr
from pydantic.alias_generators import to_camel


# ---------------------------------------------------------------------------
# Request-scoped models
# ---------------------------------------------------------------------------

class Credentials(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str
    password: SecretStr


@dataclass(frozen=True)
class SessionContext:
    access_token: str
    session_token: str
    policy_number: str

    def is_complete(self) -> bool:
        return bool(self.access_token and self.session_token and self.policy_number)


class CarrierConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    auth_endpoint: str
    handshake_endpoint: str
    policy_endpoint: str
    auth_scheme: str = "Bearer"


# ---------------------------------------------------------------------------
# Canonical output
# ---------------------------------------------------------------------------

class CanonicalModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PolicyAddress(CanonicalModel):
    address_line1: str = "N/A"
    address_line2: Optional[str] = None
    city: str = "N/A"
    state: str = "N/A"
    postal_code: Optional[str] = None
    country: str = "USA"


class CoverageRecord(CanonicalModel):
    code: str
    label: str
    deductible: Optional[int] = None
    limit_per_accident: Optional[int] = None
    limit_per_person: Optional[int] = None

    def has_amounts(self) -> bool:
        return any(v is not None for v in (self.deductible, self.limit_per_accident, self.limit_per_person))


class VehicleDetails(CanonicalModel):
    body_style: str = "N/A"
    vin: str = "INVALID_VIN"
    model: str = "N/A"
    year: str = "N/A"
    make: str = "N/A"


class PropertyRecord(CanonicalModel):
    type: str = "vehicle"
    data: VehicleDetails = Field(default_factory=VehicleDetails)


class CanonicalPolicy(CanonicalModel):
    carrier: str = "unknown"
    type: str = "unknown"
    policy_number: str = "N/A"
    is_active: bool = False
    effective_date: Optional[str] = None
    expiration_date: Optional[str] = None
    address: PolicyAddress = Field(default_factory=PolicyAddress)
    coverages: List[CoverageRecord] = Field(default_factory=list)
    properties: List[PropertyRecord] = Field(default_factory=list)
