"""
Carrier policy normalizer.

Maps a raw carrier policy document (plain dict, camelCase keys as sent by the
carrier) into the canonical policy schema. No I/O; the only input besides the
payload is the clock, which callers may pin with ``now``.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from carrier_gateway.integrations.contracts.policy import (
    CanonicalPolicy,
    CoverageRecord,
    PolicyAddress,
    PropertyRecord,
    VehicleDetails,
)
from carrier_gateway.processors.field_validators import (
    EPOCH,
    format_title_case,
    map_state_code,
    parse_date,
    validate_date,
    validate_postal_code,
    validate_vin,
    validate_year,
)

logger = logging.getLogger(__name__)

POLICY_TYPES = {
    "A": "auto",
    "H": "home",
    "L": "life",
    "B": "business",
}

COVERAGE_CODES = {
    "BODILY_INJURY": ("BI", "Bodily Injury Liability"),
    "PROPERTY_DAMAGE": ("PD", "Property Damage Liability"),
    "MEDICAL_PAYMENTS": ("MED", "Medical Payments"),
    "EMERGENCY_ROAD_SERVICE": ("ERS", "Emergency Road Service"),
    "CAR_RENTAL": ("REN", "Car Rental"),
    "COMPREHENSIVE": ("COMP", "Comprehensive"),
    "COLLISION": ("COLL", "Collision"),
}
UNKNOWN_COVERAGE = ("UNKNOWN", "Unknown Coverage")

UNINSURED_MOTORIST_CATEGORY = "UNINSURED_MOTOR_VEHICLE_CTGRY"
UMBI = ("UMBI", "Uninsured Motorists Bodily Injury Liability")
UMPD = ("UMPD", "Uninsured Motorists Property Damage Liability")

BODILY_INJURY_TERMS = ("UE BI ", "Bodily Injury")
PROPERTY_DAMAGE_TERMS = ("UE PD ", "Property Damage")

DEDUCTIBLE = "Deductible"
LIMIT_PER_ACCIDENT = "Limit Per Accident"
LIMIT_PER_PERSON = "Limit Per Person"

# The UMPD deductible has always been read from the bodily-injury details.
# Pending product clarification, flip to False to read it from the UMPD details.
UMPD_DEDUCTIBLE_FROM_UMBI_DETAILS = True

_AMOUNT_RE = re.compile(r"\$([0-9,]+)")


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _text(detail: Any) -> str:
    value = _as_dict(detail).get("value")
    return value if isinstance(value, str) else ""


def _is_present(value: Any) -> bool:
    # Empty lists and objects still count; only null, "", 0 and false do not.
    return value not in (None, "", 0, False)


def _address_text(value: Any) -> Optional[str]:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return None
    return str(value) or None


def determine_policy_type(agreement: Dict[str, Any]) -> str:
    agreement = _as_dict(agreement)
    product_line_code = agreement.get("productLineCode")
    if isinstance(product_line_code, str) and product_line_code in POLICY_TYPES:
        return POLICY_TYPES[product_line_code]

    description = agreement.get("productDescriptionText")
    if isinstance(description, str) and "PRIVATE PASSENGER" in description.upper():
        return "auto"
    if _is_present(agreement.get("vehicles")):
        return "auto"
    return "unknown"


def is_active(effective_date: Optional[str], expiration_date: Optional[str], now: Optional[datetime] = None) -> bool:
    """Inclusive window check; a missing bound compares as the Unix epoch."""
    now = now or datetime.now(timezone.utc)
    start = parse_date(effective_date) or EPOCH
    end = parse_date(expiration_date) or EPOCH
    return start <= now <= end


def map_address(address: Optional[Dict[str, Any]] = None) -> PolicyAddress:
    address = _as_dict(address)
    state = address.get("state")
    return PolicyAddress(
        address_line1=_address_text(address.get("addressLine1")) or "N/A",
        address_line2=_address_text(address.get("addressLine2")),
        city=format_title_case(address.get("city")) or "N/A",
        state=map_state_code(state) if state not in (None, "") else "N/A",
        postal_code=validate_postal_code(address.get("postalCode")),
        country=_address_text(address.get("country")) or "USA",
    )


def extract_amount(line_details: Any, key_phrase: str) -> Optional[int]:
    """First dollar amount on the first detail line mentioning ``key_phrase``."""
    if not isinstance(line_details, list):
        return None

    for detail in line_details:
        text = _text(detail)
        if key_phrase not in text:
            continue
        match = _AMOUNT_RE.search(text)
        if match:
            digits = match.group(1).replace(",", "")
            if digits:
                return int(digits)
    return None


def _split_uninsured_details(line_details: Iterable[Any]):
    umbi_details: List[Any] = []
    umpd_details: List[Any] = []
    context: Optional[str] = None

    for detail in line_details:
        text = _text(detail)
        if any(term in text for term in BODILY_INJURY_TERMS):
            context = "UMBI"
            umbi_details.append(detail)
        elif any(term in text for term in PROPERTY_DAMAGE_TERMS):
            context = "UMPD"
            umpd_details.append(detail)
        elif LIMIT_PER_ACCIDENT in text:
            if context == "UMBI":
                umbi_details.append(detail)
            elif context == "UMPD":
                umpd_details.append(detail)
        elif LIMIT_PER_PERSON in text and context == "UMBI":
            umbi_details.append(detail)
        elif DEDUCTIBLE in text and context == "UMPD":
            umpd_details.append(detail)

    return umbi_details, umpd_details


def _map_uninsured_coverage(line_details: Any) -> List[CoverageRecord]:
    if not isinstance(line_details, list):
        line_details = []
    umbi_details, umpd_details = _split_uninsured_details(line_details)

    umbi = CoverageRecord(
        code=UMBI[0],
        label=UMBI[1],
        deductible=extract_amount(umbi_details, DEDUCTIBLE),
        limit_per_accident=extract_amount(umbi_details, LIMIT_PER_ACCIDENT),
        limit_per_person=extract_amount(umbi_details, LIMIT_PER_PERSON),
    )
    umpd = CoverageRecord(
        code=UMPD[0],
        label=UMPD[1],
        deductible=extract_amount(
            umbi_details if UMPD_DEDUCTIBLE_FROM_UMBI_DETAILS else umpd_details, DEDUCTIBLE
        ),
        limit_per_accident=extract_amount(umpd_details, LIMIT_PER_ACCIDENT),
    )
    return [record for record in (umbi, umpd) if record.has_amounts()]


def map_coverage(coverage: Optional[Dict[str, Any]] = None) -> List[CoverageRecord]:
    coverage = _as_dict(coverage)
    name = coverage.get("name")
    line_details = coverage.get("lineDetails")

    if name == UNINSURED_MOTORIST_CATEGORY:
        return _map_uninsured_coverage(line_details)

    code, label = COVERAGE_CODES.get(name, UNKNOWN_COVERAGE) if isinstance(name, str) else UNKNOWN_COVERAGE
    return [
        CoverageRecord(
            code=code,
            label=label,
            deductible=extract_amount(line_details, DEDUCTIBLE),
            limit_per_accident=extract_amount(line_details, LIMIT_PER_ACCIDENT),
            limit_per_person=extract_amount(line_details, LIMIT_PER_PERSON),
        )
    ]


def map_vehicle(vehicle: Optional[Dict[str, Any]] = None, current_year: Optional[int] = None) -> PropertyRecord:
    vehicle = _as_dict(vehicle)
    body_style = vehicle.get("bodyStyle")
    return PropertyRecord(
        type="vehicle",
        data=VehicleDetails(
            body_style=body_style.upper() if isinstance(body_style, str) and body_style else "N/A",
            vin=validate_vin(vehicle.get("vin")),
            model=format_title_case(vehicle.get("model")) or "N/A",
            year=validate_year(vehicle.get("year"), current_year),
            make=format_title_case(vehicle.get("make")) or "N/A",
        ),
    )


def normalize(raw: Dict[str, Any], carrier_id: Optional[str], now: Optional[datetime] = None) -> CanonicalPolicy:
    """Map one raw carrier policy document onto ``CanonicalPolicy``."""
    now = now or datetime.now(timezone.utc)
    raw = _as_dict(raw)
    agreement = _as_dict(raw.get("agreement"))

    effective_date = validate_date(agreement.get("effectiveDate"))
    expiration_date = validate_date(agreement.get("endDate"))
    coverages = raw.get("coverages")

    policy = CanonicalPolicy(
        carrier=carrier_id or "unknown",
        type=determine_policy_type(agreement),
        policy_number=str(agreement.get("displayNumber") or "N/A"),
        is_active=is_active(effective_date, expiration_date, now),
        effective_date=effective_date,
        expiration_date=expiration_date,
        address=map_address(agreement.get("policyAddress")),
        coverages=[record for item in coverages for record in map_coverage(item)] if isinstance(coverages, list) else [],
        properties=[map_vehicle(raw.get("vehicle"), now.year)],
    )
    logger.debug("Normalized policy %s for carrier %s", policy.policy_number, policy.carrier)
    return policy
