"""
Field-level validators used by the policy normalizer.

Each helper takes one raw carrier value and returns the canonical value, or a
documented fallback. None of them raise on bad input.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timezone
from typing import Any, Optional

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
FIRST_PRODUCTION_CAR_YEAR = 1886
VIN_LENGTH = 17

_POSTAL_RE = re.compile(r"^\d{5}")
_YEAR_RE = re.compile(r"^\s*\d+\s*$")
_FRACTION_RE = re.compile(r"([T ]\d{2}:\d{2}:\d{2})\.(\d+)")

# Formats tried after ISO-8601.
_DATE_FORMATS = (
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M:%S",
    "%Y/%m/%d",
    "%b %d, %Y",
    "%B %d, %Y",
)

STATE_NAMES = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas", "CA": "California",
    "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware", "FL": "Florida", "GA": "Georgia",
    "HI": "Hawaii", "ID": "Idaho", "IL": "Illinois", "IN": "Indiana", "IA": "Iowa",
    "KS": "Kansas", "KY": "Kentucky", "LA": "Louisiana", "ME": "Maine", "MD": "Maryland",
    "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota", "MS": "Mississippi", "MO": "Missouri",
    "MT": "Montana", "NE": "Nebraska", "NV": "Nevada", "NH": "New Hampshire", "NJ": "New Jersey",
    "NM": "New Mexico", "NY": "New York", "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio",
    "OK": "Oklahoma", "OR": "Oregon", "PA": "Pennsylvania", "RI": "Rhode Island", "SC": "South Carolina",
    "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas", "UT": "Utah", "VT": "Vermont",
    "VA": "Virginia", "WA": "Washington", "WV": "West Virginia", "WI": "Wisconsin", "WY": "Wyoming",
}


def _iso_text(text: str) -> str:
    """Rewrite 'Z' as +00:00 and pad or cut fractional seconds to six digits."""
    text = text.replace("Z", "+00:00")
    return _FRACTION_RE.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", text, count=1)


def parse_date(value: Any) -> Optional[datetime]:
    """Parse a carrier date into an aware UTC datetime. Naive values are read as UTC."""
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, (int, float)):
        # Epoch milliseconds
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        parsed = None
        try:
            parsed = datetime.fromisoformat(_iso_text(text))
        except ValueError:
            for fmt in _DATE_FORMATS:
                try:
                    parsed = datetime.strptime(text, fmt)
                    break
                except ValueError:
                    continue
        if parsed is None:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def validate_date(value: Any) -> Optional[str]:
    parsed = parse_date(value)
    if parsed is None:
        return None
    return parsed.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_title_case(text: Any) -> str:
    """Uppercase the first character of the whole string, lowercase the rest.

    Only the first word is capitalized: "NEW YORK" becomes "New york".
    """
    if not isinstance(text, str) or not text:
        return ""
    return text[0].upper() + text[1:].lower()


def map_state_code(state_code: Any) -> str:
    if not isinstance(state_code, str):
        return "Invalid State Code"
    return STATE_NAMES.get(state_code.upper(), state_code)


def validate_postal_code(postal_code: Any) -> Optional[str]:
    if postal_code is None:
        return None
    match = _POSTAL_RE.match(postal_code if isinstance(postal_code, str) else str(postal_code))
    return match.group(0) if match else None


def validate_vin(vin: Any) -> str:
    return vin if isinstance(vin, str) and len(vin) == VIN_LENGTH else "INVALID_VIN"


def validate_year(year: Any, current_year: Optional[int] = None) -> str:
    if current_year is None:
        current_year = datetime.now(timezone.utc).year
    if isinstance(year, bool) or year is None:
        return "N/A"
    if isinstance(year, int):
        parsed = year
    elif isinstance(year, str) and _YEAR_RE.match(year):
        parsed = int(year)
    else:
        return "N/A"
    if FIRST_PRODUCTION_CAR_YEAR <= parsed <= current_year:
        return str(parsed)
    return "N/A"
