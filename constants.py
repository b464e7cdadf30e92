"""
Canonical shared constants for the fleet ledger server.

Lookup seeds, insurance classification markers and the role tables used by
fleet analysis all live here so services and migrations agree on them.
"""

from typing import Any, Dict, List, Tuple

# ---------------------------------------------------------------------------
# Insurance tiers
# ---------------------------------------------------------------------------

INSURANCE_TYPES: List[Dict[str, Any]] = [
    {"id": 1, "key": "lti", "label": "Lifetime Insurance", "duration_months": None, "is_lifetime": True},
    {"id": 2, "key": "120_month", "label": "120-Month Insurance", "duration_months": 120, "is_lifetime": False},
    {"id": 3, "key": "72_month", "label": "72-Month Insurance", "duration_months": 72, "is_lifetime": False},
    {"id": 4, "key": "6_month", "label": "6-Month Insurance", "duration_months": 6, "is_lifetime": False},
    {"id": 5, "key": "3_month", "label": "3-Month Insurance", "duration_months": 3, "is_lifetime": False},
    {"id": 6, "key": "standard", "label": "Standard Insurance", "duration_months": None, "is_lifetime": False},
    {"id": 7, "key": "unknown", "label": "Unknown Insurance", "duration_months": None, "is_lifetime": False},
]

INSURANCE_LIFETIME_KEY = "lti"
INSURANCE_UNKNOWN_KEY = "unknown"

# Checked in order: a longer duration marker must come before any marker that
# could match inside it ("120" contains "12", "72" contains "2").
INSURANCE_MARKERS: List[Tuple[Tuple[str, ...], str]] = [
    (("120",), "120_month"),
    (("72",), "72_month"),
    (("6 month", "6-month"), "6_month"),
    (("3 month", "3-month"), "3_month"),
    (("standard",), "standard"),
]

# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------

PREFIX_MATCH_MIN_LENGTH = 3

HANGAR_SOURCE_SETTING = "hangar_source"
LAST_IMPORT_SETTING = "last_import_at"
HANGARXPLOR_SOURCE = "hangarxplor"

# ---------------------------------------------------------------------------
# Fleet analysis
# ---------------------------------------------------------------------------

ROLE_MAPPING: List[Tuple[str, str]] = [
    ("Snub Fighter", "Snub"),
    ("Heavy Fighter", "Combat"),
    ("Light Fighter", "Combat"),
    ("Stealth Fighter", "Combat"),
    ("Fighter", "Combat"),
    ("Interdiction", "Combat"),
    ("Bomber", "Combat"),
    ("Gunship", "Combat"),
    ("Corvette", "Combat"),
    ("Frigate", "Combat"),
    ("Destroyer", "Combat"),
    ("Carrier", "Combat"),
    ("Dropship", "Combat"),
    ("Combat", "Combat"),
    ("Mining", "Industrial"),
    ("Salvage", "Industrial"),
    ("Refinery", "Industrial"),
    ("Construction", "Industrial"),
    ("Repair", "Industrial"),
    ("Freight", "Transport"),
    ("Cargo", "Transport"),
    ("Transport", "Transport"),
    ("Refueling", "Transport"),
    ("Medical", "Medical"),
    ("Exploration", "Exploration"),
    ("Pathfinder", "Exploration"),
    ("Expedition", "Exploration"),
    ("Science", "Exploration"),
    ("Data", "Exploration"),
    ("Racing", "Racing"),
    ("Competition", "Racing"),
    ("Touring", "Civilian"),
    ("Luxury", "Civilian"),
    ("Passenger", "Civilian"),
    ("Starter", "Civilian"),
    ("Multi-Role", "Multi-Role"),
    ("Modular", "Multi-Role"),
    ("Ground", "Ground Vehicle"),
    ("Reporting", "Support"),
    ("EW", "Support"),
    ("Support", "Support"),
]

UNCATEGORISED_ROLE = "Uncategorised"
UNKNOWN_SIZE_LABEL = "Unknown"
FLIGHT_READY_STATUS = "flight_ready"

CRITICAL_ROLES: List[Dict[str, Any]] = [
    {
        "role": "Dedicated Mining",
        "match_terms": ["mining"],
        "priority": "high",
        "description": "No dedicated mining ship. Mining is one of the most profitable gameplay loops.",
        "suggestions": ["MOLE", "Prospector"],
    },
    {
        "role": "Refueling",
        "match_terms": ["refueling"],
        "priority": "high",
        "description": "No refueling capability for extended operations and fleet support.",
        "suggestions": ["Starfarer", "Vulcan"],
    },
    {
        "role": "Repair",
        "match_terms": ["repair"],
        "priority": "medium",
        "description": "No dedicated repair ship for field maintenance.",
        "suggestions": ["Vulcan", "Crucible"],
    },
    {
        "role": "Data Running",
        "match_terms": ["data"],
        "priority": "low",
        "description": "No data running capability for information-based gameplay.",
        "suggestions": ["Mercury Star Runner", "Herald"],
    },
    {
        "role": "Stealth / EW",
        "match_terms": ["stealth", "ew", "electronic warfare"],
        "priority": "medium",
        "description": "Limited stealth and electronic warfare capabilities.",
        "suggestions": ["Eclipse", "Sabre", "Vanguard Sentinel"],
    },
    {
        "role": "Dedicated Bomber",
        "match_terms": ["bomber"],
        "priority": "low",
        "description": "No dedicated torpedo or bomb delivery platform.",
        "suggestions": ["Eclipse", "Retaliator Bomber", "A2 Hercules"],
    },
    {
        "role": "Passenger Transport",
        "match_terms": ["passenger", "touring"],
        "priority": "low",
        "description": "No passenger transport capability.",
        "suggestions": ["E1 Spirit", "Genesis Starliner"],
    },
]
