"""
Fleet analysis: gap and redundancy report over a user's fleet.

Pure functions over fleet entry payloads (see fleet_repository.fleet_entry_payload).
Provisional catalog rows carry no focus or size yet, so they land in the
'Uncategorised' / 'Unknown' buckets until a sync enriches them.
"""

from typing import Any, Dict, List

from constants import (
    CRITICAL_ROLES,
    FLIGHT_READY_STATUS,
    ROLE_MAPPING,
    UNCATEGORISED_ROLE,
    UNKNOWN_SIZE_LABEL,
)


def _display_name(entry: Dict[str, Any]) -> str:
    name = str(entry.get("vehicle_name") or "")
    custom = str(entry.get("custom_name") or "")
    if custom:
        return f'{name} "{custom}"'
    return name


def role_category(focus: Any) -> str:
    text = str(focus or "").strip().lower()
    if not text:
        return UNCATEGORISED_ROLE
    for key, category in ROLE_MAPPING:
        if key.lower() in text:
            return category
    return UNCATEGORISED_ROLE


def build_overview(fleet: List[Dict[str, Any]]) -> Dict[str, Any]:
    overview = {
        "total_vehicles": len(fleet),
        "total_cargo": 0.0,
        "total_pledge_value": 0.0,
        "min_crew": 0,
        "max_crew": 0,
        "flight_ready": 0,
        "in_concept": 0,
        "provisional": 0,
        "lti_count": 0,
        "non_lti_count": 0,
    }
    for entry in fleet:
        overview["total_cargo"] += float(entry.get("cargo") or 0.0)
        overview["total_pledge_value"] += float(entry.get("pledge_price") or 0.0)
        overview["min_crew"] += int(entry.get("crew_min") or 0)
        overview["max_crew"] += int(entry.get("crew_max") or 0)
        if entry.get("production_status") == FLIGHT_READY_STATUS:
            overview["flight_ready"] += 1
        else:
            overview["in_concept"] += 1
        if entry.get("is_provisional"):
            overview["provisional"] += 1
        if entry.get("is_lifetime"):
            overview["lti_count"] += 1
        else:
            overview["non_lti_count"] += 1
    return overview


def build_size_distribution(fleet: List[Dict[str, Any]]) -> Dict[str, int]:
    dist: Dict[str, int] = {}
    for entry in fleet:
        size = str(entry.get("size_label") or "") or UNKNOWN_SIZE_LABEL
        dist[size] = dist.get(size, 0) + 1
    return dist


def build_role_categories(fleet: List[Dict[str, Any]]) -> Dict[str, List[str]]:
    categories: Dict[str, List[str]] = {}
    for entry in fleet:
        categories.setdefault(role_category(entry.get("focus")), []).append(_display_name(entry))
    return categories


def build_gap_analysis(fleet: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    owned_focuses = {str(e.get("focus") or "").lower() for e in fleet if e.get("focus")}
    gaps: List[Dict[str, Any]] = []
    for role in CRITICAL_ROLES:
        covered = any(term in focus for term in role["match_terms"] for focus in owned_focuses)
        if covered:
            continue
        gaps.append(
            {
                "role": role["role"],
                "priority": role["priority"],
                "description": role["description"],
                "suggestions": list(role["suggestions"]),
            }
        )
    return gaps


def build_redundancies(fleet: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    by_focus: Dict[str, List[str]] = {}
    for entry in fleet:
        focus = str(entry.get("focus") or "") or "Unknown"
        by_focus.setdefault(focus, []).append(_display_name(entry))
    return [
        {"role": focus, "ships": ships}
        for focus, ships in sorted(by_focus.items())
        if len(ships) > 1
    ]


def build_insurance_summary(fleet: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    summary: Dict[str, List[Dict[str, Any]]] = {"lti": [], "non_lti": [], "unknown": []}
    for entry in fleet:
        item = {
            "ship_name": entry.get("vehicle_name"),
            "custom_name": entry.get("custom_name") or "",
            "insurance": entry.get("insurance_label"),
            "warbond": bool(entry.get("warbond")),
            "pledge_name": entry.get("pledge_name"),
            "pledge_cost": entry.get("pledge_cost"),
            "pledge_date": entry.get("pledge_date"),
        }
        if entry.get("is_lifetime"):
            summary["lti"].append(item)
        elif entry.get("insurance_key") in (None, "unknown"):
            summary["unknown"].append(item)
        else:
            summary["non_lti"].append(item)
    return summary


def analyze_fleet(fleet: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "overview": build_overview(fleet),
        "size_distribution": build_size_distribution(fleet),
        "role_categories": build_role_categories(fleet),
        "gap_analysis": build_gap_analysis(fleet),
        "redundancies": build_redundancies(fleet),
        "insurance_summary": build_insurance_summary(fleet),
    }
