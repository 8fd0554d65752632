"""
FEMA NFHL flood zone metadata.

Zone codes come from the FLD_ZONE attribute of NFHL layer 28
(S_FLD_HAZ_AR). Special Flood Hazard Areas (A*/V*) are the zones where
flood insurance is mandatory for federally backed mortgages.
"""
from typing import Dict, Any, Optional

ZONE_INFO: Dict[str, Dict[str, Any]] = {
    "A": {"description": "1% annual chance flood (no BFE)", "high_risk": True, "coastal": False},
    "AE": {"description": "1% annual chance flood with BFE", "high_risk": True, "coastal": False},
    "AH": {"description": "1% annual chance shallow flooding (1-3ft)", "high_risk": True, "coastal": False},
    "AO": {"description": "1% annual chance sheet flow (1-3ft)", "high_risk": True, "coastal": False},
    "AR": {"description": "1% annual chance (levee accredited)", "high_risk": True, "coastal": False},
    "A99": {"description": "1% annual chance (federal flood protection)", "high_risk": True, "coastal": False},
    "V": {"description": "Coastal 1% annual chance (no BFE)", "high_risk": True, "coastal": True},
    "VE": {"description": "Coastal 1% annual chance with BFE", "high_risk": True, "coastal": True},
    "X": {"description": "0.2% annual chance or minimal flood hazard", "high_risk": False, "coastal": False},
    "D": {"description": "Undetermined flood hazard", "high_risk": False, "coastal": False},
}


def normalize_zone_code(zone: Optional[str]) -> str:
    """Upper-case and strip a zone code; blanks become 'X' like FEMA's default."""
    if not zone:
        return "X"
    return zone.strip().upper() or "X"


def is_high_risk_zone(zone: str) -> bool:
    info = ZONE_INFO.get(zone)
    return bool(info and info["high_risk"])


def is_minimal_risk_zone(zone: str) -> bool:
    # "X", "X500", "X PROTECTED BY LEVEE" all fall in the minimal band
    return zone.startswith("X")


def describe_zone(zone: str) -> str:
    info = ZONE_INFO.get(zone)
    if info:
        return info["description"]
    if is_minimal_risk_zone(zone):
        return ZONE_INFO["X"]["description"]
    return f"Flood zone {zone}"
