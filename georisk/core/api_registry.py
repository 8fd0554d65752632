"""
Centralized configuration registry for upstream geospatial services.

Consolidates per-service settings in one place:
- Base URLs
- Politeness limits (Nominatim allows 1 req/sec, Overpass is shared)
- Default concurrency

Base URLs can be overridden through Settings; everything else lives here.
"""

from dataclasses import dataclass
from typing import Optional, Dict


@dataclass(frozen=True)
class APIConfig:
    """Configuration for a single upstream service."""

    source_name: str
    base_url: str
    dataset_label: str  # Human-readable dataset name used in provenance
    settings_key: str  # Settings attribute that overrides base_url

    max_concurrency: int = 2
    rate_limit_per_minute: Optional[int] = None  # None = no specific limit
    rate_limit_interval: Optional[float] = None  # Seconds between requests

    connect_timeout_seconds: float = 3.0

    notes: Optional[str] = None

    def get_rate_limit_interval(self) -> Optional[float]:
        """Calculate rate limit interval from per-minute limit."""
        if self.rate_limit_interval is not None:
            return self.rate_limit_interval
        if self.rate_limit_per_minute is not None:
            return 60.0 / self.rate_limit_per_minute
        return None


API_REGISTRY: Dict[str, APIConfig] = {
    "fema_nfhl": APIConfig(
        source_name="fema_nfhl",
        base_url="https://hazards.fema.gov/gis/nfhl/rest/services/public/NFHL/MapServer",
        dataset_label="FEMA NFHL",
        settings_key="fema_nfhl_url",
        max_concurrency=4,
        notes="No API key. Service is intermittently unavailable.",
    ),
    "open_elevation": APIConfig(
        source_name="open_elevation",
        base_url="https://api.open-elevation.com/api/v1",
        dataset_label="Open-Elevation (SRTM)",
        settings_key="open_elevation_url",
        max_concurrency=4,
    ),
    "nominatim": APIConfig(
        source_name="nominatim",
        base_url="https://nominatim.openstreetmap.org",
        dataset_label="OpenStreetMap Nominatim",
        settings_key="nominatim_url",
        max_concurrency=1,
        rate_limit_interval=1.0,
        notes="Usage policy: max 1 req/sec and a real User-Agent.",
    ),
    "overpass": APIConfig(
        source_name="overpass",
        base_url="https://overpass-api.de/api",
        dataset_label="OpenStreetMap Overpass",
        settings_key="overpass_url",
        max_concurrency=2,
        notes="Shared public instance; heavy queries get 429/504.",
    ),
}


def get_api_config(source: str) -> APIConfig:
    """
    Get configuration for an upstream service.

    Raises:
        KeyError: If source not found in registry
    """
    source_lower = source.lower()
    if source_lower not in API_REGISTRY:
        available = ", ".join(sorted(API_REGISTRY.keys()))
        raise KeyError(
            f"Unknown API source: {source}. " f"Available sources: {available}"
        )
    return API_REGISTRY[source_lower]


def get_all_sources() -> list[str]:
    """Get list of all registered upstream sources."""
    return sorted(API_REGISTRY.keys())
