"""
Vegetation / wildfire proxy provider.

Land cover comes from a Nominatim reverse geocode of the point; the
returned category and type are bucketed into a vegetation density, and
denser fuel scores higher.
"""

from typing import Any, Dict, Tuple

from georisk.core.api_registry import get_api_config
from georisk.sources.factors.base_provider import (
    BaseFactorProvider,
    DEFAULT_PROVIDER_TIMEOUT,
    require_coordinates,
)
from georisk.sources.osm.client import NominatimClient
from georisk.scoring.types import (
    FactorFamily,
    FallbackResult,
    Location,
    PrimaryResult,
    ProviderContext,
)

FALLBACK_SCORE = 35

# (keywords, density, score, label), checked in order
LAND_COVER_CLASSES = (
    (("forest", "wood", "scrub"), 80, 70, "Dense vegetation"),
    (("grass", "meadow", "heath"), 50, 45, "Moderate vegetation"),
    (("residential", "commercial", "industrial", "retail"), 20, 25, "Developed land"),
)
DEFAULT_LAND_COVER = (30, 25, "Mixed land cover")


def classify_land_cover(land_use: str) -> Tuple[int, int, str]:
    """Return (density, score, label) for a land use / cover string."""
    value = (land_use or "").lower()
    for keywords, density, score, label in LAND_COVER_CLASSES:
        if any(keyword in value for keyword in keywords):
            return density, score, label
    return DEFAULT_LAND_COVER


def extract_land_use(payload: Dict[str, Any]) -> str:
    """Pick the most specific land-use hint from a reverse-geocode payload."""
    parts = [payload.get("category"), payload.get("type")]
    return " ".join(str(p) for p in parts if p)


class VegetationProvider(BaseFactorProvider):
    """Wildfire exposure from OpenStreetMap land use."""

    family = FactorFamily.VEGETATION
    primary_source_name = get_api_config("nominatim").dataset_label
    fallback_source_name = "Regional vegetation default"

    def __init__(
        self,
        client: NominatimClient,
        timeout_seconds: float = DEFAULT_PROVIDER_TIMEOUT,
    ):
        super().__init__(timeout_seconds)
        self.client = client

    async def fetch_primary(
        self, location: Location, context: ProviderContext
    ) -> PrimaryResult:
        latitude, longitude = require_coordinates(location)
        payload = await self.client.reverse(latitude, longitude)
        land_use = extract_land_use(payload) or "unknown"
        density, score, label = classify_land_cover(land_use)

        if score > 60:
            detail = "High wildfire fuel load."
        elif score > 40:
            detail = "Moderate wildfire fuel load."
        else:
            detail = "Low wildfire fuel load."

        return self.make_primary(
            score,
            explanation=f"{label} ({land_use}), vegetation density {density}%. {detail}",
            metadata={"landUse": land_use, "vegetationDensity": density},
        )

    async def fallback(
        self, location: Location, context: ProviderContext, reason: str
    ) -> FallbackResult:
        return self.make_fallback(
            FALLBACK_SCORE,
            explanation="Vegetation data unavailable - using regional default.",
            reason=reason,
        )
