"""
Elevation / terrain factor provider.

Both tails of the elevation range score higher than the middle: very low
ground sits next to flood exposure, very high ground tends to be steep.
"""

from georisk.core.api_registry import get_api_config
from georisk.sources.elevation.client import OpenElevationClient
from georisk.sources.factors.base_provider import (
    BaseFactorProvider,
    DEFAULT_PROVIDER_TIMEOUT,
    require_coordinates,
)
from georisk.scoring.types import (
    FactorFamily,
    FallbackResult,
    Location,
    PrimaryResult,
    ProviderContext,
)

FALLBACK_SCORE = 30


def score_elevation(elevation_m: float) -> int:
    if elevation_m < 10:
        return 55
    if elevation_m <= 50:
        return 25
    if elevation_m <= 100:
        return 40
    return 65


def describe_elevation(elevation_m: float) -> str:
    if elevation_m < 10:
        return "Low-lying terrain increases flood-adjacent risk."
    if elevation_m <= 50:
        return "Moderate elevation with favorable terrain."
    if elevation_m <= 100:
        return "Elevated terrain with some slope exposure."
    return "High elevation; steeper slopes raise structural and access risk."


class ElevationProvider(BaseFactorProvider):
    """SRTM elevation via Open-Elevation."""

    family = FactorFamily.ELEVATION
    primary_source_name = get_api_config("open_elevation").dataset_label
    fallback_source_name = "Regional elevation default"

    def __init__(
        self,
        client: OpenElevationClient,
        timeout_seconds: float = DEFAULT_PROVIDER_TIMEOUT,
    ):
        super().__init__(timeout_seconds)
        self.client = client

    async def fetch_primary(
        self, location: Location, context: ProviderContext
    ) -> PrimaryResult:
        latitude, longitude = require_coordinates(location)
        elevation = await self.client.lookup(latitude, longitude)
        return self.make_primary(
            score_elevation(elevation),
            explanation=f"Elevation: {elevation:.1f}m. {describe_elevation(elevation)}",
            metadata={"elevation": elevation, "unit": "meters"},
        )

    async def fallback(
        self, location: Location, context: ProviderContext, reason: str
    ) -> FallbackResult:
        return self.make_fallback(
            FALLBACK_SCORE,
            explanation="Elevation data unavailable - using regional average.",
            reason=reason,
        )
