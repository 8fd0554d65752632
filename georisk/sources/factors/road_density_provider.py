"""
Road density provider.

Drivable road segments inside the buffer radius. More roads mean more
traffic exposure and a higher score.
"""

import math

from georisk.core.api_registry import get_api_config
from georisk.sources.factors.base_provider import (
    BaseFactorProvider,
    DEFAULT_PROVIDER_TIMEOUT,
    require_coordinates,
)
from georisk.sources.osm.client import OverpassClient
from georisk.scoring.types import (
    FactorFamily,
    FallbackResult,
    Location,
    PrimaryResult,
    ProviderContext,
)

FALLBACK_SCORE = 45


def score_road_count(road_count: int) -> int:
    if road_count > 50:
        return 75
    if road_count > 25:
        return 55
    return 30


def road_density_per_km2(road_count: int, radius_km: float) -> float:
    return road_count / (math.pi * radius_km ** 2)


class RoadDensityProvider(BaseFactorProvider):
    """Traffic exposure from Overpass road counts."""

    family = FactorFamily.ROAD_DENSITY
    primary_source_name = get_api_config("overpass").dataset_label
    fallback_source_name = "Regional road density default"

    def __init__(
        self,
        client: OverpassClient,
        timeout_seconds: float = DEFAULT_PROVIDER_TIMEOUT,
    ):
        super().__init__(timeout_seconds)
        self.client = client

    async def fetch_primary(
        self, location: Location, context: ProviderContext
    ) -> PrimaryResult:
        latitude, longitude = require_coordinates(location)
        radius_km = context.buffer_radius_km
        roads = await self.client.count_roads(latitude, longitude, radius_km)
        density = road_density_per_km2(roads, radius_km)
        score = score_road_count(roads)

        if score > 60:
            detail = "High traffic exposure."
        elif score > 40:
            detail = "Moderate traffic exposure."
        else:
            detail = "Low traffic exposure."

        return self.make_primary(
            score,
            explanation=(
                f"{roads} road segment(s) within {radius_km:g}km "
                f"({density:.1f} per km²). {detail}"
            ),
            metadata={
                "roadCount": roads,
                "radiusKm": radius_km,
                "roadsPerKm2": round(density, 2),
            },
        )

    async def fallback(
        self, location: Location, context: ProviderContext, reason: str
    ) -> FallbackResult:
        return self.make_fallback(
            FALLBACK_SCORE,
            explanation="Road density data unavailable - using regional average.",
            reason=reason,
        )
