"""
Infrastructure access provider.

Counts fire stations and hospitals within 5 km plus road ways within 2 km.
More nearby infrastructure means faster emergency response, so the score
goes DOWN as the count goes up.
"""

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

FALLBACK_SCORE = 40


def score_infrastructure(feature_count: int) -> int:
    """Inverse mapping: >20 features -> 20, >10 -> 35, otherwise 55."""
    if feature_count > 20:
        return 20
    if feature_count > 10:
        return 35
    return 55


class InfrastructureProvider(BaseFactorProvider):
    """Emergency services and road access from Overpass."""

    family = FactorFamily.INFRASTRUCTURE
    primary_source_name = get_api_config("overpass").dataset_label
    fallback_source_name = "Regional infrastructure default"

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
        counts = await self.client.count_infrastructure(latitude, longitude)
        total = counts["total"]
        score = score_infrastructure(total)

        if score < 30:
            detail = "Good access to emergency services and roads."
        elif score < 50:
            detail = "Moderate infrastructure access."
        else:
            detail = "Limited infrastructure access may delay emergency response."

        return self.make_primary(
            score,
            explanation=(
                f"{counts['fire_stations']} fire station(s), {counts['hospitals']} "
                f"hospital(s) and {counts['roads']} road segment(s) nearby. {detail}"
            ),
            metadata={
                "fireStations": counts["fire_stations"],
                "hospitals": counts["hospitals"],
                "roads": counts["roads"],
                "totalFeatures": total,
            },
        )

    async def fallback(
        self, location: Location, context: ProviderContext, reason: str
    ) -> FallbackResult:
        return self.make_fallback(
            FALLBACK_SCORE,
            explanation="Infrastructure data unavailable - assuming moderate access.",
            reason=reason,
        )
