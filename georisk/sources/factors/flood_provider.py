"""
Flood factor provider.

Primary: FEMA NFHL flood zone at the point.
Fallback: coarse estimate from ground elevation (low ground floods).
"""

import asyncio
import logging
from typing import Optional

from georisk.core.api_registry import get_api_config
from georisk.sources.elevation.client import OpenElevationClient
from georisk.sources.factors.base_provider import (
    BaseFactorProvider,
    DEFAULT_PROVIDER_TIMEOUT,
    require_coordinates,
)
from georisk.sources.fema.client import FEMANFHLClient
from georisk.sources.fema.metadata import (
    describe_zone,
    is_high_risk_zone,
    is_minimal_risk_zone,
)
from georisk.scoring.types import (
    FactorFamily,
    FallbackResult,
    Location,
    PrimaryResult,
    ProviderContext,
)

logger = logging.getLogger(__name__)

HIGH_RISK_ZONE_SCORE = 85
MINIMAL_RISK_ZONE_SCORE = 15
MODERATE_RISK_ZONE_SCORE = 50

# Used when no elevation is known and the lookup also fails
REGIONAL_ELEVATION_M = 50.0
# Budget for the fallback's own elevation lookup
FALLBACK_LOOKUP_TIMEOUT = 2.0


def score_flood_zone(zone: str) -> int:
    """Fixed mapping from a FEMA zone code to a 0-100 risk score."""
    if is_high_risk_zone(zone):
        return HIGH_RISK_ZONE_SCORE
    if is_minimal_risk_zone(zone):
        return MINIMAL_RISK_ZONE_SCORE
    return MODERATE_RISK_ZONE_SCORE


def estimate_flood_from_elevation(elevation_m: float) -> int:
    """Elevation proxy: below 10 -> 75, 10 to 30 -> 45, above 30 -> 20."""
    if elevation_m < 10:
        return 75
    if elevation_m <= 30:
        return 45
    return 20


class FloodProvider(BaseFactorProvider):
    """FEMA flood zone lookup with an elevation-based fallback."""

    family = FactorFamily.FLOOD
    primary_source_name = get_api_config("fema_nfhl").dataset_label
    fallback_source_name = "Elevation-based flood estimate"

    def __init__(
        self,
        client: FEMANFHLClient,
        elevation_client: Optional[OpenElevationClient] = None,
        timeout_seconds: float = DEFAULT_PROVIDER_TIMEOUT,
    ):
        super().__init__(timeout_seconds)
        self.client = client
        self.elevation_client = elevation_client

    async def fetch_primary(
        self, location: Location, context: ProviderContext
    ) -> PrimaryResult:
        latitude, longitude = require_coordinates(location)
        result = await self.client.query_flood_zone(latitude, longitude)
        zone = result["zone"]
        score = score_flood_zone(zone)

        if score > 70:
            detail = "This is a high-risk flood area requiring mandatory insurance."
        elif score > 40:
            detail = "Moderate flood risk - insurance recommended."
        else:
            detail = "Minimal flood risk area."

        return self.make_primary(
            score,
            explanation=f"Located in FEMA Flood Zone {zone}. {detail}",
            metadata={
                "floodZone": zone,
                "zoneDescription": describe_zone(zone),
                "zoneSubtype": result.get("zone_subtype"),
            },
        )

    async def fallback(
        self, location: Location, context: ProviderContext, reason: str
    ) -> FallbackResult:
        elevation, elevation_source = await self._resolve_elevation(location, context)
        score = estimate_flood_from_elevation(elevation)

        if score > 60:
            detail = "suggests high flood risk due to low elevation"
        elif score > 30:
            detail = "suggests moderate flood risk"
        else:
            detail = "suggests lower flood risk"

        return self.make_fallback(
            score,
            explanation=(
                f"FEMA flood zone unavailable; elevation of {elevation:.1f}m {detail}."
            ),
            reason=reason,
            metadata={
                "elevation": elevation,
                "elevationSource": elevation_source,
                "estimatedZone": "High Risk" if score > 60 else "Low Risk",
            },
        )

    async def _resolve_elevation(self, location: Location, context: ProviderContext):
        if context.elevation_m is not None:
            return context.elevation_m, "context"

        if self.elevation_client is not None and location.has_coordinates:
            try:
                elevation = await asyncio.wait_for(
                    self.elevation_client.lookup(location.latitude, location.longitude),
                    timeout=min(FALLBACK_LOOKUP_TIMEOUT, self.timeout_seconds),
                )
                return elevation, "open_elevation"
            except Exception as e:
                logger.info(f"[flood] elevation lookup for fallback failed: {e}")

        return REGIONAL_ELEVATION_M, "regional_default"
