"""
FEMA National Flood Hazard Layer (NFHL) point-query client.

API: https://hazards.fema.gov/gis/nfhl/rest/services/public/NFHL/MapServer/28/query
Layer 28 = S_FLD_HAZ_AR (flood hazard areas)

No API key required. FEMA site is intermittently unavailable and answers
some failures with HTTP 200 plus an ArcGIS "error" envelope.
"""

import logging
from typing import Dict, Optional, Any

import httpx

from georisk.core.http_client import BaseAPIClient
from georisk.core.api_registry import get_api_config
from georisk.core.api_errors import NotFoundError, MalformedResponseError
from georisk.sources.fema.metadata import normalize_zone_code

logger = logging.getLogger(__name__)

FLOOD_HAZARD_LAYER = 28


class FEMANFHLClient(BaseAPIClient):
    """HTTP client for the FEMA NFHL MapServer flood hazard layer."""

    SOURCE_NAME = "fema_nfhl"
    BASE_URL = get_api_config("fema_nfhl").base_url

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = BaseAPIClient.DEFAULT_TIMEOUT,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        config = get_api_config(self.SOURCE_NAME)
        super().__init__(
            base_url=base_url,
            max_concurrency=config.max_concurrency,
            timeout=timeout,
            connect_timeout=config.connect_timeout_seconds,
            rate_limit_interval=config.get_rate_limit_interval(),
            user_agent=user_agent,
            transport=transport,
        )

    async def query_flood_zone(self, latitude: float, longitude: float) -> Dict[str, Any]:
        """
        Return the flood hazard polygon attributes intersecting a point.

        Returns:
            {"zone": "AE", "zone_subtype": "...", "static_bfe": ...}

        Raises:
            NotFoundError: No mapped flood hazard polygon at this point
            MalformedResponseError: Response lacked a features list
        """
        params = {
            "geometry": f"{longitude},{latitude}",
            "geometryType": "esriGeometryPoint",
            "inSR": "4326",
            "spatialRel": "esriSpatialRelIntersects",
            "outFields": "FLD_ZONE,ZONE_SUBTY,STATIC_BFE",
            "returnGeometry": "false",
            "f": "json",
        }
        resource_id = f"flood_zone@{latitude:.5f},{longitude:.5f}"
        data = await self.get(
            f"{FLOOD_HAZARD_LAYER}/query", params=params, resource_id=resource_id
        )

        features = data.get("features") if isinstance(data, dict) else None
        if not isinstance(features, list):
            raise MalformedResponseError(
                "NFHL response has no features list", source=self.SOURCE_NAME
            )
        if not features:
            raise NotFoundError(
                "No NFHL flood hazard polygon", source=self.SOURCE_NAME,
                resource_id=resource_id,
            )

        attrs = features[0].get("attributes") or {}
        return {
            "zone": normalize_zone_code(attrs.get("FLD_ZONE")),
            "zone_subtype": attrs.get("ZONE_SUBTY"),
            "static_bfe": attrs.get("STATIC_BFE"),
        }
