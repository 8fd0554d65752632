"""
Open-Elevation API client.

Open-Elevation serves SRTM-derived elevation in meters.
API: https://api.open-elevation.com/api/v1/lookup?locations=lat,lon

No API key required.
"""

import logging
import math
from typing import Optional

import httpx

from georisk.core.http_client import BaseAPIClient
from georisk.core.api_registry import get_api_config
from georisk.core.api_errors import MalformedResponseError

logger = logging.getLogger(__name__)


class OpenElevationClient(BaseAPIClient):
    """HTTP client for Open-Elevation point lookups."""

    SOURCE_NAME = "open_elevation"
    BASE_URL = get_api_config("open_elevation").base_url

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

    async def lookup(self, latitude: float, longitude: float) -> float:
        """
        Elevation in meters above sea level for a point.

        Raises:
            MalformedResponseError: Missing or non-numeric elevation
        """
        data = await self.get(
            "lookup",
            params={"locations": f"{latitude},{longitude}"},
            resource_id=f"elevation@{latitude:.5f},{longitude:.5f}",
        )

        results = data.get("results") if isinstance(data, dict) else None
        if not results:
            raise MalformedResponseError(
                "Elevation response has no results", source=self.SOURCE_NAME
            )

        elevation = results[0].get("elevation")
        if isinstance(elevation, bool) or not isinstance(elevation, (int, float)):
            raise MalformedResponseError(
                f"Elevation is not numeric: {elevation!r}", source=self.SOURCE_NAME
            )
        if not math.isfinite(elevation):
            raise MalformedResponseError(
                "Elevation is not finite", source=self.SOURCE_NAME
            )
        return float(elevation)
