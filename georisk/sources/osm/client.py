"""
OpenStreetMap clients: Nominatim (geocoding, land use) and Overpass
(feature counts).

Nominatim usage policy: at most 1 request per second and an identifying
User-Agent. Overpass is a shared public instance; queries carry their own
server-side timeout so a busy server rejects fast instead of hanging.
"""

import logging
from typing import Dict, List, Optional, Any

import httpx

from georisk.core.http_client import BaseAPIClient
from georisk.core.api_registry import get_api_config
from georisk.core.api_errors import NotFoundError, MalformedResponseError

logger = logging.getLogger(__name__)

# Highway values that are not drivable road segments
NON_DRIVABLE_HIGHWAYS = ("footway", "path", "cycleway", "steps", "pedestrian", "bridleway")

EMERGENCY_RADIUS_M = 5000
ROAD_ACCESS_RADIUS_M = 2000


class _OSMClient(BaseAPIClient):
    """Shared constructor for OpenStreetMap services."""

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


class NominatimClient(_OSMClient):
    """Forward and reverse geocoding against Nominatim."""

    SOURCE_NAME = "nominatim"
    BASE_URL = get_api_config("nominatim").base_url

    async def geocode(self, address: str, country_codes: Optional[str] = None) -> Dict[str, Any]:
        """
        Resolve a free-form address to a point.

        Returns:
            {"latitude": float, "longitude": float, "display_name": str}

        Raises:
            NotFoundError: Nominatim returned no match
            MalformedResponseError: Coordinates missing or unparsable
        """
        params = {"q": address, "format": "json", "limit": 1}
        if country_codes:
            params["countrycodes"] = country_codes

        data = await self.get("search", params=params, resource_id=f"geocode:{address[:60]}")
        if not isinstance(data, list):
            raise MalformedResponseError("Search response is not a list", source=self.SOURCE_NAME)
        if not data:
            raise NotFoundError("No geocoding match", source=self.SOURCE_NAME, resource_id=address)

        match = data[0]
        try:
            latitude = float(match["lat"])
            longitude = float(match["lon"])
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedResponseError(
                f"Search result has no usable coordinates: {e}", source=self.SOURCE_NAME
            ) from e

        return {
            "latitude": latitude,
            "longitude": longitude,
            "display_name": match.get("display_name") or address,
        }

    async def reverse(self, latitude: float, longitude: float) -> Dict[str, Any]:
        """
        Reverse geocode a point; the result carries land-use hints.

        Returns:
            Raw Nominatim jsonv2 payload (``category``, ``type``, ``address``...)
        """
        data = await self.get(
            "reverse",
            params={
                "lat": latitude,
                "lon": longitude,
                "format": "jsonv2",
                "zoom": 17,
                "addressdetails": 1,
            },
            resource_id=f"reverse@{latitude:.5f},{longitude:.5f}",
        )
        if not isinstance(data, dict):
            raise MalformedResponseError("Reverse response is not an object", source=self.SOURCE_NAME)
        return data


class OverpassClient(_OSMClient):
    """Feature counts from the Overpass API."""

    SOURCE_NAME = "overpass"
    BASE_URL = get_api_config("overpass").base_url

    def _server_timeout(self) -> int:
        return max(1, int(self.timeout))

    async def count_sets(self, query: str, expected: int) -> List[int]:
        """
        Run a query whose statements end in ``out count;`` and return the
        totals in statement order.

        Raises:
            MalformedResponseError: Fewer count elements than expected
        """
        data = await self.post_form("interpreter", data={"data": query}, resource_id="count")

        elements = data.get("elements") if isinstance(data, dict) else None
        if not isinstance(elements, list):
            raise MalformedResponseError("Overpass response has no elements", source=self.SOURCE_NAME)

        totals = []
        for element in elements:
            if element.get("type") != "count":
                continue
            tags = element.get("tags") or {}
            try:
                totals.append(int(tags.get("total", 0)))
            except (TypeError, ValueError) as e:
                raise MalformedResponseError(
                    f"Count element has non-integer total: {tags!r}", source=self.SOURCE_NAME
                ) from e

        if len(totals) < expected:
            raise MalformedResponseError(
                f"Expected {expected} counts, got {len(totals)}", source=self.SOURCE_NAME
            )
        return totals[:expected]

    async def count_infrastructure(self, latitude: float, longitude: float) -> Dict[str, int]:
        """Fire stations and hospitals within 5 km, road ways within 2 km."""
        around_emergency = f"around:{EMERGENCY_RADIUS_M},{latitude},{longitude}"
        around_roads = f"around:{ROAD_ACCESS_RADIUS_M},{latitude},{longitude}"
        query = (
            f"[out:json][timeout:{self._server_timeout()}];"
            f'nwr["amenity"="fire_station"]({around_emergency})->.fire;'
            f'nwr["amenity"="hospital"]({around_emergency})->.hospital;'
            f'way["highway"]({around_roads})->.roads;'
            ".fire out count;.hospital out count;.roads out count;"
        )
        fire_stations, hospitals, roads = await self.count_sets(query, expected=3)
        return {
            "fire_stations": fire_stations,
            "hospitals": hospitals,
            "roads": roads,
            "total": fire_stations + hospitals + roads,
        }

    async def count_roads(self, latitude: float, longitude: float, radius_km: float) -> int:
        """Drivable highway ways within the buffer radius."""
        excluded = "|".join(NON_DRIVABLE_HIGHWAYS)
        radius_m = int(round(radius_km * 1000))
        query = (
            f"[out:json][timeout:{self._server_timeout()}];"
            f'way["highway"]["highway"!~"^({excluded})$"]'
            f"(around:{radius_m},{latitude},{longitude});"
            "out count;"
        )
        (roads,) = await self.count_sets(query, expected=1)
        return roads
