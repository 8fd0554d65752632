"""
Provider wiring.

Builds one provider per factor family from Settings, sharing HTTP clients
where two families hit the same upstream service, and owns those clients'
lifetime.
"""
import logging
from typing import Dict, Iterator, List, Mapping, Optional

from georisk.core.api_registry import get_api_config
from georisk.core.config import Settings
from georisk.core.http_client import BaseAPIClient
from georisk.sources.elevation.client import OpenElevationClient
from georisk.sources.factors.base_provider import BaseFactorProvider
from georisk.sources.factors.elevation_provider import ElevationProvider
from georisk.sources.factors.flood_provider import FloodProvider
from georisk.sources.factors.infrastructure_provider import InfrastructureProvider
from georisk.sources.factors.road_density_provider import RoadDensityProvider
from georisk.sources.factors.vegetation_provider import VegetationProvider
from georisk.sources.fema.client import FEMANFHLClient
from georisk.sources.osm.client import NominatimClient, OverpassClient
from georisk.scoring.types import FactorFamily

logger = logging.getLogger(__name__)


class ProviderSet(Mapping[FactorFamily, BaseFactorProvider]):
    """
    Read-only family -> provider mapping plus the clients behind it.

    The geocoder is exposed separately because the engine needs it before
    any provider runs.
    """

    def __init__(
        self,
        providers: Mapping[FactorFamily, BaseFactorProvider],
        clients: Optional[List[BaseAPIClient]] = None,
        geocoder: Optional[NominatimClient] = None,
    ):
        self._providers: Dict[FactorFamily, BaseFactorProvider] = dict(providers)
        self._clients = list(clients or [])
        self.geocoder = geocoder

    def __getitem__(self, family: FactorFamily) -> BaseFactorProvider:
        return self._providers[family]

    def __iter__(self) -> Iterator[FactorFamily]:
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)

    async def aclose(self) -> None:
        """Close every owned HTTP client."""
        for client in self._clients:
            try:
                await client.close()
            except Exception as e:
                logger.warning(f"Error closing {client.SOURCE_NAME} client: {e}")


def _client_kwargs(settings: Settings, source: str) -> Dict:
    config = get_api_config(source)
    return {
        "base_url": getattr(settings, config.settings_key, None),
        "timeout": settings.provider_timeout_seconds,
        "user_agent": settings.user_agent,
    }


def build_provider_set(settings: Settings) -> ProviderSet:
    """Create clients and providers for the service."""
    timeout = settings.provider_timeout_seconds

    fema = FEMANFHLClient(**_client_kwargs(settings, FEMANFHLClient.SOURCE_NAME))
    elevation = OpenElevationClient(**_client_kwargs(settings, OpenElevationClient.SOURCE_NAME))
    nominatim = NominatimClient(**_client_kwargs(settings, NominatimClient.SOURCE_NAME))
    overpass = OverpassClient(**_client_kwargs(settings, OverpassClient.SOURCE_NAME))

    providers = {
        FactorFamily.FLOOD: FloodProvider(fema, elevation_client=elevation, timeout_seconds=timeout),
        FactorFamily.ELEVATION: ElevationProvider(elevation, timeout_seconds=timeout),
        FactorFamily.VEGETATION: VegetationProvider(nominatim, timeout_seconds=timeout),
        FactorFamily.INFRASTRUCTURE: InfrastructureProvider(overpass, timeout_seconds=timeout),
        FactorFamily.ROAD_DENSITY: RoadDensityProvider(overpass, timeout_seconds=timeout),
    }
    logger.info(
        f"Initialized {len(providers)} factor providers (timeout {timeout:g}s)"
    )
    return ProviderSet(
        providers,
        clients=[fema, elevation, nominatim, overpass],
        geocoder=nominatim,
    )
