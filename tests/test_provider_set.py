"""
Unit tests for provider wiring (georisk/sources/factors/provider_set.py).
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from georisk.core.config import Settings
from georisk.scoring.types import FactorFamily
from georisk.sources.factors import (
    FloodProvider,
    ProviderSet,
    RoadDensityProvider,
    build_provider_set,
)
from georisk.sources.fema.client import FEMANFHLClient
from georisk.sources.osm.client import NominatimClient


@pytest.mark.unit
class TestBuildProviderSet:

    def test_one_provider_per_family(self, clean_env):
        providers = build_provider_set(Settings(_env_file=None))

        assert set(providers) == set(FactorFamily)
        assert len(providers) == len(FactorFamily)
        assert isinstance(providers[FactorFamily.FLOOD], FloodProvider)
        assert isinstance(providers[FactorFamily.ROAD_DENSITY], RoadDensityProvider)
        assert isinstance(providers.geocoder, NominatimClient)

    def test_settings_are_applied(self, clean_env):
        settings = Settings(
            _env_file=None,
            provider_timeout_seconds=2.5,
            overpass_url="http://overpass.local/api",
            user_agent="GeoRisk/test",
        )
        providers = build_provider_set(settings)

        road = providers[FactorFamily.ROAD_DENSITY]
        assert road.timeout_seconds == 2.5
        assert road.client.base_url == "http://overpass.local/api"
        assert road.client.user_agent == "GeoRisk/test"
        assert providers[FactorFamily.FLOOD].client.base_url == FEMANFHLClient.BASE_URL

    def test_upstream_clients_are_shared(self, clean_env):
        providers = build_provider_set(Settings(_env_file=None))

        assert providers[FactorFamily.ROAD_DENSITY].client is providers[FactorFamily.INFRASTRUCTURE].client
        assert providers[FactorFamily.FLOOD].elevation_client is providers[FactorFamily.ELEVATION].client
        assert providers.geocoder is providers[FactorFamily.VEGETATION].client

    def test_mapping_is_read_only(self, stub_providers):
        providers = ProviderSet(stub_providers)
        with pytest.raises(TypeError):
            providers[FactorFamily.FLOOD] = None


@pytest.mark.unit
class TestClose:

    @pytest.mark.asyncio
    async def test_aclose_closes_every_client(self, stub_providers):
        clients = [MagicMock(SOURCE_NAME="a"), MagicMock(SOURCE_NAME="b")]
        for client in clients:
            client.close = AsyncMock()

        await ProviderSet(stub_providers, clients=clients).aclose()

        for client in clients:
            client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_errors_do_not_stop_shutdown(self, stub_providers):
        broken = MagicMock(SOURCE_NAME="broken")
        broken.close = AsyncMock(side_effect=RuntimeError("already closed"))
        healthy = MagicMock(SOURCE_NAME="healthy")
        healthy.close = AsyncMock()

        await ProviderSet(stub_providers, clients=[broken, healthy]).aclose()

        healthy.close.assert_awaited_once()
