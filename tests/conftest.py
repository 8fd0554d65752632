"""
Pytest configuration and shared fixtures.
"""
import asyncio
import pytest

from georisk.core.api_errors import RetryableError
from georisk.core.config import reset_settings
from georisk.scoring.catalog import build_default_catalog
from georisk.scoring.ranker import ExplanationRanker
from georisk.scoring.types import FactorFamily, Location
from georisk.scoring.weights import validate_weights
from georisk.sources.factors.base_provider import BaseFactorProvider


@pytest.fixture(scope="function")
def clean_env(monkeypatch):
    """
    Clean environment for testing.

    Removes all app-related env vars to ensure clean state.
    """
    env_vars = [
        "PROVIDER_TIMEOUT_SECONDS",
        "DEFAULT_BUFFER_RADIUS_KM",
        "BATCH_MAX_CONCURRENCY",
        "BATCH_ITEM_TIMEOUT_SECONDS",
        "TOP_EXPLANATIONS",
        "FEMA_NFHL_URL",
        "OPEN_ELEVATION_URL",
        "NOMINATIM_URL",
        "OVERPASS_URL",
        "USER_AGENT",
        "LOG_LEVEL",
        "RUN_INTEGRATION_TESTS",
    ]
    for var in env_vars:
        monkeypatch.delenv(var, raising=False)

    # Reset settings singleton
    reset_settings()

    yield

    # Reset again after test
    reset_settings()


# =============================================================================
# Scoring Fixtures
# =============================================================================

class StubProvider(BaseFactorProvider):
    """Provider with a canned primary score; can be told to fail or stall."""

    primary_source_name = "Stub primary"
    fallback_source_name = "Stub fallback"

    def __init__(self, family, score, fail=False, delay=0.0, fallback_score=30,
                 timeout_seconds=5.0):
        super().__init__(timeout_seconds)
        self.family = family
        self.score = score
        self.fail = fail
        self.delay = delay
        self.fallback_score = fallback_score
        self.calls = 0

    async def fetch_primary(self, location, context):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RetryableError("stub source unavailable", source="stub")
        return self.make_primary(
            self.score,
            explanation=f"{self.family.value} scored {self.score}",
            metadata={"stub": True},
        )

    async def fallback(self, location, context, reason):
        return self.make_fallback(
            self.fallback_score,
            explanation=f"{self.family.value} data unavailable",
            reason=reason,
        )


@pytest.fixture
def catalog():
    """The default factor catalog."""
    return build_default_catalog()


@pytest.fixture
def ranker():
    return ExplanationRanker(top_n=3)


@pytest.fixture
def stub_providers():
    """One healthy stub provider per family."""
    return {
        FactorFamily.FLOOD: StubProvider(FactorFamily.FLOOD, 85),
        FactorFamily.ELEVATION: StubProvider(FactorFamily.ELEVATION, 30),
        FactorFamily.VEGETATION: StubProvider(FactorFamily.VEGETATION, 35),
        FactorFamily.INFRASTRUCTURE: StubProvider(FactorFamily.INFRASTRUCTURE, 40),
        FactorFamily.ROAD_DENSITY: StubProvider(FactorFamily.ROAD_DENSITY, 45),
    }


@pytest.fixture
def mortgage_config(catalog):
    """flood_zone 40 / slope_elevation 30 / infrastructure_access 30."""
    return validate_weights(
        ["flood_zone", "slope_elevation", "infrastructure_access"],
        {"flood_zone": 40, "slope_elevation": 30, "infrastructure_access": 30},
        catalog,
        "mortgage",
    )


@pytest.fixture
def houston():
    return Location(latitude=29.7604, longitude=-95.3698)


@pytest.fixture
def stub_provider():
    """The StubProvider class, for tests that build their own."""
    return StubProvider
