"""
Tests for the risk scoring HTTP API.

The application lifespan is not run; scoring components built from stub
providers are injected through dependency overrides.
"""
import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock

from georisk.api.v1.risk import get_batch_runner, get_catalog, get_engine
from georisk.core.api_errors import NotFoundError
from georisk.main import app
from georisk.scoring.batch import BatchRunner
from georisk.scoring.engine import ENGINE_VERSION, ScoringEngine


async def _geocode(address):
    if address.lower().startswith("houston"):
        return {"latitude": 29.7604, "longitude": -95.3698, "display_name": "Houston"}
    raise NotFoundError(f"No match for {address}", source="nominatim")


@pytest.fixture
def engine(catalog, stub_providers, ranker):
    geocoder = MagicMock()
    geocoder.geocode = AsyncMock(side_effect=_geocode)
    return ScoringEngine(catalog, stub_providers, ranker=ranker, geocoder=geocoder)


@pytest.fixture
def client(clean_env, catalog, engine):
    app.dependency_overrides[get_catalog] = lambda: catalog
    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_batch_runner] = lambda: BatchRunner(engine, max_concurrency=2)
    yield TestClient(app)
    app.dependency_overrides.clear()


HOUSTON = {"coordinates": [-95.3698, 29.7604]}

MORTGAGE_BODY = {
    "analysisType": "mortgage",
    "location": HOUSTON,
    "selectedFactors": ["flood_zone", "slope_elevation", "infrastructure_access"],
    "weights": {"flood_zone": 40, "slope_elevation": 30, "infrastructure_access": 30},
}


class TestAssessEndpoint:
    """Tests for POST /api/v1/risk/assess."""

    @pytest.mark.unit
    def test_assess(self, client):
        response = client.post("/api/v1/risk/assess", json=MORTGAGE_BODY)

        assert response.status_code == 200
        data = response.json()
        assert data["overallScore"] == 55
        assert data["riskTier"] == "medium"
        assert data["topExplanations"][0] == "flood scored 85"
        assert data["location"]["coordinates"] == [-95.3698, 29.7604]
        assert data["provenance"]["codeVersion"] == ENGINE_VERSION
        assert data["interpretation"]["action"] == "inspect"

        entry = data["factorBreakdown"][0]
        assert entry["factorId"] == "flood_zone"
        assert entry["source"] == "primary"
        assert "order" not in entry

    @pytest.mark.unit
    def test_unnormalized_weights_are_accepted(self, client):
        body = dict(MORTGAGE_BODY, weights={"flood_zone": 4, "slope_elevation": 3, "infrastructure_access": 3})
        response = client.post("/api/v1/risk/assess", json=body)

        assert response.status_code == 200
        weights = [e["weight"] for e in response.json()["factorBreakdown"]]
        assert weights == [40, 30, 30]

    @pytest.mark.unit
    def test_missing_weights_use_defaults(self, client):
        body = dict(MORTGAGE_BODY, selectedFactors=["flood_zone", "slope_elevation"], weights={})
        response = client.post("/api/v1/risk/assess", json=body)

        assert response.status_code == 200
        # defaults 40 and 20 normalize to 67 / 33
        weights = [e["weight"] for e in response.json()["factorBreakdown"]]
        assert weights == [67, 33]

    @pytest.mark.unit
    def test_address_is_geocoded(self, client):
        body = dict(MORTGAGE_BODY, location={"address": "Houston, TX"})
        response = client.post("/api/v1/risk/assess", json=body)

        assert response.status_code == 200
        assert response.json()["location"]["address"] == "Houston, TX"

    @pytest.mark.unit
    def test_geocoding_failure_is_400(self, client):
        body = dict(MORTGAGE_BODY, location={"address": "Atlantis"})
        response = client.post("/api/v1/risk/assess", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "geocoding_failed"

    @pytest.mark.unit
    @pytest.mark.parametrize("overrides,error", [
        ({"selectedFactors": []}, "no_factors_selected"),
        ({"selectedFactors": ["hail_risk"]}, "unknown_factor"),
        ({"selectedFactors": ["road_density"], "weights": {}}, "unknown_factor"),
        ({"weights": {"flood_zone": 0, "slope_elevation": 0, "infrastructure_access": 0}}, "zero_weight"),
        ({"weights": {"flood_zone": -5}}, "invalid_weight_config"),
    ])
    def test_configuration_errors_are_422(self, client, overrides, error):
        response = client.post("/api/v1/risk/assess", json=dict(MORTGAGE_BODY, **overrides))

        assert response.status_code == 422
        data = response.json()
        assert data["error"] == error
        assert data["message"]

    @pytest.mark.unit
    def test_location_required(self, client):
        body = dict(MORTGAGE_BODY, location={})
        response = client.post("/api/v1/risk/assess", json=body)

        assert response.status_code == 422


class TestBatchEndpoint:
    """Tests for POST /api/v1/risk/batch."""

    @pytest.mark.unit
    def test_batch_with_one_bad_address(self, client):
        body = {
            "analysisType": "mortgage",
            "selectedFactors": MORTGAGE_BODY["selectedFactors"],
            "weights": MORTGAGE_BODY["weights"],
            "locations": [
                {"ref": "a", "location": HOUSTON},
                {"ref": "b", "location": {"address": "Atlantis"}},
                {"ref": "c", "location": {"address": "Houston, TX"}},
            ],
        }
        response = client.post("/api/v1/risk/batch", json=body)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["errorCount"] == 1
        assert data["mediumRiskCount"] == 2
        assert [item["ref"] for item in data["items"]] == ["a", "b", "c"]
        assert data["items"][1]["errorKind"] == "geocoding_failed"
        assert data["items"][1]["assessment"] is None

    @pytest.mark.unit
    def test_invalid_config_rejects_whole_batch(self, client):
        body = {
            "analysisType": "mortgage",
            "selectedFactors": [],
            "locations": [{"ref": "a", "location": HOUSTON}],
        }
        response = client.post("/api/v1/risk/batch", json=body)

        assert response.status_code == 422
        assert response.json()["error"] == "no_factors_selected"

    @pytest.mark.unit
    def test_empty_batch_is_rejected(self, client):
        body = dict(MORTGAGE_BODY, locations=[])
        response = client.post("/api/v1/risk/batch", json=body)

        assert response.status_code == 422


class TestFactorEndpoints:
    """Tests for factor discovery and weight normalization."""

    @pytest.mark.unit
    def test_list_all_factors(self, client, catalog):
        response = client.get("/api/v1/risk/factors")

        assert response.status_code == 200
        assert [f["id"] for f in response.json()] == [f.id for f in catalog.factors]

    @pytest.mark.unit
    def test_list_factors_for_type(self, client):
        response = client.get("/api/v1/risk/factors", params={"analysis_type": "vehicle"})

        ids = [f["id"] for f in response.json()]
        assert ids == ["flood_risk_vehicle", "terrain_hazard", "infrastructure_access", "road_density"]
        assert response.json()[0]["displayName"] == "Flood Risk (Vehicle)"

    @pytest.mark.unit
    def test_defaults(self, client):
        response = client.get("/api/v1/risk/factors/defaults", params={"analysis_type": "mortgage"})

        assert response.status_code == 200
        data = response.json()
        assert data["analysisType"] == "mortgage"
        assert data["defaults"] == {
            "flood_zone": 40, "slope_elevation": 20,
            "wildfire_risk": 25, "infrastructure_access": 15,
        }
        assert sum(data["normalized"].values()) == 100

    @pytest.mark.unit
    def test_defaults_for_unknown_type_are_empty(self, client):
        response = client.get("/api/v1/risk/factors/defaults", params={"analysis_type": "spaceport"})

        assert response.status_code == 200
        assert response.json()["defaults"] == {}

    @pytest.mark.unit
    def test_normalize(self, client):
        response = client.post(
            "/api/v1/risk/weights/normalize",
            json={"selectedFactors": ["flood_zone", "slope_elevation", "wildfire_risk"],
                  "weights": {"flood_zone": 1, "slope_elevation": 1, "wildfire_risk": 1}},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 100
        assert data["weights"] == {"flood_zone": 33, "slope_elevation": 33, "wildfire_risk": 34}
        assert data["selectedFactors"] == ["flood_zone", "slope_elevation", "wildfire_risk"]


class TestServiceEndpoints:

    @pytest.mark.unit
    def test_root(self, client):
        data = client.get("/").json()
        assert data["service"] == "GeoRisk Scoring Service"
        assert "flood_zone" in data["factors"]

    @pytest.mark.unit
    def test_health_before_startup(self, client):
        data = client.get("/health").json()
        assert data["status"] == "starting"

    @pytest.mark.unit
    def test_health_after_startup(self, client, engine):
        app.state.engine = engine
        try:
            data = client.get("/health").json()
        finally:
            del app.state.engine
        assert data["status"] == "healthy"
        assert data["engine"] == ENGINE_VERSION
