"""
Unit tests for georisk/scoring/catalog.py
"""
import pytest

from georisk.scoring.catalog import (
    DEFAULT_FACTORS,
    FactorCatalog,
    build_default_catalog,
    coerce_analysis_type,
)
from georisk.scoring.errors import CatalogError
from georisk.scoring.types import AnalysisType, Factor, FactorFamily


@pytest.mark.unit
class TestFactorsFor:

    def test_mortgage_factors_in_registration_order(self, catalog):
        ids = [f.id for f in catalog.factors_for("mortgage")]
        assert ids == ["flood_zone", "slope_elevation", "wildfire_risk", "infrastructure_access"]

    def test_vehicle_factors(self, catalog):
        ids = [f.id for f in catalog.factors_for(AnalysisType.VEHICLE)]
        assert ids == ["flood_risk_vehicle", "terrain_hazard", "infrastructure_access", "road_density"]

    def test_site_suitability_type(self, catalog):
        ids = [f.id for f in catalog.factors_for("solar_farm")]
        assert "road_density" in ids
        assert "wildfire_risk" not in ids

    def test_accepts_mixed_case_names(self, catalog):
        assert catalog.factors_for(" Home ") == catalog.factors_for(AnalysisType.HOME)

    def test_unknown_type_returns_empty_list(self, catalog):
        assert catalog.factors_for("spaceport") == []

    def test_every_analysis_type_has_factors(self, catalog):
        for analysis_type in AnalysisType:
            assert catalog.factors_for(analysis_type), analysis_type


@pytest.mark.unit
class TestDefaultWeights:

    def test_home_defaults(self, catalog):
        assert catalog.default_weights_for("home") == {
            "flood_risk_home": 30,
            "terrain_hazard": 15,
            "wildfire_risk": 25,
            "infrastructure_access": 15,
        }

    def test_unknown_type_has_no_defaults(self, catalog):
        assert catalog.default_weights_for("unknown") == {}


@pytest.mark.unit
class TestCatalogLookup:

    def test_contains_and_get(self, catalog):
        assert "road_density" in catalog
        assert "roof_condition" not in catalog
        assert catalog.get("road_density").family == FactorFamily.ROAD_DENSITY
        assert catalog.get("roof_condition") is None

    def test_order_of_follows_declaration(self, catalog):
        assert catalog.order_of(DEFAULT_FACTORS[0].id) == 0
        assert catalog.order_of("road_density") == len(DEFAULT_FACTORS) - 1
        assert catalog.order_of("missing") == len(catalog)

    def test_families_for(self, catalog):
        families = catalog.families_for(["flood_zone", "terrain_hazard"])
        assert families == {
            "flood_zone": FactorFamily.FLOOD,
            "terrain_hazard": FactorFamily.ELEVATION,
        }

    def test_families_for_unknown_factor_raises(self, catalog):
        with pytest.raises(CatalogError):
            catalog.families_for(["nope"])

    def test_duplicate_ids_rejected(self):
        factor = DEFAULT_FACTORS[0]
        with pytest.raises(CatalogError):
            FactorCatalog([factor, factor])

    def test_factors_are_immutable(self, catalog):
        factor = catalog.get("flood_zone")
        with pytest.raises(Exception):
            factor.default_weight = 99

    def test_build_default_catalog_is_fresh_object(self):
        assert build_default_catalog() is not build_default_catalog()


@pytest.mark.unit
def test_coerce_analysis_type():
    assert coerce_analysis_type("bess") == AnalysisType.BESS
    assert coerce_analysis_type(AnalysisType.HOME) is AnalysisType.HOME
    assert coerce_analysis_type("boat") is None
    assert coerce_analysis_type(None) is None


@pytest.mark.unit
def test_factor_serializes_camel_case():
    factor = Factor(
        id="x",
        display_name="X",
        family=FactorFamily.FLOOD,
        applicable_to=frozenset({AnalysisType.HOME}),
        default_weight=10,
    )
    data = factor.model_dump(by_alias=True)
    assert data["displayName"] == "X"
    assert data["defaultWeight"] == 10
