"""
Factor catalog.

Immutable registry of factor definitions and the analysis types each one
applies to. Built once at startup by ``build_default_catalog()`` and
handed to the engine, weight validation and API layer; read-only after
construction, so any number of concurrent scoring calls may share it.
"""
import logging
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from georisk.scoring.errors import CatalogError
from georisk.scoring.types import AnalysisType, Factor, FactorFamily

logger = logging.getLogger(__name__)

_ALL_INSURANCE = frozenset({AnalysisType.MORTGAGE, AnalysisType.HOME, AnalysisType.VEHICLE})

# Declaration order is the registration order used for tie-breaking.
DEFAULT_FACTORS: Tuple[Factor, ...] = (
    Factor(
        id="flood_zone",
        display_name="Flood Zone",
        description="FEMA flood zone with elevation-based estimate as fallback",
        family=FactorFamily.FLOOD,
        applicable_to=frozenset({
            AnalysisType.MORTGAGE, AnalysisType.SOLAR_FARM,
            AnalysisType.BESS, AnalysisType.AGRICULTURE,
        }),
        default_weight=40,
    ),
    Factor(
        id="flood_risk_home",
        display_name="Flood Risk (Home)",
        description="FEMA flood zone exposure for a built home",
        family=FactorFamily.FLOOD,
        applicable_to=frozenset({AnalysisType.HOME}),
        default_weight=30,
    ),
    Factor(
        id="flood_risk_vehicle",
        display_name="Flood Risk (Vehicle)",
        description="Flood exposure of the garaging location",
        family=FactorFamily.FLOOD,
        applicable_to=frozenset({AnalysisType.VEHICLE}),
        default_weight=25,
    ),
    Factor(
        id="slope_elevation",
        display_name="Slope / Elevation",
        description="SRTM elevation: low-lying and steep terrain both score higher",
        family=FactorFamily.ELEVATION,
        applicable_to=frozenset({
            AnalysisType.MORTGAGE, AnalysisType.SOLAR_FARM,
            AnalysisType.BESS, AnalysisType.AGRICULTURE,
        }),
        default_weight=20,
    ),
    Factor(
        id="terrain_hazard",
        display_name="Terrain Hazard",
        description="Topographic exposure of the structure or route",
        family=FactorFamily.ELEVATION,
        applicable_to=frozenset({AnalysisType.HOME, AnalysisType.VEHICLE}),
        default_weight=15,
    ),
    Factor(
        id="wildfire_risk",
        display_name="Wildfire Risk",
        description="Vegetation density proxy from OpenStreetMap land use",
        family=FactorFamily.VEGETATION,
        applicable_to=frozenset({
            AnalysisType.MORTGAGE, AnalysisType.HOME, AnalysisType.AGRICULTURE,
        }),
        default_weight=25,
    ),
    Factor(
        id="infrastructure_access",
        display_name="Infrastructure Access",
        description="Emergency services and roads nearby; better access lowers risk",
        family=FactorFamily.INFRASTRUCTURE,
        applicable_to=_ALL_INSURANCE | {AnalysisType.SOLAR_FARM, AnalysisType.BESS},
        default_weight=15,
    ),
    Factor(
        id="road_density",
        display_name="Road Density",
        description="Drivable road segments inside the buffer radius",
        family=FactorFamily.ROAD_DENSITY,
        applicable_to=frozenset({
            AnalysisType.VEHICLE, AnalysisType.SOLAR_FARM, AnalysisType.BESS,
        }),
        default_weight=40,
    ),
)


def coerce_analysis_type(analysis_type: Union[AnalysisType, str, None]) -> Optional[AnalysisType]:
    """Return the enum member for a value, or None if it is not a known type."""
    if isinstance(analysis_type, AnalysisType):
        return analysis_type
    if not isinstance(analysis_type, str):
        return None
    try:
        return AnalysisType(analysis_type.strip().lower())
    except ValueError:
        return None


class FactorCatalog:
    """
    Read-only lookup of factor definitions.

    Usage:
        catalog = build_default_catalog()
        catalog.factors_for("home")          # -> [Factor, ...]
        catalog.default_weights_for("home")  # -> {"flood_risk_home": 30, ...}
    """

    def __init__(self, factors: Iterable[Factor]):
        ordered = tuple(factors)
        by_id: Dict[str, Factor] = {}
        for factor in ordered:
            if factor.id in by_id:
                raise CatalogError(f"Duplicate factor id in catalog: {factor.id}")
            by_id[factor.id] = factor

        self._factors = ordered
        self._by_id: Mapping[str, Factor] = MappingProxyType(by_id)
        self._order: Mapping[str, int] = MappingProxyType(
            {factor.id: index for index, factor in enumerate(ordered)}
        )

    def __len__(self) -> int:
        return len(self._factors)

    def __contains__(self, factor_id: object) -> bool:
        return factor_id in self._by_id

    @property
    def factors(self) -> Tuple[Factor, ...]:
        return self._factors

    def get(self, factor_id: str) -> Optional[Factor]:
        return self._by_id.get(factor_id)

    def order_of(self, factor_id: str) -> int:
        """Registration index; unknown ids sort after every known one."""
        return self._order.get(factor_id, len(self._factors))

    def factors_for(self, analysis_type: Union[AnalysisType, str]) -> List[Factor]:
        """
        Factors applicable to an analysis type, in registration order.

        Unknown analysis types yield an empty list.
        """
        resolved = coerce_analysis_type(analysis_type)
        if resolved is None:
            return []
        return [f for f in self._factors if f.applies_to(resolved)]

    def default_weights_for(self, analysis_type: Union[AnalysisType, str]) -> Dict[str, int]:
        """Raw (un-normalized) default weights of the applicable factors."""
        return {f.id: f.default_weight for f in self.factors_for(analysis_type)}

    def families_for(self, factor_ids: Iterable[str]) -> Dict[str, FactorFamily]:
        """Map each known factor id to its family."""
        families = {}
        for factor_id in factor_ids:
            factor = self._by_id.get(factor_id)
            if factor is None:
                raise CatalogError(f"Factor not in catalog: {factor_id}")
            families[factor_id] = factor.family
        return families


def build_default_catalog() -> FactorCatalog:
    """Construct the catalog the service runs with."""
    catalog = FactorCatalog(DEFAULT_FACTORS)
    logger.debug(f"Factor catalog loaded with {len(catalog)} factors")
    return catalog
