"""
Risk Scoring - Types and Pydantic Models.

Defines enums, value objects, and request/response schemas shared by the
catalog, providers, engine, ranker and batch runner.

Wire format is camelCase (``overallScore``, ``factorBreakdown``...);
Python attributes stay snake_case.
"""
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any, FrozenSet, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS
# =============================================================================

class AnalysisType(str, Enum):
    """Analysis types a factor can apply to."""
    # Insurance underwriting
    MORTGAGE = "mortgage"
    HOME = "home"
    VEHICLE = "vehicle"

    # Site suitability
    SOLAR_FARM = "solar_farm"
    BESS = "bess"
    AGRICULTURE = "agriculture"


class FactorFamily(str, Enum):
    """Signal families; exactly one provider exists per family."""
    FLOOD = "flood"
    ELEVATION = "elevation"
    VEGETATION = "vegetation"
    INFRASTRUCTURE = "infrastructure"
    ROAD_DENSITY = "road_density"


class ObservationSource(str, Enum):
    """Which path of a provider produced an observation."""
    PRIMARY = "primary"
    FALLBACK = "fallback"


class RiskTier(str, Enum):
    """Risk tiers assigned by thresholding the overall score."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class UnderwritingAction(str, Enum):
    """Suggested next step for an assessment."""
    ESCALATE = "escalate"
    INSPECT = "inspect"
    APPROVE = "approve"


HIGH_RISK_THRESHOLD = 70
MEDIUM_RISK_THRESHOLD = 40


def risk_tier_for(score: float) -> RiskTier:
    """Map an overall score onto a tier. Single and batch paths both use this."""
    if score >= HIGH_RISK_THRESHOLD:
        return RiskTier.HIGH
    if score >= MEDIUM_RISK_THRESHOLD:
        return RiskTier.MEDIUM
    return RiskTier.LOW


class _WireModel(BaseModel):
    """Base for models exchanged with API callers."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class _FrozenWireModel(_WireModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# =============================================================================
# CATALOG MODELS
# =============================================================================

class Factor(_FrozenWireModel):
    """A single scorable signal and the analysis types it is offered for."""
    id: str
    display_name: str
    description: str = ""
    family: FactorFamily
    applicable_to: FrozenSet[AnalysisType]
    default_weight: int = Field(..., ge=0, le=100)

    def applies_to(self, analysis_type: AnalysisType) -> bool:
        return analysis_type in self.applicable_to


# =============================================================================
# LOCATION MODELS
# =============================================================================

class Location(_FrozenWireModel):
    """
    A point to score.

    Either coordinates or an address is required. On the wire coordinates
    are ``[lon, lat]`` (GeoJSON order).
    """
    address: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)

    @model_validator(mode="before")
    @classmethod
    def _unpack_coordinates(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("coordinates") is not None:
            coords = data["coordinates"]
            if not isinstance(coords, (list, tuple)) or len(coords) != 2:
                raise ValueError("coordinates must be [lon, lat]")
            data = {k: v for k, v in data.items() if k != "coordinates"}
            data.setdefault("longitude", coords[0])
            data.setdefault("latitude", coords[1])
        return data

    @model_validator(mode="after")
    def _require_point_or_address(self) -> "Location":
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be given together")
        if self.latitude is None and not (self.address and self.address.strip()):
            raise ValueError("location needs coordinates or an address")
        return self

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @computed_field
    @property
    def coordinates(self) -> Optional[List[float]]:
        if not self.has_coordinates:
            return None
        return [self.longitude, self.latitude]

    def label(self) -> str:
        """Short label for logs."""
        if self.address:
            return self.address
        return f"({self.latitude:.5f}, {self.longitude:.5f})"


class LocationRef(_FrozenWireModel):
    """A caller-referenced location inside a batch."""
    ref: str
    location: Location


class ProviderContext(BaseModel):
    """Per-request inputs every provider may use."""
    model_config = ConfigDict(frozen=True)

    buffer_radius_km: float = Field(default=1.0, gt=0, le=50)
    # Locally known elevation; lets the flood fallback skip a lookup
    elevation_m: Optional[float] = None


# =============================================================================
# OBSERVATION MODELS
# =============================================================================

class FactorObservation(_FrozenWireModel):
    """One provider's answer for one location."""
    factor_family: FactorFamily
    raw_score: float = Field(..., ge=0, le=100)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    explanation: str = Field(..., min_length=1)
    source: ObservationSource
    source_name: str


class PrimaryResult(FactorObservation):
    """Observation computed from the provider's external data source."""
    source: Literal[ObservationSource.PRIMARY] = ObservationSource.PRIMARY


class FallbackResult(FactorObservation):
    """Observation computed by the provider's local fallback estimator."""
    source: Literal[ObservationSource.FALLBACK] = ObservationSource.FALLBACK
    fallback_reason: str = ""


# =============================================================================
# ASSESSMENT MODELS
# =============================================================================

class FactorBreakdown(_FrozenWireModel):
    """One selected factor's share of an assessment."""
    factor_id: str
    name: str
    family: FactorFamily
    score: int = Field(..., ge=0, le=100)
    weight: int = Field(..., ge=0, le=100)
    explanation: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    source: ObservationSource
    source_name: str
    contribution: float
    # Catalog registration index, used for deterministic tie-breaking
    order: int = Field(default=0, exclude=True)


class Provenance(_FrozenWireModel):
    datasets: List[str]
    fallback_factors: List[str] = Field(default_factory=list)
    analyzed_at: datetime
    code_version: str


class Interpretation(_FrozenWireModel):
    action: UnderwritingAction
    recommendation: str
    reasoning: str


class RiskAssessment(_FrozenWireModel):
    """Complete, immutable result of scoring one location."""
    overall_score: int = Field(..., ge=0, le=100)
    risk_tier: RiskTier
    analysis_type: str
    location: Location
    factor_breakdown: List[FactorBreakdown]
    top_explanations: List[str]
    recommendations: List[str] = Field(default_factory=list)
    interpretation: Interpretation
    provenance: Provenance


# =============================================================================
# BATCH MODELS
# =============================================================================

class BatchItem(_FrozenWireModel):
    """Either an assessment or an error for one batch location."""
    ref: str
    location: Location
    assessment: Optional[RiskAssessment] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.assessment is not None


class BatchSummary(_FrozenWireModel):
    """Tiered roll-up of a batch. Errored items count toward total only."""
    total: int
    high_risk_count: int
    medium_risk_count: int
    low_risk_count: int
    error_count: int
    items: List[BatchItem]


# =============================================================================
# REQUEST MODELS
# =============================================================================

class ScoringRequest(_WireModel):
    """Single-location scoring request."""
    analysis_type: str
    location: Location
    buffer_radius_km: Optional[float] = Field(default=None, gt=0, le=50)
    selected_factors: List[str] = Field(default_factory=list)
    # Pre-normalization values are accepted
    weights: Dict[str, float] = Field(default_factory=dict)


class BatchRequest(_WireModel):
    """Portfolio request: one factor configuration, many locations."""
    analysis_type: str
    locations: List[LocationRef] = Field(..., min_length=1, max_length=1000)
    buffer_radius_km: Optional[float] = Field(default=None, gt=0, le=50)
    selected_factors: List[str] = Field(default_factory=list)
    weights: Dict[str, float] = Field(default_factory=dict)


class WeightNormalizationRequest(_WireModel):
    analysis_type: Optional[str] = None
    selected_factors: List[str] = Field(default_factory=list)
    weights: Dict[str, float] = Field(default_factory=dict)
