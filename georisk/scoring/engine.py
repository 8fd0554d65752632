"""
Scoring engine.

Scores one location under a normalized WeightConfig:

    1. Refuse any config that is not normalized (never renormalize here)
    2. Geocode address-only locations
    3. Fetch one observation per factor family, all families concurrently
    4. contribution = raw_score * weight / 100; overall = round(sum)
    5. Rank explanations, derive hints and interpretation

Providers never raise, so a location either gets a complete assessment or
a ScoringError before any provider has run.
"""
import asyncio
import logging
from datetime import datetime, timezone
from fractions import Fraction
from typing import Dict, List, Mapping, Optional, Union

from georisk.core.api_errors import APIError
from georisk.scoring.catalog import FactorCatalog
from georisk.scoring.errors import CatalogError, ErrorKind, ScoringError
from georisk.scoring.ranker import ExplanationRanker
from georisk.scoring.types import (
    AnalysisType,
    FactorBreakdown,
    FactorFamily,
    FactorObservation,
    Location,
    ObservationSource,
    Provenance,
    ProviderContext,
    RiskAssessment,
    risk_tier_for,
)
from georisk.scoring.weights import WeightConfig, round_half_up
from georisk.sources.factors.base_provider import BaseFactorProvider

logger = logging.getLogger(__name__)

ENGINE_VERSION = "georisk-1.0.0"


class ScoringEngine:
    """
    Orchestrates providers for a single location.

    Args:
        catalog: Factor catalog shared with weight validation
        providers: One provider per factor family
        ranker: Explanation ranker (default: top 3)
        geocoder: Object with ``async geocode(address) -> {"latitude", "longitude", ...}``;
            without one, address-only locations fail with GEOCODING_FAILED
        code_version: Stamped into every assessment's provenance
    """

    def __init__(
        self,
        catalog: FactorCatalog,
        providers: Mapping[FactorFamily, BaseFactorProvider],
        ranker: Optional[ExplanationRanker] = None,
        geocoder=None,
        code_version: str = ENGINE_VERSION,
    ):
        self.catalog = catalog
        self.providers = providers
        self.ranker = ranker or ExplanationRanker()
        self.geocoder = geocoder
        self.code_version = code_version

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def check_config(
        self,
        weight_config: WeightConfig,
        analysis_type: Union[AnalysisType, str],
    ) -> None:
        """
        Raise INVALID_WEIGHT_CONFIG unless the config can be scored as-is.

        Raises:
            ScoringError: config not normalized, or names factors that are
                unknown or not applicable to ``analysis_type``
            CatalogError: a selected family has no provider
        """
        if not weight_config.is_normalized:
            raise ScoringError(
                ErrorKind.INVALID_WEIGHT_CONFIG,
                "Weight configuration is not normalized; normalize it before scoring",
                details={"total": weight_config.total, "selected": list(weight_config.selected)},
            )

        applicable = {f.id for f in self.catalog.factors_for(analysis_type)}
        rejected = [f for f in weight_config.selected if f not in applicable]
        if rejected:
            raise ScoringError(
                ErrorKind.INVALID_WEIGHT_CONFIG,
                f"Factor(s) not applicable to analysis type {analysis_type}: {', '.join(rejected)}",
                details={"not_applicable": rejected},
            )

        families = self.catalog.families_for(weight_config.selected)
        missing = sorted({f.value for f in families.values() if f not in self.providers})
        if missing:
            raise CatalogError(f"No provider registered for family: {', '.join(missing)}")

    # =========================================================================
    # SCORING
    # =========================================================================

    async def score(
        self,
        location: Location,
        analysis_type: Union[AnalysisType, str],
        weight_config: WeightConfig,
        context: Optional[ProviderContext] = None,
    ) -> RiskAssessment:
        """
        Score one location.

        Raises:
            ScoringError: INVALID_WEIGHT_CONFIG or GEOCODING_FAILED
        """
        self.check_config(weight_config, analysis_type)
        context = context or ProviderContext()
        resolved = await self._resolve_location(location)

        families = self.catalog.families_for(weight_config.selected)
        needed: List[FactorFamily] = list(dict.fromkeys(families.values()))

        results = await asyncio.gather(
            *(self.providers[family].fetch(resolved, context) for family in needed)
        )
        observations: Dict[FactorFamily, FactorObservation] = dict(zip(needed, results))

        breakdown = self._build_breakdown(weight_config, families, observations)
        total = Fraction(0)
        for factor_id in weight_config.selected:
            raw = Fraction(str(observations[families[factor_id]].raw_score))
            total += raw * weight_config.weights[factor_id] / 100
        overall = max(0, min(100, round_half_up(total)))
        tier = risk_tier_for(overall)

        kind = analysis_type.value if isinstance(analysis_type, AnalysisType) else str(analysis_type)
        assessment = RiskAssessment(
            overall_score=overall,
            risk_tier=tier,
            analysis_type=kind,
            location=resolved,
            factor_breakdown=breakdown,
            top_explanations=self.ranker.rank(breakdown),
            recommendations=self.ranker.mitigation_hints(breakdown, overall),
            interpretation=self.ranker.interpret(overall, kind),
            provenance=self._build_provenance(breakdown),
        )

        fallbacks = assessment.provenance.fallback_factors
        logger.info(
            f"Scored {resolved.label()} for {kind}: {overall}/100 ({tier.value})"
            + (f", fallback used for {', '.join(fallbacks)}" if fallbacks else "")
        )
        return assessment

    async def _resolve_location(self, location: Location) -> Location:
        if location.has_coordinates:
            return location

        if self.geocoder is None:
            raise ScoringError(
                ErrorKind.GEOCODING_FAILED,
                f"Cannot geocode '{location.address}': no geocoder configured",
            )

        try:
            match = await self.geocoder.geocode(location.address)
        except APIError as e:
            raise ScoringError(
                ErrorKind.GEOCODING_FAILED,
                f"Unable to geocode address '{location.address}'",
                details={"reason": str(e)},
            ) from e

        logger.debug(f"Geocoded '{location.address}' -> {match['latitude']}, {match['longitude']}")
        return Location(
            address=location.address,
            latitude=match["latitude"],
            longitude=match["longitude"],
        )

    def _build_breakdown(
        self,
        weight_config: WeightConfig,
        families: Mapping[str, FactorFamily],
        observations: Mapping[FactorFamily, FactorObservation],
    ) -> List[FactorBreakdown]:
        breakdown = []
        for factor_id in weight_config.selected:
            factor = self.catalog.get(factor_id)
            observation = observations[families[factor_id]]
            weight = weight_config.weights[factor_id]
            breakdown.append(
                FactorBreakdown(
                    factor_id=factor_id,
                    name=factor.display_name,
                    family=factor.family,
                    score=round_half_up(Fraction(str(observation.raw_score))),
                    weight=weight,
                    explanation=observation.explanation,
                    metadata=dict(observation.metadata),
                    source=observation.source,
                    source_name=observation.source_name,
                    contribution=round(observation.raw_score * weight / 100, 2),
                    order=self.catalog.order_of(factor_id),
                )
            )
        return breakdown

    def _build_provenance(self, breakdown: List[FactorBreakdown]) -> Provenance:
        datasets = list(dict.fromkeys(entry.source_name for entry in breakdown))
        fallback_factors = [
            entry.factor_id for entry in breakdown
            if entry.source == ObservationSource.FALLBACK
        ]
        return Provenance(
            datasets=datasets,
            fallback_factors=fallback_factors,
            analyzed_at=datetime.now(timezone.utc),
            code_version=self.code_version,
        )
