"""
Explanation ranking, mitigation hints and underwriting interpretation.

The ranker only selects and orders text the providers already wrote; it
never composes explanations of its own. Recommendations and the
interpretation are derived from scores and metadata.
"""
import logging
from typing import List, Sequence, Union

from georisk.scoring.types import (
    AnalysisType,
    FactorBreakdown,
    FactorFamily,
    Interpretation,
    RiskTier,
    UnderwritingAction,
    risk_tier_for,
)

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 3
ELEVATED_FACTOR_SCORE = 60
FAVORABLE_FACTOR_SCORE = 35
MAX_FAVORABLE_HINTS = 2


def contribution_key(entry: FactorBreakdown):
    """Sort key: largest score * weight first, then catalog order."""
    return (-(entry.score * entry.weight), entry.order)


class ExplanationRanker:
    """
    Ranks breakdown entries and turns them into caller-facing text.

    Usage:
        ranker = ExplanationRanker(top_n=3)
        top = ranker.rank(breakdown)
        hints = ranker.mitigation_hints(breakdown, overall_score)
        interpretation = ranker.interpret(overall_score, "mortgage")
    """

    def __init__(self, top_n: int = DEFAULT_TOP_N):
        if top_n < 1:
            raise ValueError("top_n must be at least 1")
        self.top_n = top_n

    def rank(self, breakdown: Sequence[FactorBreakdown]) -> List[str]:
        """Top-N explanations by contribution; deterministic for equal input."""
        ordered = sorted(breakdown, key=contribution_key)
        return [entry.explanation for entry in ordered[: self.top_n]]

    def mitigation_hints(
        self, breakdown: Sequence[FactorBreakdown], overall_score: int
    ) -> List[str]:
        """
        Recommendations for elevated factors, favorable notes for low ones,
        and one overall line for the low and high tiers.
        """
        hints: List[str] = []
        by_score = sorted(breakdown, key=lambda e: (-e.score, e.order))

        for entry in by_score:
            if entry.score < ELEVATED_FACTOR_SCORE:
                break
            hint = _elevated_hint(entry)
            if hint:
                hints.append(hint)

        favorable = [e for e in by_score if e.score < FAVORABLE_FACTOR_SCORE]
        for entry in favorable[:MAX_FAVORABLE_HINTS]:
            hint = _favorable_hint(entry)
            if hint:
                hints.append(hint)

        tier = risk_tier_for(overall_score)
        if tier == RiskTier.LOW:
            hints.append(
                "Overall risk profile is favorable. Standard coverage with "
                "competitive rates recommended."
            )
        elif tier == RiskTier.HIGH:
            hints.append(
                "High-risk location. Comprehensive coverage with enhanced limits "
                "strongly recommended; consider additional risk mitigation investments."
            )
        return hints

    def interpret(
        self, overall_score: int, analysis_type: Union[AnalysisType, str]
    ) -> Interpretation:
        """Suggested underwriting action, keyed on the risk tier."""
        tier = risk_tier_for(overall_score)
        kind = analysis_type.value if isinstance(analysis_type, AnalysisType) else str(analysis_type)

        if tier == RiskTier.HIGH:
            recommendation = (
                f"High risk location ({overall_score}/100). Recommend physical "
                "inspection and increased premium or additional coverage requirements."
            )
            recommendation += _HIGH_RISK_SUFFIX.get(kind, "")
            return Interpretation(
                action=UnderwritingAction.ESCALATE,
                recommendation=recommendation,
                reasoning="Multiple high-risk factors require underwriter review.",
            )

        if tier == RiskTier.MEDIUM:
            return Interpretation(
                action=UnderwritingAction.INSPECT,
                recommendation=(
                    f"Moderate risk location ({overall_score}/100). Standard "
                    "underwriting with targeted inspections for elevated risk factors."
                ),
                reasoning=(
                    "Risk level is within acceptable range but warrants "
                    "verification of specific factors."
                ),
            )

        return Interpretation(
            action=UnderwritingAction.APPROVE,
            recommendation=(
                f"Low risk location ({overall_score}/100). Suitable for standard "
                "coverage with favorable terms."
            ),
            reasoning="Location meets low-risk criteria across the selected factors.",
        )


_HIGH_RISK_SUFFIX = {
    AnalysisType.MORTGAGE.value: " Consider requiring a flood insurance rider and structural inspection.",
    AnalysisType.HOME.value: " Recommend comprehensive coverage with increased deductibles.",
    AnalysisType.VEHICLE.value: " Suggest increased liability limits due to traffic exposure.",
}


def _elevated_hint(entry: FactorBreakdown) -> str:
    meta = entry.metadata
    if entry.family == FactorFamily.FLOOD:
        zone = meta.get("floodZone")
        if zone in ("A", "AE"):
            return (
                f"Critical: Location is in FEMA high-risk flood zone {zone}. Flood "
                "insurance is mandatory for federally backed mortgages."
            )
        return (
            f"Elevated flood risk ({entry.score}/100). Recommend an additional flood "
            "coverage rider and a structural flood mitigation assessment."
        )
    if entry.family == FactorFamily.VEGETATION:
        density = meta.get("vegetationDensity")
        if density is not None and density > 60:
            return (
                f"High wildfire risk due to {density}% vegetation density. Recommend "
                "defensible space maintenance and fire-resistant landscaping."
            )
        return ""
    if entry.family == FactorFamily.ROAD_DENSITY:
        roads = meta.get("roadCount")
        if roads is not None and roads > 40:
            return (
                f"High traffic density ({roads} roads in buffer zone). Recommend "
                "collision coverage enhancement."
            )
        return ""
    if entry.family == FactorFamily.ELEVATION:
        elevation = meta.get("elevation")
        if elevation is None:
            return ""
        if elevation < 10:
            return (
                f"Low elevation ({elevation:.1f}m) increases flood vulnerability. "
                "Foundation assessment and flood proofing recommended."
            )
        if elevation > 100:
            return (
                f"Elevated terrain ({elevation:.1f}m) may affect accessibility and "
                "structural stability. Geotechnical survey recommended."
            )
    return ""


def _favorable_hint(entry: FactorBreakdown) -> str:
    if entry.family == FactorFamily.INFRASTRUCTURE:
        features = entry.metadata.get("totalFeatures")
        if features is not None and features > 15:
            return (
                f"Favorable: Good infrastructure access with {features} emergency "
                "and transport features nearby."
            )
        return ""
    if entry.family == FactorFamily.FLOOD and entry.score < 30:
        return "Favorable: Low flood risk profile; qualifies for preferred flood rates."
    return ""
