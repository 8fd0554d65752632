"""
Factor selection and weight normalization.

A WeightConfig is only ever produced normalized: selected ids are
non-empty and unique, every weight key is selected, and the integer
weights sum to exactly 100. Every edit (deselect, select, re-weight)
returns a new, re-normalized config.

Normalization is done in exact rational arithmetic:
    1. share[f] = weight[f] * 100 / total
    2. round each share half-up to an integer
    3. add the residual (100 - sum) to the single largest weight

Residual target: largest rounded weight, then largest exact share, then
the factor appearing last in selection order.
"""
import logging
import math
from fractions import Fraction
from numbers import Real
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict

from georisk.scoring.catalog import FactorCatalog, coerce_analysis_type
from georisk.scoring.errors import ErrorKind, WeightValidationError
from georisk.scoring.types import AnalysisType

logger = logging.getLogger(__name__)

WEIGHT_TOTAL = 100
NORMALIZED_TOLERANCE = 2


def round_half_up(value: Union[Fraction, float]) -> int:
    """Round to nearest integer, halves away from zero for non-negative input."""
    return math.floor(value + Fraction(1, 2))


def _as_fraction(value: Real) -> Fraction:
    # str() keeps decimal literals like 0.1 exact
    return Fraction(str(value))


def normalize_weights(
    weights: Mapping[str, Real],
    order: Optional[Sequence[str]] = None,
) -> Dict[str, int]:
    """
    Rescale weights to integers summing to exactly 100.

    Args:
        weights: Non-negative raw weights
        order: Key order used for the residual tie-break (defaults to
            the mapping's iteration order)

    Raises:
        WeightValidationError: ZERO_WEIGHT when the weights sum to 0
    """
    keys = list(order) if order is not None else list(weights)
    raw = {k: _as_fraction(weights[k]) for k in keys}
    total = sum(raw.values(), Fraction(0))

    if total <= 0:
        raise WeightValidationError(
            ErrorKind.ZERO_WEIGHT,
            "Selected factor weights sum to zero; nothing to normalize",
            details={"selected": keys},
        )

    exact = {k: raw[k] * WEIGHT_TOTAL / total for k in keys}
    rounded = {k: round_half_up(share) for k, share in exact.items()}

    residual = WEIGHT_TOTAL - sum(rounded.values())
    if residual:
        target = _residual_target(keys, rounded, exact)
        rounded[target] += residual
        logger.debug(f"Assigned rounding residual {residual:+d} to {target}")

    return rounded


def _residual_target(
    keys: Sequence[str],
    rounded: Mapping[str, int],
    exact: Mapping[str, Fraction],
) -> str:
    best = None
    for key in reversed(keys):
        if best is None or (rounded[key], exact[key]) > (rounded[best], exact[best]):
            best = key
    return best


class WeightConfig(BaseModel):
    """
    A normalized factor selection.

    Construct through ``validate_weights``; direct construction is
    allowed (deserialization, tests) but the engine refuses any config
    where ``is_normalized`` is False.
    """
    model_config = ConfigDict(frozen=True)

    selected: Tuple[str, ...]
    weights: Dict[str, int]

    @property
    def total(self) -> int:
        return sum(self.weights.values())

    @property
    def is_normalized(self) -> bool:
        if not self.selected or len(set(self.selected)) != len(self.selected):
            return False
        if set(self.weights) != set(self.selected):
            return False
        if any(w < 0 or w > WEIGHT_TOTAL for w in self.weights.values()):
            return False
        return abs(self.total - WEIGHT_TOTAL) <= NORMALIZED_TOLERANCE

    def deselect(self, factor_id: str) -> "WeightConfig":
        """Drop a factor and spread its weight proportionally over the rest."""
        remaining = [f for f in self.selected if f != factor_id]
        if not remaining:
            raise WeightValidationError(
                ErrorKind.NO_FACTORS_SELECTED,
                f"Cannot deselect {factor_id}: it is the only selected factor",
            )
        normalized = normalize_weights(
            {f: self.weights.get(f, 0) for f in remaining}, order=remaining
        )
        return WeightConfig(selected=tuple(remaining), weights=normalized)

    def select(
        self,
        factor_id: str,
        catalog: FactorCatalog,
        weight: Optional[Real] = None,
    ) -> "WeightConfig":
        """Add a factor (at its default weight unless given) and re-normalize."""
        if factor_id in self.selected:
            if weight is None:
                return self
            return self.with_weight(factor_id, weight)
        selected = list(self.selected) + [factor_id]
        weights: Dict[str, Real] = dict(self.weights)
        if weight is not None:
            weights[factor_id] = weight
        return validate_weights(selected, weights, catalog)

    def with_weight(self, factor_id: str, weight: Real) -> "WeightConfig":
        """Change one factor's raw weight and re-normalize the whole set."""
        if factor_id not in self.selected:
            raise WeightValidationError(
                ErrorKind.UNKNOWN_FACTOR,
                f"Factor {factor_id} is not selected",
            )
        _check_weight_value(factor_id, weight)
        weights: Dict[str, Real] = dict(self.weights)
        weights[factor_id] = weight
        normalized = normalize_weights(weights, order=self.selected)
        return WeightConfig(selected=self.selected, weights=normalized)


def _check_weight_value(factor_id: str, weight: object) -> None:
    if isinstance(weight, bool) or not isinstance(weight, Real):
        raise WeightValidationError(
            ErrorKind.INVALID_WEIGHT_CONFIG,
            f"Weight for {factor_id} must be a number",
            details={"factor": factor_id},
        )
    if not math.isfinite(weight) or weight < 0:
        raise WeightValidationError(
            ErrorKind.INVALID_WEIGHT_CONFIG,
            f"Weight for {factor_id} must be a finite non-negative number",
            details={"factor": factor_id, "weight": str(weight)},
        )


def validate_weights(
    selected: Iterable[str],
    weights: Mapping[str, Real],
    catalog: FactorCatalog,
    analysis_type: Union[AnalysisType, str, None] = None,
) -> WeightConfig:
    """
    Validate a caller's selection and weights and return a normalized config.

    Selected factors missing from ``weights`` get their catalog default
    weight before normalization. Weights for unselected factors are ignored.

    Args:
        selected: Factor ids the caller chose (order is kept, duplicates dropped)
        weights: Raw, pre-normalization weights
        catalog: Factor catalog
        analysis_type: When given, every factor must apply to it

    Raises:
        WeightValidationError: NO_FACTORS_SELECTED, UNKNOWN_FACTOR,
            INVALID_WEIGHT_CONFIG or ZERO_WEIGHT
    """
    ordered = list(dict.fromkeys(selected))
    if not ordered:
        raise WeightValidationError(
            ErrorKind.NO_FACTORS_SELECTED,
            "Select at least one risk factor",
        )

    unknown = [f for f in ordered if f not in catalog]
    if unknown:
        raise WeightValidationError(
            ErrorKind.UNKNOWN_FACTOR,
            f"Unknown factor(s): {', '.join(unknown)}",
            details={"unknown": unknown},
        )

    if analysis_type is not None:
        resolved = coerce_analysis_type(analysis_type)
        inapplicable = [
            f for f in ordered
            if resolved is None or not catalog.get(f).applies_to(resolved)
        ]
        if inapplicable:
            raise WeightValidationError(
                ErrorKind.UNKNOWN_FACTOR,
                f"Factor(s) not applicable to {analysis_type}: {', '.join(inapplicable)}",
                details={"not_applicable": inapplicable},
            )

    ignored = [k for k in weights if k not in ordered]
    if ignored:
        logger.debug(f"Ignoring weights for unselected factors: {ignored}")

    raw: Dict[str, Real] = {}
    for factor_id in ordered:
        weight = weights.get(factor_id)
        if weight is None:
            weight = catalog.get(factor_id).default_weight
        _check_weight_value(factor_id, weight)
        raw[factor_id] = weight

    normalized = normalize_weights(raw, order=ordered)
    return WeightConfig(selected=tuple(ordered), weights=normalized)


def default_config_for(
    catalog: FactorCatalog,
    analysis_type: Union[AnalysisType, str],
) -> WeightConfig:
    """Every applicable factor at its default weight, normalized."""
    defaults = catalog.default_weights_for(analysis_type)
    return validate_weights(list(defaults), defaults, catalog, analysis_type)
