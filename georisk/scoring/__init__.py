"""
Multi-factor risk scoring.

Catalog, weight normalization and explanation ranking. The engine and
batch runner live in ``georisk.scoring.engine`` and ``georisk.scoring.batch``
since they depend on the factor providers.
"""

from georisk.scoring.types import (
    AnalysisType,
    FactorFamily,
    RiskTier,
    risk_tier_for,
)
from georisk.scoring.errors import ErrorKind, ScoringError, WeightValidationError
from georisk.scoring.catalog import FactorCatalog, build_default_catalog
from georisk.scoring.weights import WeightConfig, normalize_weights, validate_weights
from georisk.scoring.ranker import ExplanationRanker

__all__ = [
    "AnalysisType",
    "FactorFamily",
    "RiskTier",
    "risk_tier_for",
    "ErrorKind",
    "ScoringError",
    "WeightValidationError",
    "FactorCatalog",
    "build_default_catalog",
    "WeightConfig",
    "normalize_weights",
    "validate_weights",
    "ExplanationRanker",
]
