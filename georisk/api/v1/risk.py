"""
Risk scoring endpoints.

Single-location assessment, portfolio batches, factor discovery and weight
normalization. Configuration errors raise ScoringError and are rendered
by the handler registered in ``georisk.main``.
"""
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request

from georisk.core.config import Settings, get_settings
from georisk.scoring.batch import BatchRunner
from georisk.scoring.catalog import FactorCatalog, coerce_analysis_type
from georisk.scoring.engine import ScoringEngine
from georisk.scoring.types import (
    BatchRequest,
    BatchSummary,
    Factor,
    ProviderContext,
    RiskAssessment,
    ScoringRequest,
    WeightNormalizationRequest,
)
from georisk.scoring.weights import validate_weights

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/risk", tags=["Risk Scoring"])


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_catalog(request: Request) -> FactorCatalog:
    return request.app.state.catalog


def get_engine(request: Request) -> ScoringEngine:
    return request.app.state.engine


def get_batch_runner(request: Request) -> BatchRunner:
    return request.app.state.batch_runner


def _provider_context(buffer_radius_km: Optional[float], settings: Settings) -> ProviderContext:
    return ProviderContext(
        buffer_radius_km=buffer_radius_km or settings.default_buffer_radius_km
    )


# =============================================================================
# SCORING ENDPOINTS
# =============================================================================

@router.post("/assess", response_model=RiskAssessment)
async def assess_location(
    body: ScoringRequest,
    catalog: FactorCatalog = Depends(get_catalog),
    engine: ScoringEngine = Depends(get_engine),
    settings: Settings = Depends(get_settings),
) -> RiskAssessment:
    """
    Score one location.

    Weights are accepted un-normalized; selected factors without a weight
    use their catalog default.
    """
    config = validate_weights(
        body.selected_factors, body.weights, catalog, body.analysis_type
    )
    return await engine.score(
        body.location,
        body.analysis_type,
        config,
        _provider_context(body.buffer_radius_km, settings),
    )


@router.post("/batch", response_model=BatchSummary)
async def assess_batch(
    body: BatchRequest,
    catalog: FactorCatalog = Depends(get_catalog),
    runner: BatchRunner = Depends(get_batch_runner),
    settings: Settings = Depends(get_settings),
) -> BatchSummary:
    """
    Score a portfolio of locations under one factor configuration.

    Always returns a summary; per-location failures are reported as error
    items and excluded from the tier counts.
    """
    config = validate_weights(
        body.selected_factors, body.weights, catalog, body.analysis_type
    )
    return await runner.run_batch(
        body.locations,
        body.analysis_type,
        config,
        _provider_context(body.buffer_radius_km, settings),
    )


# =============================================================================
# FACTOR ENDPOINTS
# =============================================================================

@router.get("/factors", response_model=List[Factor])
async def list_factors(
    analysis_type: Optional[str] = Query(None, description="Filter to one analysis type"),
    catalog: FactorCatalog = Depends(get_catalog),
) -> List[Factor]:
    """List factors, optionally only those applicable to an analysis type."""
    if analysis_type is None:
        return list(catalog.factors)
    return catalog.factors_for(analysis_type)


@router.get("/factors/defaults")
async def default_weights(
    analysis_type: str = Query(..., description="Analysis type"),
    catalog: FactorCatalog = Depends(get_catalog),
) -> Dict:
    """Raw default weights and their normalized form for an analysis type."""
    defaults = catalog.default_weights_for(analysis_type)
    resolved = coerce_analysis_type(analysis_type)
    normalized = (
        validate_weights(list(defaults), defaults, catalog, resolved).weights
        if defaults else {}
    )
    return {
        "analysisType": resolved.value if resolved else analysis_type,
        "defaults": defaults,
        "normalized": normalized,
    }


@router.post("/weights/normalize")
async def normalize_selection(
    body: WeightNormalizationRequest,
    catalog: FactorCatalog = Depends(get_catalog),
) -> Dict:
    """Validate a selection and return its normalized weights (sum 100)."""
    config = validate_weights(
        body.selected_factors, body.weights, catalog, body.analysis_type
    )
    return {
        "selectedFactors": list(config.selected),
        "weights": config.weights,
        "total": config.total,
    }
