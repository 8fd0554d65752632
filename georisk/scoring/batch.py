"""
Batch (portfolio) scoring.

Fans the single-location engine out over many locations with bounded
concurrency. Every location is isolated: a failure or stall becomes an
error item and never aborts the batch. Items come back in input order.
"""
import asyncio
import logging
from typing import List, Optional, Sequence, Union

from georisk.scoring.engine import ScoringEngine
from georisk.scoring.errors import ScoringError
from georisk.scoring.types import (
    AnalysisType,
    BatchItem,
    BatchSummary,
    LocationRef,
    ProviderContext,
    RiskTier,
)
from georisk.scoring.weights import WeightConfig

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 4
DEFAULT_ITEM_TIMEOUT = 30.0


class BatchRunner:
    """
    Score a list of locations under one factor configuration.

    Args:
        engine: Single-location scoring engine
        max_concurrency: Locations scored at the same time
        item_timeout: Seconds before a single location is abandoned
            (None disables the per-item timeout)
    """

    def __init__(
        self,
        engine: ScoringEngine,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        item_timeout: Optional[float] = DEFAULT_ITEM_TIMEOUT,
    ):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.engine = engine
        self.max_concurrency = max_concurrency
        self.item_timeout = item_timeout

    async def run_batch(
        self,
        locations: Sequence[LocationRef],
        analysis_type: Union[AnalysisType, str],
        weight_config: WeightConfig,
        context: Optional[ProviderContext] = None,
    ) -> BatchSummary:
        """
        Score every location and roll the results up into risk tiers.

        Raises:
            ScoringError: INVALID_WEIGHT_CONFIG, before any location is scored
        """
        self.engine.check_config(weight_config, analysis_type)

        semaphore = asyncio.Semaphore(self.max_concurrency)
        logger.info(
            f"Starting batch of {len(locations)} location(s) "
            f"(concurrency={self.max_concurrency})"
        )

        items = await asyncio.gather(
            *(
                self._score_item(semaphore, ref, analysis_type, weight_config, context)
                for ref in locations
            )
        )
        summary = summarize(items)

        logger.info(
            f"Batch complete: {summary.total} total, {summary.high_risk_count} high, "
            f"{summary.medium_risk_count} medium, {summary.low_risk_count} low, "
            f"{summary.error_count} error(s)"
        )
        return summary

    async def _score_item(
        self,
        semaphore: asyncio.Semaphore,
        ref: LocationRef,
        analysis_type: Union[AnalysisType, str],
        weight_config: WeightConfig,
        context: Optional[ProviderContext],
    ) -> BatchItem:
        async with semaphore:
            try:
                scoring = self.engine.score(ref.location, analysis_type, weight_config, context)
                if self.item_timeout is not None:
                    assessment = await asyncio.wait_for(scoring, timeout=self.item_timeout)
                else:
                    assessment = await scoring
            except asyncio.TimeoutError:
                logger.warning(f"[batch] {ref.ref} timed out after {self.item_timeout:g}s")
                return BatchItem(
                    ref=ref.ref,
                    location=ref.location,
                    error=f"Scoring timed out after {self.item_timeout:g}s",
                    error_kind="timeout",
                )
            except ScoringError as e:
                logger.warning(f"[batch] {ref.ref} failed: {e}")
                return BatchItem(
                    ref=ref.ref,
                    location=ref.location,
                    error=e.message,
                    error_kind=e.kind.value,
                )
            except Exception as e:
                logger.warning(f"[batch] {ref.ref} failed unexpectedly: {e}", exc_info=True)
                return BatchItem(
                    ref=ref.ref,
                    location=ref.location,
                    error=f"{type(e).__name__}: {e}",
                    error_kind="internal_error",
                )

        return BatchItem(ref=ref.ref, location=ref.location, assessment=assessment)


def summarize(items: List[BatchItem]) -> BatchSummary:
    """Partition scored items into tiers; errored items count toward total only."""
    counts = {tier: 0 for tier in RiskTier}
    errors = 0
    for item in items:
        if item.ok:
            counts[item.assessment.risk_tier] += 1
        else:
            errors += 1

    return BatchSummary(
        total=len(items),
        high_risk_count=counts[RiskTier.HIGH],
        medium_risk_count=counts[RiskTier.MEDIUM],
        low_risk_count=counts[RiskTier.LOW],
        error_count=errors,
        items=items,
    )
