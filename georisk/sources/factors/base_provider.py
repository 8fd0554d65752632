"""
Factor Providers - Base Provider.

Abstract base class for the per-family factor providers. A provider wraps
exactly one external source and exactly one local fallback estimator:

    fetch()
      ├─ fetch_primary()   bounded by a hard timeout
      └─ fallback()        on ANY primary failure, always succeeds

fetch() never raises (cancellation excepted). Whether the value came from
the primary or the fallback path is carried on the returned observation.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from georisk.core.api_errors import APIError
from georisk.scoring.types import (
    FactorFamily,
    FactorObservation,
    FallbackResult,
    Location,
    PrimaryResult,
    ProviderContext,
)

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER_TIMEOUT = 5.0


class BaseFactorProvider(ABC):
    """
    Abstract base class for factor providers.

    Subclasses must implement:
    - family: The factor family this provider serves
    - primary_source_name / fallback_source_name: provenance labels
    - fetch_primary(): call the external source and map it to a score
    - fallback(): estimate a score without the external source
    """

    family: FactorFamily
    primary_source_name: str
    fallback_source_name: str

    # Neutral answer if a fallback estimator itself misbehaves
    neutral_score: float = 50.0

    def __init__(self, timeout_seconds: float = DEFAULT_PROVIDER_TIMEOUT):
        self.timeout_seconds = timeout_seconds

    @abstractmethod
    async def fetch_primary(
        self, location: Location, context: ProviderContext
    ) -> PrimaryResult:
        """
        Score a location from the external source.

        May raise anything; fetch() handles it.
        """
        pass

    @abstractmethod
    async def fallback(
        self, location: Location, context: ProviderContext, reason: str
    ) -> FallbackResult:
        """Estimate a score from locally available inputs."""
        pass

    async def fetch(
        self, location: Location, context: Optional[ProviderContext] = None
    ) -> FactorObservation:
        """
        Fetch this family's observation for a location.

        Returns a PrimaryResult when the external source answered within
        the timeout, otherwise a FallbackResult.
        """
        context = context or ProviderContext()
        try:
            return await asyncio.wait_for(
                self.fetch_primary(location, context),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            reason = f"timed out after {self.timeout_seconds:g}s"
        except APIError as e:
            reason = str(e)
        except Exception as e:
            logger.debug(f"[{self.family.value}] primary error detail", exc_info=True)
            reason = f"{type(e).__name__}: {e}"

        logger.warning(
            f"[{self.family.value}] {self.primary_source_name} unavailable for "
            f"{location.label()}: {reason}. Using fallback estimate."
        )
        return await self._run_fallback(location, context, reason)

    async def _run_fallback(
        self, location: Location, context: ProviderContext, reason: str
    ) -> FallbackResult:
        try:
            return await self.fallback(location, context, reason)
        except Exception as e:
            logger.error(
                f"[{self.family.value}] fallback estimator failed: {e}", exc_info=True
            )
            return self.make_fallback(
                self.neutral_score,
                explanation=f"{self.family.value.replace('_', ' ').title()} data unavailable - using neutral default.",
                reason=reason,
            )

    # =========================================================================
    # RESULT BUILDERS
    # =========================================================================

    def make_primary(
        self,
        score: float,
        explanation: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> PrimaryResult:
        return PrimaryResult(
            factor_family=self.family,
            raw_score=_clamp_score(score),
            metadata={"source": self.primary_source_name, **(metadata or {})},
            explanation=explanation,
            source_name=self.primary_source_name,
        )

    def make_fallback(
        self,
        score: float,
        explanation: str,
        reason: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> FallbackResult:
        return FallbackResult(
            factor_family=self.family,
            raw_score=_clamp_score(score),
            metadata={"source": self.fallback_source_name, **(metadata or {})},
            explanation=explanation,
            source_name=self.fallback_source_name,
            fallback_reason=reason,
        )


def _clamp_score(score: float) -> float:
    return max(0.0, min(100.0, float(score)))


def require_coordinates(location: Location) -> tuple:
    """(lat, lon) of a location; primary sources need a resolved point."""
    if not location.has_coordinates:
        raise ValueError("location has no coordinates")
    return location.latitude, location.longitude
