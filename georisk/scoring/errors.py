"""
Scoring error taxonomy.

- Configuration errors (bad selection/weights) are caller-input problems:
  surfaced immediately, never retried.
- Provider degradation never appears here; providers fall back instead.
- Batch item failures are caught by the batch runner and recorded per item.
- CatalogError marks a programming/configuration bug and is not recoverable.
"""
from enum import Enum
from typing import Optional, Dict, Any


class ErrorKind(str, Enum):
    NO_FACTORS_SELECTED = "no_factors_selected"
    ZERO_WEIGHT = "zero_weight"
    INVALID_WEIGHT_CONFIG = "invalid_weight_config"
    UNKNOWN_FACTOR = "unknown_factor"
    GEOCODING_FAILED = "geocoding_failed"


class ScoringError(Exception):
    """Raised when a location cannot be scored as requested."""

    def __init__(self, kind: ErrorKind, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        payload = {"error": self.kind.value, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class WeightValidationError(ScoringError):
    """Factor selection or weights failed validation."""


class CatalogError(Exception):
    """The factor catalog is internally inconsistent."""
