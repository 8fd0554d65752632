"""
Factor providers.

One provider per factor family; each wraps one upstream source and one
local fallback estimator and never raises from fetch().
"""

from georisk.sources.factors.base_provider import BaseFactorProvider
from georisk.sources.factors.flood_provider import FloodProvider
from georisk.sources.factors.elevation_provider import ElevationProvider
from georisk.sources.factors.vegetation_provider import VegetationProvider
from georisk.sources.factors.infrastructure_provider import InfrastructureProvider
from georisk.sources.factors.road_density_provider import RoadDensityProvider
from georisk.sources.factors.provider_set import ProviderSet, build_provider_set

__all__ = [
    "BaseFactorProvider",
    "FloodProvider",
    "ElevationProvider",
    "VegetationProvider",
    "InfrastructureProvider",
    "RoadDensityProvider",
    "ProviderSet",
    "build_provider_set",
]
