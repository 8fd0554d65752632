"""
Open-Elevation (SRTM) adapter.

Used by the elevation factor family and by the flood fallback estimator.
"""

from georisk.sources.elevation.client import OpenElevationClient

__all__ = ["OpenElevationClient"]
