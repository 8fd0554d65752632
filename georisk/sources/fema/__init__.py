"""
FEMA National Flood Hazard Layer adapter.

Point lookups against NFHL layer 28 for the flood factor family.

No API key required - free public API.
"""

from georisk.sources.fema.client import FEMANFHLClient
from georisk.sources.fema import metadata

__all__ = ["FEMANFHLClient", "metadata"]
