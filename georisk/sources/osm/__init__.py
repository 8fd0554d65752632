"""
OpenStreetMap adapters.

- Nominatim: address geocoding and land-use reverse lookups
- Overpass: emergency facility and road segment counts

No API key required; both services enforce fair-use limits.
"""

from georisk.sources.osm.client import NominatimClient, OverpassClient

__all__ = ["NominatimClient", "OverpassClient"]
