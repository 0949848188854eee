"""Backend access for the GIS screens."""

from netops_gis.data.gis_client import GisClientError, GisFilters, SupabaseRpcClient

__all__ = [
    "GisClientError",
    "GisFilters",
    "SupabaseRpcClient",
]
