"""Network Sites GIS - Proximity search and map synchronization for field sites.

Given a working set of geo-tagged network sites, finds neighbours within a
radius, frames a map viewport around a point set, and keeps rendered map
markers consistent with the selection and search state.

Modules:
    core: Pure spatial and search logic (distances, search, neighbours, framing)
    model: Data structures (SitePoint, NeighborResult, ViewportFrame, messages)
    data: Backend RPC client (Supabase PostgREST)
    ui: Selection state machine, marker reconciliation and the Streamlit page

Example:
    from netops_gis.core import NeighborFinder
    from netops_gis.model import SitePoint
    from netops_gis.ui import SiteMapController
"""
