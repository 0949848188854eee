"""Configuration constants for the Network Sites GIS engine.

All configurable parameters are centralized here for easy tuning.

Classes:
    AppConfig: Streamlit page settings
    MapConfig: Fallback view, zoom buckets and viewport size
    NeighborConfig: Neighbour search radius and rendering cap
    MarkerConfig: Marker colors and radii per visual state
    ClickConfig: Pickable object types for click detection
    SearchConfig: Searchable field composites
    DataConfig: Backend RPC names, environment variables and retry limits
    ChartConfig: Availability chart dimensions and scales
"""


class AppConfig:
    """Streamlit page settings."""

    TITLE = "GIS - Network Sites"
    ICON = "📡"
    LAYOUT = "wide"


class MapConfig:
    """Map view parameters."""

    # Fallback center when no site has valid coordinates (Islamabad)
    FALLBACK_CENTER_LAT = 33.6844
    FALLBACK_CENTER_LON = 73.0479

    # Higher number = more zoomed in
    INITIAL_ZOOM = 6
    MIN_ZOOM = 0
    MAX_ZOOM = 19

    # Point-count zoom buckets for framing a working set
    FAR_ZOOM = 8  # more than FAR_THRESHOLD points
    MEDIUM_ZOOM = 10  # more than MEDIUM_THRESHOLD points
    NEAR_ZOOM = 11
    FAR_THRESHOLD = 50
    MEDIUM_THRESHOLD = 10

    # Minimum zoom when focusing a single selected site
    FOCUS_ZOOM = 13

    # Bounds fitting replaces the count buckets when enabled
    USE_BOUNDS_FITTING = False
    VIEWPORT_WIDTH_PX = 900
    VIEWPORT_HEIGHT_PX = 560
    VIEWPORT_PADDING_PX = 40
    TILE_SIZE_PX = 512  # deck.gl / maplibre world size at zoom 0

    PITCH = 0
    BEARING = 0

    # Carto basemap, no token required
    MAP_PROVIDER = "carto"
    MAP_STYLE = "light"


assert MapConfig.MIN_ZOOM <= MapConfig.FAR_ZOOM <= MapConfig.MEDIUM_ZOOM <= MapConfig.NEAR_ZOOM <= MapConfig.MAX_ZOOM
assert MapConfig.MEDIUM_THRESHOLD < MapConfig.FAR_THRESHOLD
assert MapConfig.FOCUS_ZOOM <= MapConfig.MAX_ZOOM


class NeighborConfig:
    """Neighbour search parameters."""

    RADIUS_KM = 5.0
    # UI safety valve for the neighbour table, unrelated to the radius
    RENDER_CAP = 2000


class MarkerConfig:
    """Marker styling per visual state (RGBA for pydeck)."""

    DEFAULT_COLOR = [100, 116, 139, 220]  # slate-500
    SELECTED_COLOR = [37, 99, 235, 255]  # blue-600
    NEIGHBOR_COLOR = [239, 68, 68, 240]  # red-500
    BORDER_COLOR = [255, 255, 255, 255]

    # Radii in pixels
    DEFAULT_RADIUS_PX = 6
    NEIGHBOR_RADIUS_PX = 6
    SELECTED_RADIUS_PX = 8

    # Hex colors for tables and legends
    DEFAULT_HEX = "#64748b"
    SELECTED_HEX = "#2563eb"
    NEIGHBOR_HEX = "#ef4444"


class ClickConfig:
    """Pickable object metadata for click detection."""

    TYPE_SITE = "site"
    LAYER_ID_SITES = "sites"
    LAYER_ID_POPUPS = "popups"
    PICKING_RADIUS_PX = 6


class SearchConfig:
    """Field composites for tokenized search.

    Each composite is a tuple of SitePoint attribute names joined with spaces
    to form the haystack for one search box.
    """

    SITE_FIELDS = ("name", "id", "grid", "district", "address", "franchise_id", "franchise_name", "remarks")
    ADDRESS_FIELDS = ("address",)
    FRANCHISE_FIELDS = ("franchise_id", "franchise_name")

    # Placeholder for attributes that are missing in tables and popups
    MISSING = "—"


class DataConfig:
    """Backend (Supabase PostgREST) access configuration."""

    URL_ENV = "SUPABASE_URL"
    KEY_ENV = "SUPABASE_ANON_KEY"
    RPC_PATH = "/rest/v1/rpc/"
    TIMEOUT_S = 30

    RPC_MAP_POINTS = "fetch_ssl_points"
    RPC_TIMESERIES = "gis_av_timeseries"
    RPC_SUBREGIONS = "fetch_ssl_subregions"
    RPC_GRIDS = "fetch_ssl_grids"
    RPC_DISTRICTS = "fetch_ssl_districts"
    RPC_SITENAMES = "fetch_ssl_sitenames"

    DEFAULT_SUBREGION = "North-1"
    # Row limits tried in order when the backend cancels a slow statement
    POINT_LIMITS = (1500, 200, 100)
    STATEMENT_TIMEOUT_CODE = "57014"

    DEFAULT_DAYS = 30
    DAY_OPTIONS = (7, 14, 30, 60, 90)
    SUGGESTION_LIMIT = 15

    assert DEFAULT_DAYS in DAY_OPTIONS


class ChartConfig:
    """Availability history chart settings."""

    HEIGHT = 320
    WIDTH = 800
    MAP_HEIGHT = 560

    # Series name -> color
    SERIES_COLORS = {
        "overall": "#111827",
        "v2g": "#f59e0b",
        "v3g": "#10b981",
        "v4g": "#3b82f6",
    }
    SERIES_LABELS = {
        "overall": "Overall",
        "v2g": "2G",
        "v3g": "3G",
        "v4g": "4G",
    }
    assert set(SERIES_COLORS.keys()) == set(SERIES_LABELS.keys())

    # Values at or below this maximum are treated as fractions (0..1)
    FRACTION_SCALE_MAX = 1.0000001
    FRACTION_RANGE = (0.0, 1.0)
    PERCENT_RANGE = (25.0, 100.0)
