"""GIS backend client - Supabase PostgREST RPC calls over requests.

Every call is a POST to {SUPABASE_URL}/rest/v1/rpc/<function> with the
anon key in the apikey and Authorization headers. Rows come back as JSON
lists of dicts and are mapped to SitePoint / AvailabilitySample here, so
nothing above this module sees wire field names.

Error policy:
- Transport failures and error payloads raise GisClientError (code kept).
- fetch_map_points retries with smaller row limits when the backend
  cancels the statement (57014) and returns [] for any other RPC error.
- Picklists degrade to [] on RPC errors; they only feed dropdowns.

Example:
    client = SupabaseRpcClient.from_env()
    sites = client.fetch_map_points(GisFilters(subregion="North-1"))
    history = client.fetch_timeseries("ISB1234", days=30)
"""

import logging
import os
from dataclasses import dataclass
from typing import Any

import requests

from netops_gis.constants import DataConfig
from netops_gis.model.site_point import SitePoint
from netops_gis.model.timeseries import AvailabilitySample

logger = logging.getLogger(__name__)


class GisClientError(RuntimeError):
    """Backend request failed.

    Attributes:
        code: PostgREST / Postgres error code when the backend sent one
            (e.g., "57014" for a cancelled statement), else None
    """

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


@dataclass(frozen=True)
class GisFilters:
    """Upstream filter set for the map points query. None means 'any'."""

    region: str | None = None
    subregion: str | None = None
    grid: str | None = None
    district: str | None = None
    sitename: str | None = None

    def to_params(self, limit: int) -> dict[str, Any]:
        """RPC arguments for fetch_ssl_points."""
        return {
            "_region": self.region,
            "_subregion": self.subregion or DataConfig.DEFAULT_SUBREGION,
            "_district": self.district,
            "_grid": self.grid,
            "_sitename": self.sitename,
            "_limit": limit,
        }


def _error_payload(response: requests.Response) -> dict[str, Any]:
    """PostgREST error body ({code, message, details, hint}), or {} if not JSON."""
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class SupabaseRpcClient:
    """Thin RPC client for the GIS SQL functions."""

    def __init__(self, base_url: str, api_key: str, timeout_s: float = DataConfig.TIMEOUT_S) -> None:
        if not base_url:
            raise ValueError("base_url must not be empty")
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    @classmethod
    def from_env(cls) -> "SupabaseRpcClient":
        """Build a client from SUPABASE_URL / SUPABASE_ANON_KEY."""
        url = os.environ.get(DataConfig.URL_ENV)
        key = os.environ.get(DataConfig.KEY_ENV)
        if not url or not key:
            raise RuntimeError(f"Set {DataConfig.URL_ENV} and {DataConfig.KEY_ENV} to reach the GIS backend")
        return cls(base_url=url, api_key=key)

    def _rpc(self, function: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """POST one RPC and return its rows.

        Raises:
            GisClientError: On transport failure, HTTP error status, or a
                body that is not JSON.
        """
        url = f"{self.base_url}{DataConfig.RPC_PATH}{function}"
        try:
            response = requests.post(url, json=params or {}, headers=self._headers, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise GisClientError(f"{function} request failed: {e}") from e

        if response.status_code >= 400:
            payload = _error_payload(response)
            message = payload.get("message") or f"HTTP {response.status_code}"
            raise GisClientError(f"{function} failed: {message}", code=payload.get("code"))

        try:
            rows = response.json()
        except ValueError as e:
            raise GisClientError(f"{function} returned invalid JSON") from e
        return rows or []

    # =========================================================================
    # DATASET
    # =========================================================================

    def fetch_map_points(self, filters: GisFilters) -> list[SitePoint]:
        """Sites for the filters, retrying smaller limits on statement timeout."""
        rows: list[dict[str, Any]] = []
        for limit in DataConfig.POINT_LIMITS:
            try:
                rows = self._rpc(DataConfig.RPC_MAP_POINTS, filters.to_params(limit=limit))
                break
            except GisClientError as e:
                if e.code is None:
                    raise
                logger.warning(f"{DataConfig.RPC_MAP_POINTS} error (limit={limit}, code={e.code}): {e}")
                if e.code != DataConfig.STATEMENT_TIMEOUT_CODE:
                    return []
        else:
            return []

        points = []
        for row in rows:
            try:
                points.append(SitePoint.from_record(row))
            except ValueError as e:
                logger.warning(f"Skipping map point row: {e}")
        logger.info(f"Fetched {len(points)} map points for {filters}")
        return points

    def fetch_timeseries(self, site_id: str, days: int = DataConfig.DEFAULT_DAYS) -> list[AvailabilitySample]:
        """Daily availability of one site over the last `days` days, ordered by date."""
        rows = self._rpc(DataConfig.RPC_TIMESERIES, {"p_site_id": site_id, "p_days": days})
        samples = [AvailabilitySample.from_record(row) for row in rows if row.get("dt") is not None]
        return sorted(samples, key=lambda s: s.dt)

    # =========================================================================
    # PICKLISTS
    # =========================================================================

    def _picklist(self, function: str, column: str, params: dict[str, Any] | None = None) -> list[str]:
        try:
            rows = self._rpc(function, params)
        except GisClientError as e:
            logger.warning(f"{function} error: {e}")
            return []
        return [str(row[column]) for row in rows if row.get(column)]

    def fetch_subregions(self) -> list[str]:
        return self._picklist(DataConfig.RPC_SUBREGIONS, "subregion")

    def fetch_grids(self, subregion: str | None) -> list[str]:
        return self._picklist(DataConfig.RPC_GRIDS, "grid", {"in_subregion": subregion or None})

    def fetch_districts(self, subregion: str | None, grid: str | None) -> list[str]:
        params = {"in_subregion": subregion or None, "in_grid": grid or None}
        return self._picklist(DataConfig.RPC_DISTRICTS, "district", params)

    def search_sitenames(
        self,
        query: str | None,
        subregion: str | None = None,
        grid: str | None = None,
        district: str | None = None,
        limit: int = DataConfig.SUGGESTION_LIMIT,
    ) -> list[str]:
        """Site name suggestions scoped by the cascading picklists."""
        params = {
            "in_query": query or None,
            "in_subregion": subregion or None,
            "in_grid": grid or None,
            "in_district": district or None,
            "in_limit": limit,
        }
        return self._picklist(DataConfig.RPC_SITENAMES, "sitename", params)
