# club_dashboard/api_client.py
"""
Reporting API Client

Version: 1.0.0
Features:
- Singleton requests.Session with thread-safe double-checked locking
- Comma-joined query encoding (country=ph,id, never repeated keys)
- Health check utility
- Typed fetch helpers for every reporting endpoint
"""

import logging
import threading
import time
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple
from urllib.parse import urlencode

import requests

from .config import config

logger = logging.getLogger(__name__)

DASHBOARD_PREFIX = "/opportunity_dash"

# ==================== ERRORS ====================


class ReportingAPIError(Exception):
    """Fetch failure: transport error or non-2xx response."""

    def __init__(self, message: str, path: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.path = path
        self.status_code = status_code

    def __str__(self) -> str:
        return self.message


# ==================== QUERY ENCODING ====================

def encode_query_params(params: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """
    Flatten a parameter mapping into single string values.

    Array-valued filters become one comma-joined value; None is dropped.
    """
    encoded: Dict[str, str] = {}
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, (list, tuple, set, frozenset)):
            items = sorted(value) if isinstance(value, (set, frozenset)) else value
            encoded[key] = ",".join(str(item) for item in items)
        else:
            encoded[key] = str(value)
    return encoded


def to_query_string(params: Optional[Mapping[str, Any]]) -> str:
    """Serialize params keeping commas literal: ``country=ph,id``."""
    return urlencode(encode_query_params(params), safe=",")


# ==================== CLIENT ====================


class ReportingAPIClient:
    """
    Thin blocking client over the remote reporting API.

    Usage:
        client = get_api_client()
        payload = client.fetch_dashboard("sales-metrics", params)
        page = client.fetch_opportunities({"pipeline_name": [...], "page": 2})
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        api_config = config.get_api_config()
        self.base_url = (base_url or api_config.base_url).rstrip('/')
        self.timeout = timeout if timeout is not None else api_config.timeout
        self.session = session or requests.Session()

    def build_url(self, path: str, params: Optional[Mapping[str, Any]] = None) -> str:
        url = f"{self.base_url}/{path.lstrip('/')}"
        query = to_query_string(params)
        return f"{url}?{query}" if query else url

    def get_json(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """
        GET a JSON document.

        Raises:
            ReportingAPIError: on network failure, non-2xx status or invalid JSON
        """
        url = self.build_url(path, params)
        start_time = time.perf_counter()

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"❌ Request to {path} failed: {e}")
            raise ReportingAPIError(
                f"Could not reach the reporting API ({path}). Please check your connection.",
                path=path,
            ) from e

        elapsed = time.perf_counter() - start_time
        logger.debug(f"GET {url} → {response.status_code} ({elapsed:.3f}s)")

        if not response.ok:
            logger.error(f"❌ {path} returned HTTP {response.status_code}")
            raise ReportingAPIError(
                f"Reporting API request failed: {path} returned HTTP {response.status_code}",
                path=path,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"❌ Invalid JSON from {path}: {e}")
            raise ReportingAPIError(
                f"Reporting API returned an invalid response for {path}",
                path=path,
                status_code=response.status_code,
            ) from e

    # ==================== ENDPOINT HELPERS ====================

    def fetch_opportunities(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """GET /opportunities/ → {count, results}"""
        return self.get_json("/opportunities/", params)

    def fetch_dashboard(self, endpoint: str, params: Mapping[str, Any]) -> Any:
        """GET /opportunity_dash/<endpoint>/"""
        return self.get_json(f"{DASHBOARD_PREFIX}/{endpoint}/", params)

    def fetch_pipeline_categories(self) -> Dict[str, List[str]]:
        """GET /pipelines/names/ → {category: [pipeline names]}"""
        payload = self.get_json("/pipelines/names/")
        if not isinstance(payload, dict):
            return {}
        return {
            str(category): [str(name) for name in names]
            for category, names in payload.items()
            if isinstance(names, (list, tuple))
        }

    def fetch_locations(self) -> List[Dict[str, Any]]:
        """GET /locations/ → [{id, name, country, country_display}]"""
        return _as_record_list(self.get_json("/locations/"))

    def fetch_users(self) -> List[Dict[str, Any]]:
        """GET /users/ → [{id, name}]"""
        return _as_record_list(self.get_json("/users/"))


def _as_record_list(payload: Any) -> List[Dict[str, Any]]:
    """Accept both a bare list and a paginated {results: [...]} envelope."""
    if isinstance(payload, dict):
        payload = payload.get('results', [])
    if not isinstance(payload, Iterable):
        return []
    return [row for row in payload if isinstance(row, dict)]


# ==================== SINGLETON CLIENT ====================

_client = None
_client_lock = threading.Lock()


def get_api_client() -> ReportingAPIClient:
    """
    Get the shared reporting API client (singleton pattern)

    Thread-safe implementation using double-checked locking, so every
    concurrent fetch reuses one connection pool.
    """
    global _client

    if _client is None:
        with _client_lock:
            if _client is None:
                _client = ReportingAPIClient()
                logger.info(f"🔌 Reporting API client created: {_client.base_url}")

    return _client


def reset_api_client():
    """Drop the shared client (forces a new session on next use)."""
    global _client

    with _client_lock:
        if _client is not None:
            _client.session.close()
            logger.info("🔄 Reporting API session closed")
        _client = None


def check_api_connection(client: Optional[ReportingAPIClient] = None) -> Tuple[bool, Optional[str]]:
    """
    Check if the reporting API is reachable

    Returns:
        Tuple of (is_connected: bool, error_message: str or None)
    """
    try:
        (client or get_api_client()).fetch_pipeline_categories()
        return True, None
    except ReportingAPIError as e:
        logger.error(f"❌ Reporting API health check failed: {e}")
        return False, e.message


__all__ = [
    'ReportingAPIError',
    'ReportingAPIClient',
    'encode_query_params',
    'to_query_string',
    'get_api_client',
    'reset_api_client',
    'check_api_connection',
    'DASHBOARD_PREFIX',
]
