# club_dashboard/pipeline_performance/data_loader.py
"""
Data Loaders for Pipeline Performance

VERSION: 1.0.0
- ReferenceDataLoader: pipeline categories + locations + users, loaded once
  and cached in session_state with TTL
- MetricAggregator: concurrent fetch of one section's endpoint set, joined
  before any snapshot is built (first failure fails the load)
- load_location_wise(): location-wise breakdown for the regional drill-in

Principles:
1. Every fetch of a batch is issued together and awaited jointly
2. Derived metrics are computed only from a complete batch
3. Nothing partial is ever returned
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, MutableMapping, Optional, Sequence, Tuple

import pandas as pd

from ..api_client import ReportingAPIClient, ReportingAPIError
from .constants import (
    CACHE_KEY_REFERENCE,
    DEBUG_API_TIMING,
    DEBUG_TIMING,
    LEAD_SOURCES_ENDPOINT,
    LOCATION_WISE_ENDPOINT,
    REFERENCE_CACHE_TTL_SECONDS,
    SECTION_DEFAULTERS,
    SECTION_ENDPOINTS,
    SECTION_ONBOARDING,
    SECTION_SALES,
)
from .filters import FilterState
from .metrics import (
    DefaulterMetrics,
    OnboardingMetrics,
    SalesMetrics,
    build_defaulter_metrics,
    build_location_table,
    build_location_wise_table,
    build_onboarding_metrics,
    build_sales_metrics,
    calculate_trend_sums,
    extract_lead_sources,
)
from .queries import CategoryMap, build_query_params

logger = logging.getLogger(__name__)


# =============================================================================
# CONCURRENCY
# =============================================================================

async def _gather(calls: Sequence[Callable[[], Any]]) -> List[Any]:
    return await asyncio.gather(*(asyncio.to_thread(call) for call in calls))


def run_concurrently(calls: Sequence[Callable[[], Any]]) -> List[Any]:
    """
    Run blocking calls concurrently and return results in call order.

    The first exception propagates; results of the other calls are dropped.
    """
    if not calls:
        return []
    return asyncio.run(_gather(calls))


# =============================================================================
# SECTION LOAD
# =============================================================================

@dataclass(frozen=True, eq=False)
class SectionLoadResult:
    """One complete, consistent load. Only the active section's snapshot is set."""
    section: str
    valid_lead_sources: Tuple[str, ...] = ()
    sales_metrics: Optional[SalesMetrics] = None
    onboarding_metrics: Optional[OnboardingMetrics] = None
    defaulter_metrics: Optional[DefaulterMetrics] = None
    locations: Optional[pd.DataFrame] = None
    trend_sums: Optional[Dict[str, Dict[str, float]]] = None
    loaded_at: datetime = field(default_factory=datetime.now)


class MetricAggregator:
    """
    Load the endpoint set of one dashboard section.

    Usage:
        aggregator = MetricAggregator(get_api_client())
        result = aggregator.load_section(filters, 'sales', category_map)
    """

    def __init__(self, client: ReportingAPIClient):
        self.client = client

    def endpoints_for(self, section: str) -> Tuple[str, ...]:
        if section not in SECTION_ENDPOINTS:
            raise ValueError(f"Unknown dashboard section: {section}")
        return (LEAD_SOURCES_ENDPOINT,) + SECTION_ENDPOINTS[section]

    def load_section(
        self,
        filters: FilterState,
        section: str,
        category_map: Optional[CategoryMap] = None,
    ) -> SectionLoadResult:
        """
        Fetch every endpoint of `section` (plus valid lead sources) concurrently.

        Raises:
            ReportingAPIError: any single fetch failed
        """
        endpoints = self.endpoints_for(section)
        params = build_query_params(filters, None, category_map)

        start_time = time.perf_counter()
        payloads = run_concurrently([
            (lambda ep=endpoint: self.client.fetch_dashboard(ep, params))
            for endpoint in endpoints
        ])
        raw = dict(zip(endpoints, payloads))

        if DEBUG_TIMING:
            print(f"   ⏱️ [{section}] {len(endpoints)} fetches in {time.perf_counter() - start_time:.3f}s")

        result = self._fold(section, raw)
        logger.info(f"Section loaded: {section} ({len(endpoints)} endpoints)")
        return result

    def _fold(self, section: str, raw: Dict[str, Any]) -> SectionLoadResult:
        lead_sources = extract_lead_sources(raw.get(LEAD_SOURCES_ENDPOINT))

        if section == SECTION_SALES:
            return SectionLoadResult(
                section=section,
                valid_lead_sources=lead_sources,
                sales_metrics=build_sales_metrics(
                    raw.get('sales-metrics'),
                    trend=raw.get('trend-data'),
                    appointment_stats=raw.get('appointment-stats'),
                    breakdowns=raw.get('breakdown-data'),
                ),
                trend_sums=calculate_trend_sums(raw.get('trend-data')),
            )

        if section == SECTION_ONBOARDING:
            return SectionLoadResult(
                section=section,
                valid_lead_sources=lead_sources,
                onboarding_metrics=build_onboarding_metrics(raw.get('member-onboarding-metrics')),
            )

        if section == SECTION_DEFAULTERS:
            return SectionLoadResult(
                section=section,
                valid_lead_sources=lead_sources,
                defaulter_metrics=build_defaulter_metrics(raw.get('defaulter-metrics')),
            )

        # SECTION_REGIONAL
        return SectionLoadResult(
            section=section,
            valid_lead_sources=lead_sources,
            locations=build_location_table(raw.get('location-stats')),
        )

    def load_location_wise(self, filters: FilterState,
                           category_map: Optional[CategoryMap] = None) -> pd.DataFrame:
        """Per-club opportunities, appointments and online/offline NJMs behind the regional drill-in."""
        params = build_query_params(filters, None, category_map)
        payload = self.client.fetch_dashboard(LOCATION_WISE_ENDPOINT, params)
        return build_location_wise_table(payload)


def load_location_wise(client: ReportingAPIClient, filters: FilterState,
                       category_map: Optional[CategoryMap] = None) -> pd.DataFrame:
    return MetricAggregator(client).load_location_wise(filters, category_map)


# =============================================================================
# REFERENCE DATA
# =============================================================================

LOCATION_REF_COLUMNS = ['id', 'name', 'country', 'country_display']
USER_REF_COLUMNS = ['id', 'name']


@dataclass(frozen=True, eq=False)
class ReferenceData:
    category_map: Dict[str, List[str]] = field(default_factory=dict)
    locations: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=LOCATION_REF_COLUMNS))
    users: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=USER_REF_COLUMNS))
    loaded_at: Optional[datetime] = None

    @property
    def countries(self) -> pd.DataFrame:
        """Unique (country, country_display) pairs, sorted by display name."""
        if self.locations.empty:
            return pd.DataFrame(columns=['country', 'country_display'])
        return (
            self.locations[['country', 'country_display']]
            .dropna(subset=['country'])
            .drop_duplicates(subset=['country'])
            .sort_values('country_display')
            .reset_index(drop=True)
        )

    @property
    def country_names(self) -> Dict[str, str]:
        return dict(zip(self.countries['country'], self.countries['country_display']))

    @property
    def pipeline_categories(self) -> List[str]:
        return list(self.category_map)


class ReferenceDataLoader:
    """
    Load and cache filter reference data (categories, clubs, users).

    Implements the "load once" pattern: one fetch per session, refreshed
    after REFERENCE_CACHE_TTL_SECONDS.

    Usage:
        loader = ReferenceDataLoader(get_api_client())
        reference = loader.get_reference_data()
    """

    def __init__(self, client: ReportingAPIClient,
                 cache: Optional[MutableMapping[str, Any]] = None,
                 ttl_seconds: int = REFERENCE_CACHE_TTL_SECONDS):
        self.client = client
        self.ttl_seconds = ttl_seconds
        if cache is None:
            import streamlit as st
            cache = st.session_state
        self.cache = cache

    def get_reference_data(self, force_reload: bool = False) -> ReferenceData:
        """
        Get reference data (cached or fresh).

        Raises:
            ReportingAPIError: pipeline categories or locations could not be loaded
        """
        needs_reload, reason = self._needs_reload()
        if not force_reload and not needs_reload:
            return self.cache[CACHE_KEY_REFERENCE]

        if DEBUG_TIMING and reason:
            print(f"🔄 Reference reload reason: {reason}")

        return self._load()

    def _needs_reload(self) -> Tuple[bool, Optional[str]]:
        cached = self.cache.get(CACHE_KEY_REFERENCE)
        if cached is None:
            return True, "No cached data"
        if cached.loaded_at is not None:
            elapsed = (datetime.now() - cached.loaded_at).total_seconds()
            if elapsed > self.ttl_seconds:
                return True, f"TTL expired ({elapsed:.0f}s)"
        return False, None

    def _load(self) -> ReferenceData:
        start_time = time.perf_counter()

        category_map, locations, users = run_concurrently([
            self.client.fetch_pipeline_categories,
            self.client.fetch_locations,
            self._fetch_users,
        ])

        reference = ReferenceData(
            category_map=category_map,
            locations=self._frame(locations, LOCATION_REF_COLUMNS),
            users=self._frame(users, USER_REF_COLUMNS),
            loaded_at=datetime.now(),
        )
        self.cache[CACHE_KEY_REFERENCE] = reference

        if DEBUG_API_TIMING:
            print(f"   📡 Reference data: {time.perf_counter() - start_time:.3f}s")
        logger.info(
            f"Reference data loaded: categories={len(category_map)}, "
            f"locations={len(reference.locations)}, users={len(reference.users)}"
        )
        return reference

    def _fetch_users(self) -> List[Dict[str, Any]]:
        # Optional endpoint: the user filter degrades to "All" only
        try:
            return self.client.fetch_users()
        except ReportingAPIError as e:
            logger.error(f"❌ Could not load users: {e}")
            return []

    @staticmethod
    def _frame(records: List[Dict[str, Any]], columns: List[str]) -> pd.DataFrame:
        df = pd.DataFrame(records, columns=columns)
        if df.empty:
            return df
        df = df.dropna(subset=['id'])
        df['id'] = df['id'].astype(str)
        if 'name' in df.columns:
            df['name'] = df['name'].fillna('').astype(str)
        if 'country_display' in df.columns:
            df['country_display'] = df['country_display'].fillna(df['country'])
        return df.reset_index(drop=True)

    def clear_cache(self):
        if CACHE_KEY_REFERENCE in self.cache:
            del self.cache[CACHE_KEY_REFERENCE]


__all__ = [
    'run_concurrently',
    'SectionLoadResult',
    'MetricAggregator',
    'load_location_wise',
    'ReferenceData',
    'ReferenceDataLoader',
]
