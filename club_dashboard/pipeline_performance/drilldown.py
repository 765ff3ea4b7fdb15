# club_dashboard/pipeline_performance/drilldown.py
"""
Drill-Down Fetch Controller for Pipeline Performance

Paginated record lists behind a clicked metric, in two modes:
- flat:   one metric type, one page cursor
- tabbed: a composite metric → two metric types fetched side by side,
          one page cursor per role

VERSION: 1.0.0
- COMPOSITE_METRICS: table-driven composite → (role, metric type, label) pairs
- Composite id is carried in modal state (no title matching)
- Page changes are server-side refetches with a new `page` param
- BREAKDOWN_DRILLDOWNS: breakdown chart rows → flat drill-downs with the row name as a filter
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import pandas as pd

from ..api_client import ReportingAPIClient, ReportingAPIError
from .constants import DISPLAY_DATE_FORMAT, EMPTY_VALUE, PAGE_SIZE
from .data_loader import run_concurrently
from .metric_types import get_metric_type
from .metrics import to_number
from .queries import CategoryMap, build_query_params
from .state import (
    DashboardStore,
    ModalClosed,
    ModalLoaded,
    ModalLoadFailed,
    ModalOpened,
    ModalPageRequested,
    ModalTab,
    ModalTabChanged,
    ModalTabLoaded,
    ModalTabLoadFailed,
    ModalTabPageRequested,
    ModalTabsLoaded,
)

logger = logging.getLogger(__name__)


# =============================================================================
# COMPOSITE METRICS
# =============================================================================

class Role(str, Enum):
    ONLINE = 'online'
    OFFLINE = 'offline'
    NJM = 'njm'
    LEAD = 'lead'
    APPOINTMENT = 'appointment'
    AGREEMENT = 'agreement'
    SHOWED = 'showed'
    CONTACTED = 'contacted'
    GOFAST = 'gofast'
    AF_RESULTS = 'afresults'
    APPS = 'apps'


@dataclass(frozen=True)
class CompositeTab:
    role: Role
    metric_type: str
    label: str


class UnknownCompositeMetricError(KeyError):
    """Raised for a composite metric id missing from COMPOSITE_METRICS."""


COMPOSITE_METRICS: Dict[str, Tuple[CompositeTab, CompositeTab]] = {
    # Sales
    'online-vs-offline': (
        CompositeTab(Role.ONLINE, 'online-leads', 'Online Leads'),
        CompositeTab(Role.OFFLINE, 'offline-leads', 'Offline Leads'),
    ),
    'lead-to-sale': (
        CompositeTab(Role.NJM, 'total-njms', 'NJMs'),
        CompositeTab(Role.LEAD, 'total-leads', 'Leads'),
    ),
    'lead-to-appointment': (
        CompositeTab(Role.APPOINTMENT, 'total-appointments', 'Appointments'),
        CompositeTab(Role.LEAD, 'total-leads', 'Leads'),
    ),
    'appointment-to-sale': (
        CompositeTab(Role.NJM, 'total-njms', 'NJMs'),
        CompositeTab(Role.APPOINTMENT, 'total-appointments', 'Appointments'),
    ),
    'agreement-vs-njm': (
        CompositeTab(Role.AGREEMENT, 'membership-agreements', 'Membership Agreements'),
        CompositeTab(Role.NJM, 'total-njms', 'NJMs'),
    ),
    'njm-to-appt-showed': (
        CompositeTab(Role.NJM, 'total-njms', 'NJMs'),
        CompositeTab(Role.SHOWED, 'shown-appointments', 'Appointments Showed'),
    ),
    'contacted-to-appointment': (
        CompositeTab(Role.APPOINTMENT, 'total-appointments', 'Appointments'),
        CompositeTab(Role.CONTACTED, 'contacted-njms', 'Contacted'),
    ),
    # Onboarding
    'assessment-uptake': (
        CompositeTab(Role.GOFAST, '15min-gofast', '15min GoFast'),
        CompositeTab(Role.AGREEMENT, 'membership-agreements', 'Membership Agreements'),
    ),
    'af-conversion': (
        CompositeTab(Role.AF_RESULTS, 'af-results', 'AF Results'),
        CompositeTab(Role.GOFAST, '15min-gofast', '15min GoFast'),
    ),
    'app-adoption': (
        CompositeTab(Role.APPS, 'apps', 'Apps'),
        CompositeTab(Role.AGREEMENT, 'membership-agreements', 'Membership Agreements'),
    ),
}


def get_composite(composite_id: str) -> Tuple[CompositeTab, CompositeTab]:
    try:
        return COMPOSITE_METRICS[composite_id]
    except KeyError:
        raise UnknownCompositeMetricError(composite_id) from None


# =============================================================================
# BREAKDOWN DRILL-INS
# =============================================================================

@dataclass(frozen=True)
class BreakdownDrill:
    """A breakdown chart row → flat drill-down scoped by the row's name."""
    metric_type: str
    param: str
    title: str


BREAKDOWN_DRILLDOWNS: Dict[str, BreakdownDrill] = {
    'lead_source': BreakdownDrill('lead-source', 'lead_source', "{} Leads"),
    'njm_lead_source': BreakdownDrill('njm-lead-source', 'lead_source', "{} NJMs"),
    'appointment_status': BreakdownDrill('appointment-status', 'appointment_status', "{} Appointments"),
}


# =============================================================================
# PAGINATION
# =============================================================================

def total_pages(total_count: Any, page_size: int = PAGE_SIZE) -> int:
    """ceil(total / page_size); 0 when there is nothing to show."""
    total = int(to_number(total_count))
    if total <= 0 or page_size <= 0:
        return 0
    return (total + page_size - 1) // page_size


def clamp_page(page: Any, pages: int) -> int:
    """Keep a requested page inside [1, pages] (1 when there are no pages)."""
    page = int(to_number(page)) or 1
    return max(1, min(page, max(pages, 1)))


def page_window(current: int, pages: int, max_visible: int = 5) -> List[Union[int, str]]:
    """
    Page buttons to show: a window around `current`, with first/last page
    and '...' gaps when the window doesn't reach them.
    """
    if pages <= max_visible:
        return list(range(1, pages + 1))

    start = max(1, current - max_visible // 2)
    end = min(pages, start + max_visible - 1)
    start = max(1, end - max_visible + 1)

    window: List[Union[int, str]] = []
    if start > 1:
        window.append(1)
        if start > 2:
            window.append('...')
    window.extend(range(start, end + 1))
    if end < pages:
        if end < pages - 1:
            window.append('...')
        window.append(pages)
    return window


# =============================================================================
# NORMALIZATION
# =============================================================================

def _text(value: Any, key: str = 'name') -> str:
    """Flatten a nested object or scalar into display text; '-' when absent."""
    if isinstance(value, Mapping):
        value = value.get(key)
    if value is None or isinstance(value, (Mapping, list)):
        return EMPTY_VALUE
    text = str(value).strip()
    return text or EMPTY_VALUE


def _first(record: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value not in (None, ''):
            return value
    return None


def format_date(value: Any) -> str:
    if value in (None, ''):
        return EMPTY_VALUE
    parsed = pd.to_datetime(value, errors='coerce')
    if pd.isna(parsed):
        return EMPTY_VALUE
    return parsed.strftime(DISPLAY_DATE_FORMAT)


def _country(location: Any, countries: Optional[Mapping[str, str]]) -> str:
    if not isinstance(location, Mapping):
        return EMPTY_VALUE
    if location.get('country_display'):
        return str(location['country_display'])
    code = location.get('country')
    if code is None:
        return EMPTY_VALUE
    return str((countries or {}).get(str(code), code))


def normalize_opportunity(record: Mapping[str, Any],
                          countries: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """One opportunity record → flat display row."""
    contact = record.get('contact')
    name = _first(record, 'name')
    location = record.get('location')

    return {
        'id': record.get('id'),
        'name': str(name) if name is not None else _text(contact),
        'contact': _text(contact),
        'email': _text(contact, 'email') if isinstance(contact, Mapping) else _text(record.get('email')),
        'phone': _text(contact, 'phone') if isinstance(contact, Mapping) else _text(record.get('phone')),
        'assigned_to': _text(_first(record, 'assigned_to', 'assigned_user')),
        'source': _text(_first(record, 'lead_source', 'source')),
        'stage': _text(record.get('stage')),
        'pipeline': _text(record.get('pipeline')),
        'location': _text(location),
        'country': _country(location, countries),
        'status': _text(record.get('status')),
        'value': float(to_number(_first(record, 'monetary_value', 'value'))),
        'created_date': format_date(_first(record, 'raw_created_at', 'created_at')),
        'last_activity': format_date(_first(record, 'last_activity', 'updated_at')),
    }


def normalize_opportunities_response(payload: Any,
                                     countries: Optional[Mapping[str, str]] = None
                                     ) -> Tuple[Tuple[Dict[str, Any], ...], int]:
    """{count, results} → (rows, total count)."""
    if isinstance(payload, list):
        payload = {'count': len(payload), 'results': payload}
    if not isinstance(payload, Mapping):
        return (), 0
    results = payload.get('results') or []
    rows = tuple(
        normalize_opportunity(record, countries)
        for record in results if isinstance(record, Mapping)
    )
    return rows, int(to_number(payload.get('count', len(rows))))


# =============================================================================
# CONTROLLER
# =============================================================================

class DrillDownController:
    """
    Orchestrate drill-down fetches and dispatch their outcome to the store.

    Usage:
        drilldown = DrillDownController(client, store, category_map, countries)
        drilldown.open('total-leads', 'Total Leads', expected_count=1045)
        drilldown.open_tabbed('lead-to-sale', 'Lead to Sale')
        drilldown.change_tab_page(0, 2)
    """

    def __init__(self, client: ReportingAPIClient, store: DashboardStore,
                 category_map: Optional[CategoryMap] = None,
                 countries: Optional[Mapping[str, str]] = None):
        self.client = client
        self.store = store
        self.category_map = category_map or {}
        self.countries = countries or {}

    @property
    def modal(self):
        return self.store.state.modal

    def _params(self, metric_type: str, page: int,
                extra_params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        return build_query_params(
            self.store.state.filters,
            metric_type,
            self.category_map,
            extra_params=extra_params,
            page=page,
        )

    def _fetch(self, params: Mapping[str, Any]) -> Tuple[Tuple[Dict[str, Any], ...], int]:
        return normalize_opportunities_response(
            self.client.fetch_opportunities(params), self.countries
        )

    # ---- flat mode ----------------------------------------------------------

    def open(self, metric_type: str, title: str, expected_count: Optional[int] = None,
             page: int = 1, extra_params: Optional[Mapping[str, Any]] = None):
        """Open (or reopen) the flat drill-down for one metric type."""
        get_metric_type(metric_type)
        self.store.dispatch(ModalOpened(
            title=title,
            metric_type=metric_type,
            expected_count=expected_count,
            extra_params=dict(extra_params or {}),
            page=page,
        ))
        self._load_flat(page)

    def open_breakdown(self, breakdown: str, item: Mapping[str, Any]):
        """Open the flat drill-down behind one breakdown row ({name, value, ...})."""
        drill = BREAKDOWN_DRILLDOWNS[breakdown]
        name = item.get('name')
        self.open(
            drill.metric_type,
            drill.title.format(name),
            expected_count=item.get('value'),
            extra_params={drill.param: name},
        )

    def change_page(self, page: int):
        modal = self.modal
        if not modal.is_open or modal.is_tabbed:
            return
        self.store.dispatch(ModalPageRequested(page))
        self._load_flat(page)

    def _load_flat(self, page: int):
        modal = self.modal
        generation = modal.generation
        params = self._params(modal.metric_type, page, modal.extra_params)
        try:
            rows, count = self._fetch(params)
        except ReportingAPIError as e:
            logger.error(f"❌ Drill-down {modal.metric_type} page {page} failed: {e}")
            self.store.dispatch(ModalLoadFailed(generation, e.message or 'Failed to fetch opportunities'))
            return
        self.store.dispatch(ModalLoaded(generation, rows, count, page))

    # ---- tabbed mode --------------------------------------------------------

    def open_tabbed(self, composite_id: str, title: str, active_tab: int = 0, page: int = 1):
        """
        Open a side-by-side drill-down: both constituents fetched concurrently,
        each with its own page cursor from the per-role page map.
        """
        tabs = get_composite(composite_id)
        self.store.dispatch(ModalOpened(
            title=title,
            composite_id=composite_id,
            page=page,
            active_tab=active_tab,
        ))

        modal = self.modal
        generation = modal.generation
        pages = [modal.tab_pages.get(tab.role.value, 1) for tab in tabs]
        params = [self._params(tab.metric_type, p) for tab, p in zip(tabs, pages)]

        try:
            results = run_concurrently([
                (lambda prm=prm: self._fetch(prm)) for prm in params
            ])
        except ReportingAPIError as e:
            logger.error(f"❌ Drill-down {composite_id} failed: {e}")
            self.store.dispatch(ModalLoadFailed(generation, e.message or 'Failed to fetch opportunities'))
            return

        self.store.dispatch(ModalTabsLoaded(generation, tuple(
            ModalTab(
                label=tab.label,
                role=tab.role.value,
                metric_type=tab.metric_type,
                data=rows,
                total_count=count,
                page=p,
                query_params=prm,
            )
            for tab, (rows, count), p, prm in zip(tabs, results, pages, params)
        )))

    def change_tab(self, tab_index: int):
        """Switch the visible tab; already loaded data is not refetched."""
        self.store.dispatch(ModalTabChanged(tab_index))

    def change_tab_page(self, tab_index: int, page: int):
        """Refetch only one tab's constituent query with a new page."""
        modal = self.modal
        if not modal.is_open or not modal.is_tabbed:
            return
        tab = get_composite(modal.composite_id)[tab_index]
        role = tab.role.value
        requested = self.store.dispatch(ModalTabPageRequested(tab_index, role, page)).modal
        generation, tab_generation = requested.generation, requested.tab_generations[role]

        params = self._params(tab.metric_type, page)
        try:
            rows, count = self._fetch(params)
        except ReportingAPIError as e:
            logger.error(f"❌ Drill-down tab {tab.metric_type} page {page} failed: {e}")
            self.store.dispatch(ModalTabLoadFailed(
                generation, role, tab_generation, e.message or 'Failed to fetch opportunities',
            ))
            return

        self.store.dispatch(ModalTabLoaded(generation, tab_index, ModalTab(
            label=tab.label,
            role=role,
            metric_type=tab.metric_type,
            data=rows,
            total_count=count,
            page=page,
            query_params=params,
        ), tab_generation=tab_generation))

    def close(self):
        self.store.dispatch(ModalClosed())


__all__ = [
    'Role',
    'CompositeTab',
    'UnknownCompositeMetricError',
    'COMPOSITE_METRICS',
    'get_composite',
    'BreakdownDrill',
    'BREAKDOWN_DRILLDOWNS',
    'total_pages',
    'clamp_page',
    'page_window',
    'format_date',
    'normalize_opportunity',
    'normalize_opportunities_response',
    'DrillDownController',
]
