# club_dashboard/pipeline_performance/state.py
"""
Dashboard State Container

VERSION: 1.0.0
- DashboardState / DrillDownModalState: frozen, serialisable snapshots
- Actions: small frozen dataclasses, one per transition
- reduce(state, action) -> state: pure, no I/O
- DashboardStore: holds the current state, serialises dispatches

Every section load and every modal fetch carries a request generation.
A response whose generation is no longer current is dropped by the
reducer, so an older request finishing last cannot overwrite a newer one.
"""

import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import pandas as pd

from .constants import SECTION_SALES, SECTIONS
from .filters import FilterState

logger = logging.getLogger(__name__)


# =============================================================================
# STATE
# =============================================================================

@dataclass(frozen=True)
class ModalTab:
    """One side of a tabbed drill-down."""
    label: str
    role: str
    metric_type: str
    data: Tuple[Dict[str, Any], ...] = ()
    total_count: int = 0
    page: int = 1
    query_params: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'label': self.label,
            'role': self.role,
            'metric_type': self.metric_type,
            'data': [dict(row) for row in self.data],
            'total_count': self.total_count,
            'page': self.page,
            'query_params': dict(self.query_params),
        }


@dataclass(frozen=True)
class DrillDownModalState:
    is_open: bool = False
    title: str = ''
    # Flat mode
    metric_type: Optional[str] = None
    extra_params: Mapping[str, Any] = field(default_factory=dict)
    expected_count: Optional[int] = None
    opportunities: Tuple[Dict[str, Any], ...] = ()
    total_count: int = 0
    page: int = 1
    # Tabbed mode
    composite_id: Optional[str] = None
    tabs: Tuple[ModalTab, ...] = ()
    active_tab: int = 0
    tab_pages: Mapping[str, int] = field(default_factory=dict)
    # Per-role request counters; tabs page independently of each other
    tab_generations: Mapping[str, int] = field(default_factory=dict)
    pending_tabs: Tuple[str, ...] = ()
    loading: bool = False
    error: Optional[str] = None
    generation: int = 0

    @property
    def is_tabbed(self) -> bool:
        return self.composite_id is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'is_open': self.is_open,
            'title': self.title,
            'metric_type': self.metric_type,
            'extra_params': dict(self.extra_params),
            'expected_count': self.expected_count,
            'opportunities': [dict(row) for row in self.opportunities],
            'total_count': self.total_count,
            'page': self.page,
            'composite_id': self.composite_id,
            'tabs': [tab.to_dict() for tab in self.tabs],
            'active_tab': self.active_tab,
            'tab_pages': dict(self.tab_pages),
            'tab_generations': dict(self.tab_generations),
            'pending_tabs': list(self.pending_tabs),
            'loading': self.loading,
            'error': self.error,
            'generation': self.generation,
        }


@dataclass(frozen=True, eq=False)
class DashboardState:
    filters: FilterState = field(default_factory=FilterState)
    pending_filters: FilterState = field(default_factory=FilterState)
    active_section: str = SECTION_SALES
    sales_metrics: Any = None
    onboarding_metrics: Any = None
    defaulter_metrics: Any = None
    locations: Optional[pd.DataFrame] = None
    valid_lead_sources: Tuple[str, ...] = ()
    trend_sums: Optional[Dict[str, Dict[str, float]]] = None
    loading: bool = False
    error: Optional[str] = None
    last_updated: Optional[datetime] = None
    section_generation: int = 0
    modal: DrillDownModalState = field(default_factory=DrillDownModalState)

    def to_dict(self) -> Dict[str, Any]:
        def _snapshot(value):
            return None if value is None else dict(value.__dict__)

        return {
            'filters': self.filters.to_dict(),
            'pending_filters': self.pending_filters.to_dict(),
            'active_section': self.active_section,
            'sales_metrics': _snapshot(self.sales_metrics),
            'onboarding_metrics': _snapshot(self.onboarding_metrics),
            'defaulter_metrics': _snapshot(self.defaulter_metrics),
            'locations': None if self.locations is None else self.locations.to_dict('records'),
            'valid_lead_sources': list(self.valid_lead_sources),
            'trend_sums': self.trend_sums,
            'loading': self.loading,
            'error': self.error,
            'last_updated': self.last_updated.isoformat() if self.last_updated else None,
            'section_generation': self.section_generation,
            'modal': self.modal.to_dict(),
        }


# =============================================================================
# ACTIONS
# =============================================================================

@dataclass(frozen=True)
class PendingFiltersEdited:
    filters: FilterState


@dataclass(frozen=True)
class FiltersApplied:
    filters: FilterState


@dataclass(frozen=True)
class FiltersReset:
    pass


@dataclass(frozen=True)
class FiltersRejected:
    message: str


@dataclass(frozen=True)
class SectionSelected:
    section: str


@dataclass(frozen=True)
class SectionLoadStarted:
    pass


@dataclass(frozen=True, eq=False)
class SectionLoaded:
    generation: int
    result: Any


@dataclass(frozen=True)
class SectionLoadFailed:
    generation: int
    message: str


@dataclass(frozen=True)
class ErrorCleared:
    pass


@dataclass(frozen=True)
class ModalOpened:
    title: str
    metric_type: Optional[str] = None
    composite_id: Optional[str] = None
    expected_count: Optional[int] = None
    extra_params: Mapping[str, Any] = field(default_factory=dict)
    page: int = 1
    active_tab: int = 0


@dataclass(frozen=True)
class ModalPageRequested:
    page: int


@dataclass(frozen=True)
class ModalTabPageRequested:
    tab_index: int
    role: str
    page: int


@dataclass(frozen=True)
class ModalLoaded:
    generation: int
    opportunities: Tuple[Dict[str, Any], ...]
    total_count: int
    page: int


@dataclass(frozen=True)
class ModalTabsLoaded:
    generation: int
    tabs: Tuple[ModalTab, ...]


@dataclass(frozen=True)
class ModalTabLoaded:
    generation: int
    tab_index: int
    tab: ModalTab
    tab_generation: int = 0


@dataclass(frozen=True)
class ModalTabLoadFailed:
    generation: int
    role: str
    tab_generation: int
    message: str


@dataclass(frozen=True)
class ModalLoadFailed:
    generation: int
    message: str


@dataclass(frozen=True)
class ModalTabChanged:
    tab_index: int


@dataclass(frozen=True)
class ModalClosed:
    pass


# =============================================================================
# REDUCER
# =============================================================================

def _stale(kind: str, generation: int, current: int) -> bool:
    if generation != current:
        logger.info(f"Discarding stale {kind} response (generation {generation}, current {current})")
        return True
    return False


def _stale_tab(modal: DrillDownModalState, generation: int, role: str, tab_generation: int) -> bool:
    """A tab response must match both the modal session and its own role's latest request."""
    if _stale('modal', generation, modal.generation) or not modal.is_open:
        return True
    return _stale(f"{role} tab", tab_generation, modal.tab_generations.get(role, 0))


def _reduce_modal(modal: DrillDownModalState, action) -> DrillDownModalState:
    if isinstance(action, ModalOpened):
        tabbed = action.composite_id is not None
        return replace(
            modal,
            is_open=True,
            title=action.title,
            metric_type=None if tabbed else action.metric_type,
            composite_id=action.composite_id,
            expected_count=action.expected_count,
            extra_params=dict(action.extra_params),
            page=action.page,
            active_tab=action.active_tab if tabbed else 0,
            # Data from a different metric must not leak into this one
            opportunities=modal.opportunities if modal.metric_type == action.metric_type else (),
            tabs=modal.tabs if tabbed and modal.composite_id == action.composite_id else (),
            pending_tabs=(),
            loading=True,
            error=None,
            generation=modal.generation + 1,
        )

    if isinstance(action, ModalPageRequested):
        return replace(modal, page=action.page, loading=True, error=None,
                       generation=modal.generation + 1)

    if isinstance(action, ModalTabPageRequested):
        pages = dict(modal.tab_pages)
        pages[action.role] = action.page
        generations = dict(modal.tab_generations)
        generations[action.role] = generations.get(action.role, 0) + 1
        pending = tuple(r for r in modal.pending_tabs if r != action.role) + (action.role,)
        return replace(modal, tab_pages=pages, tab_generations=generations, pending_tabs=pending,
                       active_tab=action.tab_index, loading=True, error=None)

    if isinstance(action, ModalLoaded):
        if _stale('modal', action.generation, modal.generation) or not modal.is_open:
            return modal
        return replace(modal, opportunities=tuple(action.opportunities),
                       total_count=action.total_count, page=action.page,
                       loading=False, error=None)

    if isinstance(action, ModalTabsLoaded):
        if _stale('modal', action.generation, modal.generation) or not modal.is_open:
            return modal
        pages = dict(modal.tab_pages)
        pages.update({tab.role: tab.page for tab in action.tabs})
        return replace(modal, tabs=tuple(action.tabs), tab_pages=pages,
                       loading=False, error=None)

    if isinstance(action, ModalTabLoaded):
        if _stale_tab(modal, action.generation, action.tab.role, action.tab_generation):
            return modal
        pending = tuple(r for r in modal.pending_tabs if r != action.tab.role)
        tabs = list(modal.tabs)
        if not 0 <= action.tab_index < len(tabs):
            return replace(modal, pending_tabs=pending, loading=bool(pending))
        tabs[action.tab_index] = action.tab
        return replace(modal, tabs=tuple(tabs), pending_tabs=pending, loading=bool(pending), error=None)

    if isinstance(action, ModalTabLoadFailed):
        if _stale_tab(modal, action.generation, action.role, action.tab_generation):
            return modal
        pending = tuple(r for r in modal.pending_tabs if r != action.role)
        return replace(modal, pending_tabs=pending, loading=bool(pending), error=action.message)

    if isinstance(action, ModalLoadFailed):
        if _stale('modal', action.generation, modal.generation) or not modal.is_open:
            return modal
        # Previously displayed records stay in place
        return replace(modal, loading=False, error=action.message)

    if isinstance(action, ModalTabChanged):
        if not 0 <= action.tab_index < max(len(modal.tabs), 1):
            return modal
        return replace(modal, active_tab=action.tab_index)

    if isinstance(action, ModalClosed):
        # Bump the generation so in-flight responses are dropped
        return DrillDownModalState(generation=modal.generation + 1)

    return modal


def reduce(state: DashboardState, action) -> DashboardState:
    """Pure transition: (state, action) → new state."""
    if isinstance(action, PendingFiltersEdited):
        return replace(state, pending_filters=action.filters)

    if isinstance(action, FiltersApplied):
        return replace(state, filters=action.filters, pending_filters=action.filters, error=None)

    if isinstance(action, FiltersReset):
        defaults = FilterState.default()
        return replace(state, filters=defaults, pending_filters=defaults, error=None)

    if isinstance(action, FiltersRejected):
        return replace(state, error=action.message)

    if isinstance(action, SectionSelected):
        if action.section not in SECTIONS:
            raise ValueError(f"Unknown dashboard section: {action.section}")
        return replace(state, active_section=action.section)

    if isinstance(action, SectionLoadStarted):
        return replace(state, loading=True, error=None,
                       section_generation=state.section_generation + 1)

    if isinstance(action, SectionLoaded):
        if _stale('section', action.generation, state.section_generation):
            return state
        result = action.result
        changes = dict(
            loading=False,
            error=None,
            valid_lead_sources=tuple(result.valid_lead_sources),
            last_updated=result.loaded_at,
        )
        # Only the loaded section's snapshot is replaced; each replacement is whole
        if result.sales_metrics is not None:
            changes.update(sales_metrics=result.sales_metrics, trend_sums=result.trend_sums)
        if result.onboarding_metrics is not None:
            changes['onboarding_metrics'] = result.onboarding_metrics
        if result.defaulter_metrics is not None:
            changes['defaulter_metrics'] = result.defaulter_metrics
        if result.locations is not None:
            changes['locations'] = result.locations
        return replace(state, **changes)

    if isinstance(action, SectionLoadFailed):
        if _stale('section', action.generation, state.section_generation):
            return state
        return replace(state, loading=False, error=action.message)

    if isinstance(action, ErrorCleared):
        return replace(state, error=None)

    modal = _reduce_modal(state.modal, action)
    if modal is state.modal:
        return state
    return replace(state, modal=modal)


# =============================================================================
# STORE
# =============================================================================

class DashboardStore:
    """
    Holds the current DashboardState; all writes go through dispatch().

    Usage:
        store = DashboardStore()
        store.dispatch(SectionSelected('onboarding'))
        store.state.active_section
    """

    def __init__(self, initial: Optional[DashboardState] = None):
        self._state = initial or DashboardState()
        self._lock = threading.Lock()
        self._listeners: List[Callable[[DashboardState], None]] = []

    @property
    def state(self) -> DashboardState:
        return self._state

    def dispatch(self, action) -> DashboardState:
        with self._lock:
            self._state = reduce(self._state, action)
            state = self._state
        for listener in list(self._listeners):
            listener(state)
        return state

    def subscribe(self, listener: Callable[[DashboardState], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe


__all__ = [
    'ModalTab',
    'DrillDownModalState',
    'DashboardState',
    'PendingFiltersEdited',
    'FiltersApplied',
    'FiltersReset',
    'FiltersRejected',
    'SectionSelected',
    'SectionLoadStarted',
    'SectionLoaded',
    'SectionLoadFailed',
    'ErrorCleared',
    'ModalOpened',
    'ModalPageRequested',
    'ModalTabPageRequested',
    'ModalLoaded',
    'ModalTabsLoaded',
    'ModalTabLoaded',
    'ModalTabLoadFailed',
    'ModalLoadFailed',
    'ModalTabChanged',
    'ModalClosed',
    'reduce',
    'DashboardStore',
]
