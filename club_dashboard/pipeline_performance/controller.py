# club_dashboard/pipeline_performance/controller.py
"""
Dashboard Controller for Pipeline Performance

Turns user intents (edit / apply / reset filters, switch section) into
store dispatches and section loads.

VERSION: 1.0.0
"""

import logging
from typing import Mapping, Optional

import pandas as pd

from ..api_client import ReportingAPIClient, ReportingAPIError
from .data_loader import MetricAggregator, SectionLoadResult
from .drilldown import DrillDownController
from .filters import FilterState, validate_filters
from .queries import CategoryMap
from .state import (
    DashboardStore,
    ErrorCleared,
    FiltersApplied,
    FiltersRejected,
    FiltersReset,
    PendingFiltersEdited,
    SectionLoadFailed,
    SectionLoaded,
    SectionLoadStarted,
    SectionSelected,
)

logger = logging.getLogger(__name__)


class DashboardController:
    """
    Usage:
        controller = DashboardController(client, store, category_map, countries)
        controller.apply_filters(pending)
        controller.select_section('defaulters')
        controller.drilldown.open_tabbed('lead-to-sale', 'Lead to Sale')
    """

    def __init__(self, client: ReportingAPIClient, store: DashboardStore,
                 category_map: Optional[CategoryMap] = None,
                 countries: Optional[Mapping[str, str]] = None):
        self.client = client
        self.store = store
        self.category_map = category_map or {}
        self.aggregator = MetricAggregator(client)
        self.drilldown = DrillDownController(client, store, self.category_map, countries)

    # =========================================================================
    # FILTERS
    # =========================================================================

    def edit_filters(self, filters: FilterState):
        """Update the pending copy only; nothing is fetched."""
        self.store.dispatch(PendingFiltersEdited(filters))

    def apply_filters(self, filters: Optional[FilterState] = None) -> bool:
        """
        Promote pending (or given) filters to applied and reload.

        Returns:
            False when validation rejected the filters (no fetch was made)
        """
        filters = filters if filters is not None else self.store.state.pending_filters
        is_valid, error = validate_filters(filters)
        if not is_valid:
            logger.warning(f"Filters rejected: {error}")
            self.store.dispatch(FiltersRejected(error))
            return False

        self.store.dispatch(FiltersApplied(filters))
        self.load()
        return True

    def reset_filters(self):
        """Reset applied and pending filters to defaults in one step, then reload."""
        self.store.dispatch(FiltersReset())
        self.load()

    def clear_error(self):
        self.store.dispatch(ErrorCleared())

    # =========================================================================
    # SECTIONS
    # =========================================================================

    def select_section(self, section: str, reload: bool = True):
        self.store.dispatch(SectionSelected(section))
        if reload:
            self.load()

    def load(self) -> Optional[SectionLoadResult]:
        """
        Load the active section for the applied filters.

        The previous snapshot stays visible until the whole batch arrives.
        """
        self.store.dispatch(SectionLoadStarted())
        state = self.store.state
        generation = state.section_generation

        try:
            result = self.aggregator.load_section(
                state.filters, state.active_section, self.category_map
            )
        except ReportingAPIError as e:
            logger.error(f"❌ Failed to load {state.active_section}: {e}")
            self.store.dispatch(SectionLoadFailed(generation, e.message or 'Failed to load dashboard data'))
            return None

        self.store.dispatch(SectionLoaded(generation, result))
        return result

    def load_location_wise(self) -> pd.DataFrame:
        """
        Raises:
            ReportingAPIError: fetch failed (shown in the regional drill-in)
        """
        return self.aggregator.load_location_wise(self.store.state.filters, self.category_map)


__all__ = ['DashboardController']
