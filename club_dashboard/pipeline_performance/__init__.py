# club_dashboard/pipeline_performance/__init__.py
"""
Pipeline Performance Module

Sales pipeline, member onboarding, defaulter and regional metrics from
the reporting API, with paginated drill-downs into the underlying records.

VERSION: 1.0.0
"""

# Core classes
from .filters import FilterState, calculate_date_range, validate_filters, get_filter_summary
from .queries import resolve_pipeline_categories, build_query_params, build_query_string
from .metric_types import METRIC_TYPES, MetricTypeDescriptor, UnknownMetricTypeError, get_metric_type
from .metrics import (
    SalesMetrics,
    OnboardingMetrics,
    DefaulterMetrics,
    ratio,
    build_breakdown,
    calculate_trend_sums,
    summarize_countries,
)
from .data_loader import (
    MetricAggregator,
    SectionLoadResult,
    ReferenceData,
    ReferenceDataLoader,
    load_location_wise,
)
from .state import DashboardState, DashboardStore, DrillDownModalState, ModalTab, reduce
from .drilldown import (
    BREAKDOWN_DRILLDOWNS,
    COMPOSITE_METRICS,
    Role,
    UnknownCompositeMetricError,
    DrillDownController,
    normalize_opportunity,
    normalize_opportunities_response,
    total_pages,
    clamp_page,
)
from .controller import DashboardController
from .charts import PipelineCharts

# Fragments
from .fragments import (
    get_store,
    sidebar_filter_fragment,
    section_selector,
    render_section,
    render_dialogs,
    filter_summary_caption,
)

# Constants
from .constants import (
    ALL,
    SECTIONS,
    SECTION_LABELS,
    DATE_RANGES,
    PAGE_SIZE,
    COLORS,
    CACHE_KEY_TIMING,
    DEBUG_TIMING,
    DEBUG_API_TIMING,
)

__all__ = [
    # Core classes
    'FilterState',
    'calculate_date_range',
    'validate_filters',
    'get_filter_summary',
    'resolve_pipeline_categories',
    'build_query_params',
    'build_query_string',
    'METRIC_TYPES',
    'MetricTypeDescriptor',
    'UnknownMetricTypeError',
    'get_metric_type',
    'SalesMetrics',
    'OnboardingMetrics',
    'DefaulterMetrics',
    'ratio',
    'build_breakdown',
    'calculate_trend_sums',
    'summarize_countries',
    'MetricAggregator',
    'SectionLoadResult',
    'ReferenceData',
    'ReferenceDataLoader',
    'load_location_wise',
    'DashboardState',
    'DashboardStore',
    'DrillDownModalState',
    'ModalTab',
    'reduce',
    'BREAKDOWN_DRILLDOWNS',
    'COMPOSITE_METRICS',
    'Role',
    'UnknownCompositeMetricError',
    'DrillDownController',
    'normalize_opportunity',
    'normalize_opportunities_response',
    'total_pages',
    'clamp_page',
    'DashboardController',
    'PipelineCharts',

    # Fragments
    'get_store',
    'sidebar_filter_fragment',
    'section_selector',
    'render_section',
    'render_dialogs',
    'filter_summary_caption',

    # Constants
    'ALL', 'SECTIONS', 'SECTION_LABELS', 'DATE_RANGES', 'PAGE_SIZE', 'COLORS',
    'CACHE_KEY_TIMING', 'DEBUG_TIMING', 'DEBUG_API_TIMING',
]

__version__ = '1.0.0'
