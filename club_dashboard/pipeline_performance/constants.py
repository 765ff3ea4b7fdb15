# club_dashboard/pipeline_performance/constants.py
"""
Constants for Pipeline Performance Module

VERSION: 1.0.0
"""

import os as _os

from ..config import config

# =============================================================================
# FILTER DEFINITIONS
# =============================================================================
ALL = 'all'

MULTI_SELECT_FIELDS = ('country', 'club', 'assigned_user', 'lead_source', 'pipeline')

DATE_RANGE_DAYS = {
    'last-7-days': 7,
    'last-30-days': 30,
    'last-90-days': 90,
    'last-year': 365,
}
CUSTOM_RANGE = 'custom-range'
DATE_RANGES = tuple(DATE_RANGE_DAYS) + (CUSTOM_RANGE,)

DATE_RANGE_LABELS = {
    'last-7-days': 'Last 7 days',
    'last-30-days': 'Last 30 days',
    'last-90-days': 'Last 90 days',
    'last-year': 'Last year',
    CUSTOM_RANGE: 'Custom Range',
}

DEFAULT_DATE_RANGE = config.get_app_setting('DEFAULT_DATE_RANGE', 'last-30-days')
if DEFAULT_DATE_RANGE not in DATE_RANGE_DAYS:
    DEFAULT_DATE_RANGE = 'last-30-days'

# =============================================================================
# QUERY PARAMETERS (filter field → API parameter name)
# =============================================================================
FILTER_PARAM_NAMES = {
    'assigned_user': 'assigned_to',
    'country': 'country',
    'club': 'location',
    'lead_source': 'lead_source',
}
DEFAULT_DATE_FIELD = 'raw_created_at'
DATE_FIELD_PARAM = 'dateField'

# =============================================================================
# SECTIONS → DASHBOARD ENDPOINTS
# =============================================================================
SECTION_SALES = 'sales'
SECTION_ONBOARDING = 'onboarding'
SECTION_DEFAULTERS = 'defaulters'
SECTION_REGIONAL = 'regional'
SECTIONS = (SECTION_SALES, SECTION_ONBOARDING, SECTION_DEFAULTERS, SECTION_REGIONAL)

SECTION_LABELS = {
    SECTION_SALES: '📈 Sales Pipeline',
    SECTION_ONBOARDING: '🏁 Member Onboarding',
    SECTION_DEFAULTERS: '⚠️ Defaulters',
    SECTION_REGIONAL: '🌏 Regional View',
}

SECTION_ENDPOINTS = {
    SECTION_SALES: ('sales-metrics', 'trend-data', 'appointment-stats', 'breakdown-data'),
    SECTION_ONBOARDING: ('member-onboarding-metrics',),
    SECTION_DEFAULTERS: ('defaulter-metrics',),
    SECTION_REGIONAL: ('location-stats',),
}
LEAD_SOURCES_ENDPOINT = 'valid-lead-source'
LOCATION_WISE_ENDPOINT = 'location-vise'

TREND_GRANULARITIES = ('daily', 'weekly', 'monthly')
TREND_FIELDS = ('leads', 'appointments', 'njms')

# =============================================================================
# DRILL-DOWN
# =============================================================================
PAGE_SIZE = config.get_app_setting('DRILLDOWN_PAGE_SIZE', 10)
EMPTY_VALUE = '-'
DISPLAY_DATE_FORMAT = '%d %b %Y'

RECOVERY_TARGET_PERCENT = 50

# =============================================================================
# CACHE SETTINGS
# =============================================================================
REFERENCE_CACHE_TTL_SECONDS = config.get_app_setting('REFERENCE_CACHE_TTL_SECONDS', 3600)

# =============================================================================
# SESSION STATE KEYS (prefixed _cp_ to avoid collisions)
# =============================================================================
CACHE_KEY_REFERENCE = '_cp_reference_cache'
CACHE_KEY_STORE = '_cp_dashboard_store'
CACHE_KEY_TIMING = '_cp_timing_data'
CACHE_KEY_SHOW_DRILLDOWN = '_cp_show_drilldown'
CACHE_KEY_SHOW_LOCATION_WISE = '_cp_show_location_wise'
FILTER_WIDGET_PREFIX = 'cp_filter_'

# =============================================================================
# COLOR SCHEME
# =============================================================================
COLORS = {
    "primary": "#1f77b4",
    "leads": "#3B82F6",
    "appointments": "#10B981",
    "njms": "#8B5CF6",
    "warning": "#F59E0B",
    "danger": "#EF4444",
    "neutral": "#d3d3d3",
    "target": "#d62728",
    "text_light": "#666666",
}

CHART_PALETTE = ['#3B82F6', '#10B981', '#F59E0B', '#EF4444', '#8B5CF6', '#06B6D4']
CHART_HEIGHT = 320

# =============================================================================
# DEBUG SETTINGS
# Use environment variables to enable: CP_DEBUG_TIMING=true / CP_DEBUG_API=true
# =============================================================================
DEBUG_TIMING = _os.getenv('CP_DEBUG_TIMING', 'false').lower() == 'true'
DEBUG_API_TIMING = _os.getenv('CP_DEBUG_API', 'false').lower() == 'true'

# =============================================================================
# METRIC DISPLAY
# =============================================================================
PERCENT_FORMAT = "{:.2f}%"
NUMBER_FORMAT = "{:,.0f}"
