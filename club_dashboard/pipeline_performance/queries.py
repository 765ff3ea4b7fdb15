# club_dashboard/pipeline_performance/queries.py
"""
Query-Parameter Builder for Pipeline Performance

Translates a FilterState (+ optional metric type) into the flat parameter
object every reporting endpoint accepts. One builder serves both the
dashboard sections and the drill-down lists.

VERSION: 1.0.0

Rules, in order:
1. Non-'all' assigned_user / country / club / lead_source → array params
2. pipeline_name: user category selection wins over the metric default
3. raw_created_at_min / _max when both bounds resolve; a metric with its own
   date column adds <column>_min / _max and dateField=<column> alongside
4. Metric static params (stage_name, contact_tags, ...) never touch pipeline_name
5. Caller overrides last
"""

import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from ..api_client import encode_query_params, to_query_string
from .constants import ALL, DATE_FIELD_PARAM, DEFAULT_DATE_FIELD, FILTER_PARAM_NAMES
from .filters import FilterState, filter_date_range
from .metric_types import MetricTypeDescriptor, get_metric_type

logger = logging.getLogger(__name__)

CategoryMap = Mapping[str, List[str]]


# =============================================================================
# PIPELINE CATEGORY RESOLVER
# =============================================================================

def resolve_pipeline_categories(
    selected: Optional[Iterable[str]],
    category_map: Optional[CategoryMap],
) -> Optional[List[str]]:
    """
    Expand category labels into concrete pipeline names.

    Returns None for no restriction: 'all' or empty selection, or when
    nothing the user picked is present in the map.
    """
    selected = list(selected or ())
    if not selected or ALL in selected:
        return None

    category_map = category_map or {}
    names: List[str] = []
    for category in selected:
        pipelines = category_map.get(category)
        if isinstance(pipelines, (list, tuple)):
            names.extend(pipelines)

    return names or None


def _metric_pipeline(descriptor: MetricTypeDescriptor,
                     category_map: Optional[CategoryMap]) -> Union[List[str], str, None]:
    if not descriptor.pipeline_name:
        return None
    pipelines = (category_map or {}).get(descriptor.pipeline_name)
    if isinstance(pipelines, (list, tuple)):
        return list(pipelines)
    # Not a known category: send the literal pipeline name
    return descriptor.pipeline_name


# =============================================================================
# BUILDER
# =============================================================================

def build_query_params(
    filters: FilterState,
    metric_type: Union[str, MetricTypeDescriptor, None] = None,
    category_map: Optional[CategoryMap] = None,
    extra_params: Optional[Mapping[str, Any]] = None,
    page: Optional[int] = None,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Build the flat parameter object for one endpoint call.

    Args:
        filters: Applied filter state
        metric_type: Metric type id/descriptor, None for section endpoints
        category_map: Pipeline category → pipeline names lookup
        extra_params: Final overrides (e.g. a clicked lead source)
        page: Drill-down page number

    Raises:
        UnknownMetricTypeError: metric_type id not in METRIC_TYPES
    """
    descriptor = (
        get_metric_type(metric_type) if isinstance(metric_type, str) else metric_type
    )
    params: Dict[str, Any] = {}

    # 1. Simple multi-select filters
    for field_name, param_name in FILTER_PARAM_NAMES.items():
        selected = getattr(filters, field_name)
        if selected and ALL not in selected:
            params[param_name] = list(selected)

    # 2. Pipeline precedence
    if filters.pipeline and ALL not in filters.pipeline:
        resolved = resolve_pipeline_categories(filters.pipeline, category_map)
        if resolved:
            params['pipeline_name'] = resolved
        else:
            logger.debug(f"Pipeline selection {filters.pipeline} resolved to nothing; no restriction")
    elif descriptor is not None:
        pipeline = _metric_pipeline(descriptor, category_map)
        if pipeline:
            params['pipeline_name'] = pipeline

    # 3. Date range: raw_created_at always; a metric's own date column only adds keys
    bounds = filter_date_range(filters, today=today)
    own_field = descriptor.date_field if descriptor is not None else DEFAULT_DATE_FIELD
    date_fields = dict.fromkeys([DEFAULT_DATE_FIELD, own_field])
    if bounds['start_date'] and bounds['end_date']:
        for date_field in date_fields:
            params[f"{date_field}_min"] = bounds['start_date']
            params[f"{date_field}_max"] = bounds['end_date']
    if own_field != DEFAULT_DATE_FIELD:
        params[DATE_FIELD_PARAM] = own_field

    # 4. Metric static params
    if descriptor is not None:
        for key, value in descriptor.params().items():
            if key == 'pipeline_name':
                continue
            params[key] = list(value) if isinstance(value, (list, tuple)) else value

    # 5. Caller overrides
    if extra_params:
        params.update({k: v for k, v in extra_params.items() if v is not None})

    if page is not None:
        params['page'] = int(page)

    return params


def build_query_string(filters: FilterState, metric_type=None, category_map=None,
                       extra_params=None, page=None, today=None) -> str:
    """build_query_params() serialized with comma-joined arrays."""
    return to_query_string(build_query_params(
        filters, metric_type, category_map, extra_params=extra_params, page=page, today=today,
    ))


__all__ = [
    'resolve_pipeline_categories',
    'build_query_params',
    'build_query_string',
    'encode_query_params',
    'to_query_string',
]
