# club_dashboard/pipeline_performance/metric_types.py
"""
Metric Type Descriptors

Static lookup table (metric type id → descriptor) used by the query builder
to scope a drill-down list to the records behind one dashboard number.

VERSION: 1.0.0
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from .constants import DEFAULT_DATE_FIELD

# =============================================================================
# PIPELINES
# =============================================================================
SALES_PIPELINE = 'AFC Sales Pipeline'
ONBOARDING_PIPELINE = 'Member Onboarding'
DEFAULTER_PIPELINE = 'Defaulter Pipeline'

PAID_MEDIA_SOURCES = ('Ads', 'Facebook', 'Google', 'Instagram', 'Whatsapp')


class UnknownMetricTypeError(KeyError):
    """Raised for a metric type id missing from METRIC_TYPES."""


@dataclass(frozen=True)
class MetricTypeDescriptor:
    """
    Fixed query scoping for one metric type.

    `pipeline_name` may be a category label (resolved through the category
    map) or a literal pipeline name. `static_params` are emitted as-is.
    """
    id: str
    pipeline_name: Optional[str] = None
    date_field: str = DEFAULT_DATE_FIELD
    static_params: Mapping[str, Any] = field(default_factory=dict)

    def params(self) -> Dict[str, Any]:
        return dict(self.static_params)


def _metric(metric_id: str, pipeline: Optional[str] = None,
            date_field: str = DEFAULT_DATE_FIELD, **static_params) -> MetricTypeDescriptor:
    return MetricTypeDescriptor(
        id=metric_id,
        pipeline_name=pipeline,
        date_field=date_field,
        static_params=static_params,
    )


_DESCRIPTORS: Tuple[MetricTypeDescriptor, ...] = (
    # Sales pipeline
    _metric('total-leads', SALES_PIPELINE),
    _metric('total-njms', SALES_PIPELINE, date_field='membership_signup_date', status='won'),
    _metric('total-appointments', SALES_PIPELINE, date_field='event_created_on'),
    _metric('shown-appointments', SALES_PIPELINE, appointment_status='showed'),
    _metric('leads-without-tags', SALES_PIPELINE, contact_tags=5),
    _metric('online-leads', SALES_PIPELINE, contact_tags=3),
    _metric('offline-leads', SALES_PIPELINE, contact_tags=1),
    _metric('contacted-njms', SALES_PIPELINE, stage_name='Initiate Contact'),
    _metric('paid-media-njms', SALES_PIPELINE, date_field='membership_signup_date',
            status='won', lead_source=list(PAID_MEDIA_SOURCES)),
    _metric('njm-lead-source', SALES_PIPELINE, date_field='membership_signup_date', status='won'),
    _metric('lead-source', SALES_PIPELINE),
    _metric('appointment-status', SALES_PIPELINE),

    # Member onboarding
    _metric('membership-agreements', ONBOARDING_PIPELINE, stage_name='Membership Agreement'),
    _metric('15min-gofast', ONBOARDING_PIPELINE, stage_name='15min GoFast'),
    _metric('af-results', ONBOARDING_PIPELINE, stage_name='AF Results'),
    _metric('apps', ONBOARDING_PIPELINE, stage_name='Apps'),

    # Defaulters
    _metric('defaulter-1m', DEFAULTER_PIPELINE, stage_name='D1'),
    _metric('defaulter-2m', DEFAULTER_PIPELINE, stage_name='D2'),
    _metric('defaulter-3m', DEFAULTER_PIPELINE, stage_name='D3'),
    _metric('defaulter-paid', DEFAULTER_PIPELINE, stage_name='Paid'),
    _metric('defaulter-ptp', DEFAULTER_PIPELINE, stage_name='PTP'),
    _metric('defaulter-noresponse', DEFAULTER_PIPELINE, stage_name='No Response'),
    _metric('defaulter-cancelled', DEFAULTER_PIPELINE, stage_name='Cancelled Membership'),
)

METRIC_TYPES: Dict[str, MetricTypeDescriptor] = {d.id: d for d in _DESCRIPTORS}


def get_metric_type(metric_id: str) -> MetricTypeDescriptor:
    """Look up a descriptor; unknown ids are a programming error."""
    try:
        return METRIC_TYPES[metric_id]
    except KeyError:
        raise UnknownMetricTypeError(metric_id) from None


__all__ = [
    'SALES_PIPELINE',
    'ONBOARDING_PIPELINE',
    'DEFAULTER_PIPELINE',
    'PAID_MEDIA_SOURCES',
    'UnknownMetricTypeError',
    'MetricTypeDescriptor',
    'METRIC_TYPES',
    'get_metric_type',
]
