# club_dashboard/pipeline_performance/metrics.py
"""
Metrics Calculator for Pipeline Performance

Folds the raw dashboard payloads of one load into derived, read-only
snapshots. Snapshots are rebuilt wholesale per load so every ratio is
computed from numerator and denominator of the same batch.

VERSION: 1.0.0
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from .constants import RECOVERY_TARGET_PERCENT, TREND_FIELDS, TREND_GRANULARITIES

logger = logging.getLogger(__name__)


# =============================================================================
# HELPERS
# =============================================================================

def to_number(value: Any) -> float:
    """Missing or non-numeric API values count as 0. Thousands separators are ignored."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return 0 if isinstance(value, float) and not math.isfinite(value) else value
    try:
        number = float(str(value).strip().replace(',', ''))
    except ValueError:
        return 0
    if not math.isfinite(number):
        return 0
    return int(number) if number.is_integer() else number


def ratio(numerator: Any, denominator: Any) -> float:
    """numerator / denominator * 100, rounded to 2 decimals; 0 if either side is falsy."""
    numerator, denominator = to_number(numerator), to_number(denominator)
    if not numerator or not denominator:
        return 0
    return round(numerator / denominator * 100, 2)


def build_breakdown(mapping: Optional[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """
    label → count mapping into [{name, value, percentage}] sorted by value desc.

    Percentages are against the breakdown total, rounded to 1 decimal.
    Empty or all-zero input gives [].
    """
    if not isinstance(mapping, Mapping) or not mapping:
        return []

    values = pd.Series({str(k): to_number(v) for k, v in mapping.items()}, dtype='float64')
    total = values.sum()
    if total <= 0:
        return []

    values = values.sort_values(ascending=False, kind='stable')
    return [
        {
            'name': name,
            'value': int(value) if float(value).is_integer() else float(value),
            'percentage': round(float(value) / total * 100, 1),
        }
        for name, value in values.items()
    ]


def _records(payload: Any, key: str = 'results') -> List[Dict[str, Any]]:
    if isinstance(payload, Mapping):
        payload = payload.get(key, [])
    if not isinstance(payload, list):
        return []
    return [row for row in payload if isinstance(row, Mapping)]


# =============================================================================
# TRENDS
# =============================================================================

def normalize_trend(payload: Any) -> Dict[str, List[Dict[str, Any]]]:
    """{daily, weekly, monthly: [{period, leads, appointments, njms}]} with 0 for gaps."""
    payload = payload if isinstance(payload, Mapping) else {}
    trend = {}
    for granularity in TREND_GRANULARITIES:
        rows = []
        for row in _records(payload.get(granularity)):
            entry = {'period': row.get('period')}
            entry.update({f: to_number(row.get(f)) for f in TREND_FIELDS})
            rows.append(entry)
        trend[granularity] = rows
    return trend


def calculate_trend_sums(payload: Any) -> Dict[str, Dict[str, float]]:
    """Per granularity: sum of leads / appointments / njms across all periods."""
    trend = normalize_trend(payload)
    sums = {}
    for granularity in TREND_GRANULARITIES:
        df = pd.DataFrame(trend[granularity], columns=['period', *TREND_FIELDS])
        sums[granularity] = {
            f: to_number(df[f].sum()) if not df.empty else 0
            for f in TREND_FIELDS
        }
    return sums


# =============================================================================
# SNAPSHOTS
# =============================================================================

@dataclass(frozen=True)
class SalesMetrics:
    total_leads: float = 0
    total_appointments: float = 0
    total_njms: float = 0
    membership_agreements: float = 0
    total_contacted: float = 0
    total_paid_media: float = 0
    online_leads: float = 0
    offline_leads: float = 0
    leads_without_tags: float = 0
    shown_appointments: float = 0
    lead_to_sale_ratio: float = 0
    lead_to_appointment_ratio: float = 0
    appointment_to_sale_ratio: float = 0
    contacted_to_appointment_ratio: float = 0
    agreement_conversion_rate: float = 0
    njm_to_showed_ratio: float = 0
    percentage_changes: Dict[str, float] = field(default_factory=dict)
    lead_source_breakdown: Tuple[Dict[str, Any], ...] = ()
    lead_source_sale_breakdown: Tuple[Dict[str, Any], ...] = ()
    appointment_status: Tuple[Dict[str, Any], ...] = ()
    trend: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)


@dataclass(frozen=True)
class OnboardingMetrics:
    membership_agreements: float = 0
    gofast_15min: float = 0
    af_results_count: float = 0
    apps: float = 0
    assessment_uptake: float = 0
    af_results: float = 0
    conversion_rate: float = 0
    app_adoption_rate: float = 0


@dataclass(frozen=True)
class DefaulterMetrics:
    total_defaulters: float = 0
    total_defaulters_2_month: float = 0
    total_defaulters_3_month: float = 0
    communications_sent: float = 0
    paid: float = 0
    total_ptp: float = 0
    no_response: float = 0
    cancelled_membership: float = 0
    ptp_conversion: float = 0
    payment_recovery_rate: float = 0
    recovery_target_met: bool = False


def build_sales_metrics(
    sales: Any,
    trend: Any = None,
    appointment_stats: Any = None,
    breakdowns: Any = None,
) -> SalesMetrics:
    """Join the four sales payloads into one SalesMetrics snapshot."""
    sales = sales if isinstance(sales, Mapping) else {}
    appointment_stats = appointment_stats if isinstance(appointment_stats, Mapping) else {}
    breakdowns = breakdowns if isinstance(breakdowns, Mapping) else {}

    n = {key: to_number(sales.get(key)) for key in (
        'total_leads', 'total_appointments', 'total_njms', 'membership_agreements',
        'total_contacted', 'total_paid_media', 'online_leads', 'offline_leads',
        'leads_without_tags', 'shown_appointments',
    )}

    changes = sales.get('percentage_changes')
    changes = {str(k): to_number(v) for k, v in changes.items()} if isinstance(changes, Mapping) else {}

    return SalesMetrics(
        **n,
        lead_to_sale_ratio=ratio(n['total_njms'], n['total_leads']),
        lead_to_appointment_ratio=ratio(n['total_appointments'], n['total_leads']),
        appointment_to_sale_ratio=ratio(n['total_njms'], n['total_appointments']),
        contacted_to_appointment_ratio=ratio(n['total_appointments'], n['total_contacted']),
        agreement_conversion_rate=ratio(n['membership_agreements'], n['total_njms']),
        njm_to_showed_ratio=ratio(n['total_njms'], n['shown_appointments']),
        percentage_changes=changes,
        lead_source_breakdown=tuple(build_breakdown(breakdowns.get('lead_source'))),
        lead_source_sale_breakdown=tuple(build_breakdown(breakdowns.get('njm_lead_source'))),
        appointment_status=tuple(build_breakdown(appointment_stats.get('status_counts'))),
        trend=normalize_trend(trend),
    )


def build_onboarding_metrics(payload: Any) -> OnboardingMetrics:
    payload = payload if isinstance(payload, Mapping) else {}
    agreements = to_number(payload.get('membership_agreements'))
    gofast = to_number(payload.get('gofast_15min'))
    af_results = to_number(payload.get('af_results'))
    apps = to_number(payload.get('apps'))

    return OnboardingMetrics(
        membership_agreements=agreements,
        gofast_15min=gofast,
        af_results_count=af_results,
        apps=apps,
        assessment_uptake=ratio(gofast, agreements),
        af_results=ratio(af_results, agreements),
        conversion_rate=ratio(af_results, gofast),
        app_adoption_rate=ratio(apps, agreements),
    )


def build_defaulter_metrics(payload: Any) -> DefaulterMetrics:
    payload = payload if isinstance(payload, Mapping) else {}
    d1, d2, d3 = (to_number(payload.get(k)) for k in ('d1', 'd2', 'd3'))
    paid = to_number(payload.get('paid'))
    ptp = to_number(payload.get('ptp'))
    recovery = ratio(paid, d1 + d2 + d3)

    return DefaulterMetrics(
        total_defaulters=d1,
        total_defaulters_2_month=d2,
        total_defaulters_3_month=d3,
        communications_sent=to_number(payload.get('communications_sent')),
        paid=paid,
        total_ptp=ptp,
        no_response=to_number(payload.get('no_response')),
        cancelled_membership=to_number(payload.get('cancelled_membership')),
        ptp_conversion=ratio(paid, ptp),
        payment_recovery_rate=recovery,
        recovery_target_met=recovery >= RECOVERY_TARGET_PERCENT,
    )


# =============================================================================
# REGIONAL
# =============================================================================

LOCATION_COLUMNS = [
    'location_id', 'location_name', 'country', 'country_display',
    'total_leads', 'appointment_showed', 'total_njm',
]
LOCATION_COUNT_COLUMNS = ['total_leads', 'appointment_showed', 'total_njm']


def _ratio_column(numerator: pd.Series, denominator: pd.Series) -> pd.Series:
    safe = denominator.replace(0, np.nan)
    values = np.where(
        (numerator != 0) & (denominator != 0),
        (numerator / safe * 100).round(2),
        0.0,
    )
    return pd.Series(values, index=numerator.index)


def _add_location_ratios(df: pd.DataFrame) -> pd.DataFrame:
    df['lead_to_sale'] = _ratio_column(df['total_njm'], df['total_leads'])
    df['appointment_to_sale'] = _ratio_column(df['total_njm'], df['appointment_showed'])
    return df


def build_location_table(payload: Any) -> pd.DataFrame:
    """One row per club with lead→sale and appointment→sale ratios."""
    df = pd.DataFrame(_records(payload), columns=LOCATION_COLUMNS)
    if df.empty:
        return pd.DataFrame(columns=LOCATION_COLUMNS + ['lead_to_sale', 'appointment_to_sale'])

    for col in LOCATION_COUNT_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors='coerce').fillna(0)
    df['country_display'] = df['country_display'].fillna(df['country'])
    return _add_location_ratios(df)


LOCATION_WISE_COLUMNS = [
    'location_id', 'location_name', 'country_code', 'country_display',
    'total_opps', 'total_appointments', 'njms_total', 'njm_online', 'njm_offline',
]
LOCATION_WISE_COUNT_COLUMNS = [
    'total_opps', 'total_appointments', 'njms_total', 'njm_online', 'njm_offline',
]


def build_location_wise_table(payload: Any) -> pd.DataFrame:
    """location-wise-data rows: per-club opportunity, appointment and NJM (online/offline) counts."""
    records = _records(payload)
    df = pd.DataFrame(records, columns=LOCATION_WISE_COLUMNS)
    if df.empty:
        return pd.DataFrame(columns=LOCATION_WISE_COLUMNS)

    for col in LOCATION_WISE_COUNT_COLUMNS:
        df[col] = pd.to_numeric(df[col].map(to_number))
    # Some rows only carry `country`
    fallback = pd.Series([r.get('country') for r in records], index=df.index)
    df['country_code'] = df['country_code'].fillna(fallback)
    df['country_display'] = df['country_display'].fillna(df['country_code'])
    return df.sort_values('njms_total', ascending=False, kind='stable').reset_index(drop=True)


def summarize_countries(df: pd.DataFrame) -> pd.DataFrame:
    """Roll clubs up into a country leaderboard (NJMs desc) with recomputed ratios."""
    columns = ['country', 'country_display', 'clubs', *LOCATION_COUNT_COLUMNS,
               'lead_to_sale', 'appointment_to_sale']
    if df is None or df.empty:
        return pd.DataFrame(columns=columns)

    summary = (
        df.groupby(['country', 'country_display'], dropna=False)
        .agg(
            clubs=('location_id', 'count'),
            total_leads=('total_leads', 'sum'),
            appointment_showed=('appointment_showed', 'sum'),
            total_njm=('total_njm', 'sum'),
        )
        .reset_index()
    )
    summary = _add_location_ratios(summary)
    return summary.sort_values('total_njm', ascending=False, kind='stable').reset_index(drop=True)[columns]


def extract_lead_sources(payload: Any) -> Tuple[str, ...]:
    """valid-lead-source payload (list or {lead_sources: [...]}) → names."""
    if isinstance(payload, Mapping):
        payload = payload.get('lead_sources', [])
    if not isinstance(payload, list):
        return ()
    names = []
    for item in payload:
        name = item.get('name') if isinstance(item, Mapping) else item
        if name not in (None, '') and str(name) not in names:
            names.append(str(name))
    return tuple(names)


__all__ = [
    'to_number',
    'ratio',
    'build_breakdown',
    'normalize_trend',
    'calculate_trend_sums',
    'SalesMetrics',
    'OnboardingMetrics',
    'DefaulterMetrics',
    'build_sales_metrics',
    'build_onboarding_metrics',
    'build_defaulter_metrics',
    'build_location_table',
    'build_location_wise_table',
    'summarize_countries',
    'extract_lead_sources',
]
