import math

import pandas as pd
import pytest

from club_dashboard.pipeline_performance.metrics import (
    build_breakdown,
    build_defaulter_metrics,
    build_location_table,
    build_location_wise_table,
    build_onboarding_metrics,
    build_sales_metrics,
    calculate_trend_sums,
    extract_lead_sources,
    ratio,
    summarize_countries,
    to_number,
)


@pytest.mark.parametrize('value, expected', [
    (None, 0),
    (True, 0),
    ('12', 12),
    ('12.5', 12.5),
    (' 7 ', 7),
    ('1,500.50', 1500.5),
    ('12,000', 12000),
    ('n/a', 0),
    (float('nan'), 0),
    (float('inf'), 0),
    (3, 3),
])
def test_to_number(value, expected):
    assert to_number(value) == expected


@pytest.mark.parametrize('numerator, denominator', [
    (10, 0), (10, None), (10, 'x'), (0, 10), (None, None), (5, float('nan')),
])
def test_ratio_is_zero_without_both_sides(numerator, denominator):
    result = ratio(numerator, denominator)
    assert result == 0
    assert math.isfinite(result)


def test_ratio_rounds_to_two_decimals():
    assert ratio(409, 1045) == 39.14
    assert ratio(1, 3) == 33.33
    assert ratio('50', '200') == 25


def test_breakdown_sorted_with_percentages():
    rows = build_breakdown({'Google': 30, 'Facebook': 50, 'Walk-in': 20})
    assert [r['name'] for r in rows] == ['Facebook', 'Google', 'Walk-in']
    assert [r['percentage'] for r in rows] == [50.0, 30.0, 20.0]
    assert rows[0]['value'] == 50


def test_breakdown_percentages_sum_to_100():
    rows = build_breakdown({'a': 1, 'b': 1, 'c': 1})
    assert sum(r['percentage'] for r in rows) == pytest.approx(100, abs=0.5)


def test_breakdown_ties_keep_input_order():
    rows = build_breakdown({'b': 5, 'a': 5, 'c': 9})
    assert [r['name'] for r in rows] == ['c', 'b', 'a']


@pytest.mark.parametrize('mapping', [None, {}, {'a': 0, 'b': 0}, {'a': None}, ['a']])
def test_breakdown_empty_or_zero_total(mapping):
    assert build_breakdown(mapping) == []


def test_trend_sums():
    sums = calculate_trend_sums({
        'daily': [
            {'period': '2024-01-01', 'leads': 10, 'appointments': 4, 'njms': 2},
            {'period': '2024-01-02', 'leads': '5', 'appointments': None, 'njms': 1},
        ],
        'monthly': 'garbage',
    })
    assert sums['daily'] == {'leads': 15, 'appointments': 4, 'njms': 3}
    assert sums['weekly'] == {'leads': 0, 'appointments': 0, 'njms': 0}
    assert sums['monthly'] == {'leads': 0, 'appointments': 0, 'njms': 0}


def test_sales_metrics_from_payloads():
    metrics = build_sales_metrics(
        {'total_leads': 1045, 'total_appointments': 708, 'total_njms': 409,
         'membership_agreements': 377, 'total_contacted': 900, 'shown_appointments': 500,
         'percentage_changes': {'leads': '12.5'}},
        trend={'daily': [{'period': 'd1', 'leads': 1}]},
        appointment_stats={'status_counts': {'showed': 3, 'no_show': 1}},
        breakdowns={'lead_source': {'Facebook': 2, 'Google': 2}},
    )
    assert metrics.lead_to_sale_ratio == round(409 / 1045 * 100, 2)
    assert metrics.lead_to_appointment_ratio == round(708 / 1045 * 100, 2)
    assert metrics.appointment_to_sale_ratio == round(409 / 708 * 100, 2)
    assert metrics.contacted_to_appointment_ratio == round(708 / 900 * 100, 2)
    assert metrics.agreement_conversion_rate == round(377 / 409 * 100, 2)
    assert metrics.njm_to_showed_ratio == round(409 / 500 * 100, 2)
    assert metrics.percentage_changes == {'leads': 12.5}
    assert metrics.appointment_status[0] == {'name': 'showed', 'value': 3, 'percentage': 75.0}
    assert len(metrics.lead_source_breakdown) == 2
    assert metrics.lead_source_sale_breakdown == ()
    assert metrics.trend['daily'] == [{'period': 'd1', 'leads': 1, 'appointments': 0, 'njms': 0}]


def test_sales_metrics_tolerate_missing_payloads():
    metrics = build_sales_metrics(None)
    assert metrics.total_leads == 0
    assert metrics.lead_to_sale_ratio == 0
    assert metrics.lead_source_breakdown == ()
    assert metrics.trend == {'daily': [], 'weekly': [], 'monthly': []}


def test_onboarding_metrics():
    metrics = build_onboarding_metrics({
        'membership_agreements': 200, 'gofast_15min': 150, 'af_results': 90, 'apps': 50,
    })
    assert metrics.assessment_uptake == 75
    assert metrics.af_results == 45
    assert metrics.conversion_rate == 60
    assert metrics.app_adoption_rate == 25
    assert metrics.af_results_count == 90


def test_defaulter_metrics_recovery_target():
    metrics = build_defaulter_metrics({'d1': 40, 'd2': 30, 'd3': 30, 'paid': 55, 'ptp': 110})
    assert metrics.payment_recovery_rate == 55
    assert metrics.recovery_target_met is True
    assert metrics.ptp_conversion == 50

    metrics = build_defaulter_metrics({'d1': 40, 'd2': 30, 'd3': 30, 'paid': 20})
    assert metrics.recovery_target_met is False
    assert metrics.ptp_conversion == 0


def test_defaulter_metrics_without_defaulters():
    metrics = build_defaulter_metrics({})
    assert metrics.payment_recovery_rate == 0
    assert metrics.recovery_target_met is False


def test_location_table_ratios():
    df = build_location_table({'results': [
        {'location_id': 1, 'location_name': 'Manila', 'country': 'ph', 'country_display': 'Philippines',
         'total_leads': 200, 'appointment_showed': 80, 'total_njm': 40},
        {'location_id': 2, 'location_name': 'Jakarta', 'country': 'id', 'country_display': None,
         'total_leads': '0', 'appointment_showed': None, 'total_njm': 5},
    ]})
    assert df.loc[0, 'lead_to_sale'] == 20
    assert df.loc[0, 'appointment_to_sale'] == 50
    assert df.loc[1, 'lead_to_sale'] == 0
    assert df.loc[1, 'appointment_to_sale'] == 0
    assert df.loc[1, 'country_display'] == 'id'


def test_location_table_empty():
    df = build_location_table([])
    assert df.empty
    assert 'lead_to_sale' in df.columns


def test_location_wise_table_keeps_online_offline_split():
    df = build_location_wise_table({'results': [
        {'location_id': 1, 'location_name': 'Manila', 'country_code': 'ph', 'country_display': 'Philippines',
         'total_opps': 40, 'total_appointments': 20, 'njms_total': 8, 'njm_online': 5, 'njm_offline': 3},
        {'location_id': 2, 'location_name': 'Jakarta', 'country': 'id',
         'total_opps': '1,200', 'total_appointments': None, 'njms_total': 11, 'njm_online': 11},
    ]})
    assert list(df['location_name']) == ['Jakarta', 'Manila']
    manila = df.loc[1]
    assert (manila['total_opps'], manila['total_appointments'], manila['njms_total']) == (40, 20, 8)
    assert (manila['njm_online'], manila['njm_offline']) == (5, 3)
    jakarta = df.loc[0]
    assert jakarta['country_code'] == 'id'
    assert jakarta['total_opps'] == 1200
    assert jakarta['country_display'] == 'id'
    assert jakarta['total_appointments'] == 0
    assert jakarta['njm_offline'] == 0


def test_location_wise_table_empty():
    df = build_location_wise_table(None)
    assert df.empty
    assert 'njm_online' in df.columns


def test_country_summary_recomputes_ratios():
    df = build_location_table([
        {'location_id': 1, 'country': 'ph', 'country_display': 'Philippines',
         'total_leads': 100, 'appointment_showed': 50, 'total_njm': 10},
        {'location_id': 2, 'country': 'ph', 'country_display': 'Philippines',
         'total_leads': 100, 'appointment_showed': 50, 'total_njm': 30},
        {'location_id': 3, 'country': 'id', 'country_display': 'Indonesia',
         'total_leads': 10, 'appointment_showed': 5, 'total_njm': 1},
    ])
    summary = summarize_countries(df)
    assert list(summary['country']) == ['ph', 'id']
    assert summary.loc[0, 'clubs'] == 2
    assert summary.loc[0, 'total_njm'] == 40
    assert summary.loc[0, 'lead_to_sale'] == 20
    assert summary.loc[0, 'appointment_to_sale'] == 40


def test_country_summary_empty():
    assert summarize_countries(pd.DataFrame()).empty
    assert summarize_countries(None).empty


def test_extract_lead_sources():
    assert extract_lead_sources({'lead_sources': ['Facebook', 'Google', 'Facebook']}) == ('Facebook', 'Google')
    assert extract_lead_sources([{'name': 'Ads'}, {'name': None}, 'Walk-in']) == ('Ads', 'Walk-in')
    assert extract_lead_sources(None) == ()
