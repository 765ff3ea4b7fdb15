import pytest

from club_dashboard.pipeline_performance.filters import FilterState
from club_dashboard.pipeline_performance.metric_types import (
    MetricTypeDescriptor,
    UnknownMetricTypeError,
)
from club_dashboard.pipeline_performance.queries import (
    build_query_params,
    build_query_string,
    resolve_pipeline_categories,
    to_query_string,
)


@pytest.fixture
def january():
    return FilterState().with_date_range('custom-range', '2024-01-01', '2024-01-31')


# =============================================================================
# RESOLVER
# =============================================================================

def test_resolver_expands_categories(category_map):
    assert resolve_pipeline_categories(['Franchise'], category_map) == ['Franchise A', 'Franchise B']
    assert resolve_pipeline_categories(
        ['Member Onboarding', 'Franchise'], category_map
    ) == ['Onboarding PH', 'Franchise A', 'Franchise B']


@pytest.mark.parametrize('selected', [None, [], ['all'], ['Franchise', 'all']])
def test_resolver_all_or_empty_means_no_restriction(category_map, selected):
    assert resolve_pipeline_categories(selected, category_map) is None


def test_resolver_ignores_unknown_categories(category_map):
    assert resolve_pipeline_categories(['Nope'], category_map) is None
    assert resolve_pipeline_categories(['Nope', 'Franchise'], category_map) == ['Franchise A', 'Franchise B']
    assert resolve_pipeline_categories(['Franchise'], None) is None


# =============================================================================
# BUILDER
# =============================================================================

def test_all_filters_emit_only_dates(january):
    assert build_query_params(january) == {
        'raw_created_at_min': '2024-01-01',
        'raw_created_at_max': '2024-01-31',
    }


def test_multi_select_filters_map_to_api_names(january):
    filters = (
        january
        .with_values('country', ['ph', 'id'])
        .with_values('club', ['loc-1'])
        .with_values('assigned_user', ['u-7'])
        .with_values('lead_source', ['Facebook'])
    )
    params = build_query_params(filters)
    assert params['country'] == ['ph', 'id']
    assert params['location'] == ['loc-1']
    assert params['assigned_to'] == ['u-7']
    assert params['lead_source'] == ['Facebook']


def test_user_pipeline_filter_wins_over_metric_pipeline(january):
    descriptor = MetricTypeDescriptor(id='custom', pipeline_name='P1')
    filters = january.with_values('pipeline', ['C'])
    params = build_query_params(filters, descriptor, {'C': ['P2', 'P3']})
    assert params['pipeline_name'] == ['P2', 'P3']


def test_metric_pipeline_resolved_through_category_map(january, category_map):
    params = build_query_params(january, 'total-leads', category_map)
    assert params['pipeline_name'] == ['Sales PH', 'Sales ID']


def test_metric_pipeline_falls_back_to_literal_name(january):
    params = build_query_params(january, 'total-leads', {})
    assert params['pipeline_name'] == 'AFC Sales Pipeline'


def test_unresolvable_user_pipeline_sends_no_pipeline(january, category_map):
    filters = january.with_values('pipeline', ['Nope'])
    params = build_query_params(filters, 'total-leads', category_map)
    assert 'pipeline_name' not in params


def test_metric_static_params_and_date_field(january, category_map):
    params = build_query_params(january, 'total-njms', category_map)
    assert params['status'] == 'won'
    assert params['raw_created_at_min'] == '2024-01-01'
    assert params['raw_created_at_max'] == '2024-01-31'
    assert params['dateField'] == 'membership_signup_date'
    assert params['membership_signup_date_min'] == '2024-01-01'
    assert params['membership_signup_date_max'] == '2024-01-31'

    params = build_query_params(january, 'total-leads', category_map)
    assert 'dateField' not in params
    assert sorted(k for k in params if k.endswith(('_min', '_max'))) == ['raw_created_at_max', 'raw_created_at_min']

    params = build_query_params(january, 'online-leads', category_map)
    assert params['contact_tags'] == 3


def test_static_params_never_override_pipeline(january, category_map):
    descriptor = MetricTypeDescriptor(
        id='custom', pipeline_name='Franchise',
        static_params={'pipeline_name': 'Ignored', 'lead_source': ('Ads', 'Google')},
    )
    params = build_query_params(january, descriptor, category_map)
    assert params['pipeline_name'] == ['Franchise A', 'Franchise B']
    assert params['lead_source'] == ['Ads', 'Google']


def test_extra_params_and_page_are_applied_last(january, category_map):
    params = build_query_params(
        january, 'njm-lead-source', category_map,
        extra_params={'lead_source': 'Facebook', 'ignored': None},
        page='3',
    )
    assert params['lead_source'] == 'Facebook'
    assert 'ignored' not in params
    assert params['page'] == 3


def test_no_dates_when_range_unresolvable():
    filters = FilterState().with_date_range('custom-range', '2024-01-01', None)
    assert build_query_params(filters) == {}


def test_symbolic_range_uses_today(today):
    params = build_query_params(FilterState(date_range='last-7-days'), today=today)
    assert params == {'raw_created_at_min': '2024-03-08', 'raw_created_at_max': '2024-03-15'}


def test_unknown_metric_type_raises(january):
    with pytest.raises(UnknownMetricTypeError):
        build_query_params(january, 'not-a-metric')


# =============================================================================
# ENCODING
# =============================================================================

def test_arrays_are_comma_joined():
    assert to_query_string({'country': ['ph', 'id']}) == 'country=ph,id'


def test_none_values_are_dropped():
    assert to_query_string({'country': None, 'page': 2}) == 'page=2'


@pytest.mark.parametrize('metric_type', [None, 'total-leads', 'total-njms', 'total-appointments'])
def test_custom_range_in_query_string(january, metric_type):
    query = build_query_string(january, metric_type)
    assert 'raw_created_at_min=2024-01-01&raw_created_at_max=2024-01-31' in query


def test_query_string_with_country_filter(january):
    query = build_query_string(january.with_values('country', ['ph', 'id']))
    assert query.startswith('country=ph,id&')
