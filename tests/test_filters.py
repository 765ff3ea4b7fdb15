from datetime import date

import pytest

from club_dashboard.pipeline_performance.filters import (
    ALL_SELECTION,
    FilterState,
    calculate_date_range,
    get_filter_summary,
    validate_filters,
)


def test_default_filters_select_all():
    filters = FilterState.default()
    for name in ('country', 'club', 'assigned_user', 'lead_source', 'pipeline'):
        assert filters.values(name) == ALL_SELECTION
        assert filters.is_all(name)


def test_removing_last_value_collapses_to_all():
    filters = FilterState().with_values('country', ['ph'])
    assert filters.remove('country', 'ph').country == ('all',)


def test_toggle_adds_and_removes_values():
    filters = FilterState().toggle('club', 'loc-1').toggle('club', 'loc-2')
    assert filters.club == ('loc-1', 'loc-2')

    filters = filters.toggle('club', 'loc-1')
    assert filters.club == ('loc-2',)

    filters = filters.toggle('club', 'loc-2')
    assert filters.club == ('all',)


def test_toggle_all_resets_selection():
    filters = FilterState().with_values('lead_source', ['Facebook', 'Google'])
    assert filters.toggle('lead_source', 'all').lead_source == ('all',)


def test_with_values_dedupes_and_treats_all_as_reset():
    filters = FilterState()
    assert filters.with_values('country', ['ph', 'id', 'ph']).country == ('ph', 'id')
    assert filters.with_values('country', []).country == ('all',)
    assert filters.with_values('country', ['ph', 'all']).country == ('all',)


def test_transitions_return_new_instances():
    original = FilterState()
    changed = original.toggle('country', 'ph')
    assert original.country == ('all',)
    assert changed is not original


def test_unknown_field_is_rejected():
    with pytest.raises(ValueError):
        FilterState().toggle('region', 'apac')


def test_non_custom_range_drops_custom_bounds():
    filters = FilterState().with_date_range('custom-range', '2024-01-01', '2024-01-31')
    assert filters.custom_start_date == '2024-01-01'

    filters = filters.with_date_range('last-7-days', '2024-01-01', '2024-01-31')
    assert filters.custom_start_date is None
    assert filters.custom_end_date is None


def test_dict_round_trip():
    filters = (
        FilterState()
        .with_values('country', ['ph'])
        .with_values('pipeline', ['Franchise'])
        .with_date_range('custom-range', date(2024, 1, 1), date(2024, 1, 31))
    )
    data = filters.to_dict()
    assert data['country'] == ['ph']
    assert data['custom_end_date'] == '2024-01-31'
    assert FilterState.from_dict(data) == filters


@pytest.mark.parametrize('date_range, start', [
    ('last-7-days', '2024-03-08'),
    ('last-30-days', '2024-02-14'),
    ('last-90-days', '2023-12-16'),
    ('last-year', '2023-03-16'),
])
def test_symbolic_ranges(today, date_range, start):
    bounds = calculate_date_range(date_range, today=today)
    assert bounds == {'start_date': start, 'end_date': '2024-03-15'}


def test_custom_range_passes_bounds_through():
    bounds = calculate_date_range('custom-range', '2024-01-01', '2024-01-31')
    assert bounds == {'start_date': '2024-01-01', 'end_date': '2024-01-31'}


def test_inverted_custom_range_is_not_reordered():
    bounds = calculate_date_range('custom-range', '2024-02-01', '2024-01-01')
    assert bounds == {'start_date': '2024-02-01', 'end_date': '2024-01-01'}


@pytest.mark.parametrize('date_range, start, end', [
    ('custom-range', None, '2024-01-31'),
    ('custom-range', '2024-01-01', None),
    ('last-decade', None, None),
])
def test_unresolvable_ranges_mean_no_date_filter(date_range, start, end):
    assert calculate_date_range(date_range, start, end) == {'start_date': None, 'end_date': None}


def test_validate_accepts_defaults():
    assert validate_filters(FilterState()) == (True, None)


def test_validate_rejects_missing_and_empty_fields():
    assert validate_filters(None)[0] is False

    is_valid, message = validate_filters(FilterState(country=()))
    assert is_valid is False
    assert 'Country' in message


def test_validate_rejects_incomplete_custom_range():
    filters = FilterState().with_date_range('custom-range', '2024-01-01', None)
    is_valid, message = validate_filters(filters)
    assert is_valid is False
    assert 'start and an end' in message


def test_validate_allows_inverted_custom_range():
    filters = FilterState().with_date_range('custom-range', '2024-02-01', '2024-01-01')
    assert validate_filters(filters) == (True, None)


def test_filter_summary():
    assert get_filter_summary(FilterState(date_range='last-7-days')) == 'Last 7 days | All clubs'

    filters = FilterState(date_range='last-7-days').with_values('country', ['ph', 'id'])
    assert get_filter_summary(filters) == 'Last 7 days | 2 country(ies)'
