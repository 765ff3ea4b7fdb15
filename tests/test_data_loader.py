from datetime import datetime, timedelta

import pytest

from club_dashboard.api_client import ReportingAPIError
from club_dashboard.pipeline_performance.constants import CACHE_KEY_REFERENCE
from club_dashboard.pipeline_performance.data_loader import (
    MetricAggregator,
    ReferenceDataLoader,
    load_location_wise,
    run_concurrently,
)
from club_dashboard.pipeline_performance.filters import FilterState

from .conftest import DASH, FakeClient, SALES_PAYLOADS


def test_run_concurrently_keeps_call_order():
    assert run_concurrently([lambda: 1, lambda: 2, lambda: 3]) == [1, 2, 3]
    assert run_concurrently([]) == []


def test_run_concurrently_propagates_failure():
    def boom():
        raise ReportingAPIError("down", path="/x")

    with pytest.raises(ReportingAPIError):
        run_concurrently([lambda: 1, boom])


# =============================================================================
# SECTION LOADS
# =============================================================================

def test_sales_section_issues_five_fetches(sales_client, category_map):
    filters = FilterState(date_range='last-30-days')
    result = MetricAggregator(sales_client).load_section(filters, 'sales', category_map)

    assert sorted(sales_client.paths()) == sorted(SALES_PAYLOADS)
    assert len(sales_client.calls) == 5

    sales = result.sales_metrics
    assert sales.lead_to_sale_ratio == round(409 / 1045 * 100, 2)
    assert sales.total_leads == 1045
    assert result.valid_lead_sources == ('Facebook', 'Google', 'Walk-in')
    assert result.trend_sums['daily'] == {'leads': 15, 'appointments': 4, 'njms': 3}
    assert result.onboarding_metrics is None


def test_section_fetches_share_one_param_set(sales_client):
    filters = FilterState().with_values('country', ['ph', 'id'])
    MetricAggregator(sales_client).load_section(filters, 'sales')

    params = [p for _, p in sales_client.calls]
    assert all(p == params[0] for p in params)
    assert params[0]['country'] == ['ph', 'id']
    assert 'raw_created_at_min' in params[0]
    assert 'pipeline_name' not in params[0]


def test_failed_fetch_fails_the_whole_section():
    responses = dict(SALES_PAYLOADS)
    responses[f"{DASH}/trend-data/"] = ReportingAPIError("trend-data returned HTTP 500", status_code=500)
    client = FakeClient(responses)

    with pytest.raises(ReportingAPIError):
        MetricAggregator(client).load_section(FilterState(), 'sales')


@pytest.mark.parametrize('section, endpoint, payload, attribute', [
    ('onboarding', 'member-onboarding-metrics',
     {'membership_agreements': 10, 'gofast_15min': 5}, 'onboarding_metrics'),
    ('defaulters', 'defaulter-metrics', {'d1': 4, 'paid': 2}, 'defaulter_metrics'),
])
def test_other_sections(section, endpoint, payload, attribute):
    client = FakeClient({
        f"{DASH}/valid-lead-source/": [],
        f"{DASH}/{endpoint}/": payload,
    })
    result = MetricAggregator(client).load_section(FilterState(), section)
    assert len(client.calls) == 2
    assert getattr(result, attribute) is not None
    assert result.sales_metrics is None


def test_regional_section_builds_location_table():
    client = FakeClient({
        f"{DASH}/valid-lead-source/": [],
        f"{DASH}/location-stats/": [
            {'location_id': 1, 'location_name': 'Manila', 'country': 'ph',
             'country_display': 'Philippines', 'total_leads': 50, 'appointment_showed': 10, 'total_njm': 5},
        ],
    })
    result = MetricAggregator(client).load_section(FilterState(), 'regional')
    assert list(result.locations['lead_to_sale']) == [10]


def test_unknown_section_is_rejected(fake_client):
    with pytest.raises(ValueError):
        MetricAggregator(fake_client).load_section(FilterState(), 'finance')
    assert fake_client.calls == []


def test_location_wise():
    client = FakeClient({f"{DASH}/location-vise/": {'results': [
        {'location_id': 2, 'location_name': 'Jakarta', 'country_code': 'id', 'country_display': 'Indonesia',
         'total_opps': 40, 'total_appointments': 20, 'njms_total': 8, 'njm_online': 5, 'njm_offline': 3},
    ]}})
    df = load_location_wise(client, FilterState())
    row = df.loc[0]
    assert (row['total_opps'], row['total_appointments']) == (40, 20)
    assert (row['njms_total'], row['njm_online'], row['njm_offline']) == (8, 5, 3)
    assert row['country_display'] == 'Indonesia'
    assert client.paths() == [f"{DASH}/location-vise/"]


# =============================================================================
# REFERENCE DATA
# =============================================================================

REFERENCE_PAYLOADS = {
    "/pipelines/names/": {"Franchise": ["Franchise A", "Franchise B"]},
    "/locations/": [
        {"id": 1, "name": "Manila Central", "country": "ph", "country_display": "Philippines"},
        {"id": 2, "name": "Cebu", "country": "ph", "country_display": "Philippines"},
        {"id": 3, "name": "Jakarta", "country": "id", "country_display": None},
    ],
    "/users/": {"results": [{"id": 7, "name": "Coach Kim"}]},
}


def test_reference_data_loads_and_caches():
    client = FakeClient(REFERENCE_PAYLOADS)
    cache = {}
    loader = ReferenceDataLoader(client, cache=cache)

    reference = loader.get_reference_data()
    assert reference.pipeline_categories == ['Franchise']
    assert list(reference.locations['id']) == ['1', '2', '3']
    assert reference.country_names == {'id': 'id', 'ph': 'Philippines'}
    assert list(reference.users['name']) == ['Coach Kim']
    assert cache[CACHE_KEY_REFERENCE] is reference

    assert loader.get_reference_data() is reference
    assert len(client.calls) == 3


def test_reference_data_reloads_after_ttl():
    client = FakeClient(REFERENCE_PAYLOADS)
    cache = {}
    loader = ReferenceDataLoader(client, cache=cache, ttl_seconds=60)
    first = loader.get_reference_data()

    object.__setattr__(first, 'loaded_at', datetime.now() - timedelta(seconds=120))
    second = loader.get_reference_data()
    assert second is not first
    assert len(client.calls) == 6


def test_missing_users_endpoint_degrades_to_empty():
    responses = dict(REFERENCE_PAYLOADS)
    del responses["/users/"]
    reference = ReferenceDataLoader(FakeClient(responses), cache={}).get_reference_data()
    assert reference.users.empty
    assert len(reference.locations) == 3


def test_missing_locations_fails_reference_load():
    responses = dict(REFERENCE_PAYLOADS)
    del responses["/locations/"]
    cache = {}
    with pytest.raises(ReportingAPIError):
        ReferenceDataLoader(FakeClient(responses), cache=cache).get_reference_data()
    assert CACHE_KEY_REFERENCE not in cache


def test_clear_cache():
    cache = {}
    loader = ReferenceDataLoader(FakeClient(REFERENCE_PAYLOADS), cache=cache)
    loader.get_reference_data()
    loader.clear_cache()
    assert CACHE_KEY_REFERENCE not in cache
