import pytest
import requests

from club_dashboard.api_client import (
    ReportingAPIClient,
    ReportingAPIError,
    check_api_connection,
    encode_query_params,
)


class StubResponse:
    def __init__(self, status_code=200, payload=None, bad_json=False):
        self.status_code = status_code
        self._payload = payload
        self._bad_json = bad_json

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._bad_json:
            raise ValueError("Expecting value")
        return self._payload


class StubSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.urls = []

    def get(self, url, timeout=None):
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.response


def make_client(**kwargs):
    session = StubSession(**kwargs)
    return ReportingAPIClient(base_url="http://reporting.test/", timeout=5, session=session), session


def test_encode_query_params():
    assert encode_query_params({'country': ('ph', 'id'), 'page': 2, 'x': None}) == {
        'country': 'ph,id', 'page': '2',
    }


def test_get_json_builds_comma_joined_url():
    client, session = make_client(response=StubResponse(payload={'count': 0, 'results': []}))
    assert client.fetch_opportunities({'country': ['ph', 'id'], 'page': 2}) == {'count': 0, 'results': []}
    assert session.urls == ['http://reporting.test/opportunities/?country=ph,id&page=2']


def test_dashboard_endpoint_path():
    client, session = make_client(response=StubResponse(payload={}))
    client.fetch_dashboard('sales-metrics', {})
    assert session.urls == ['http://reporting.test/opportunity_dash/sales-metrics/']


def test_non_2xx_raises():
    client, _ = make_client(response=StubResponse(status_code=500))
    with pytest.raises(ReportingAPIError) as exc_info:
        client.fetch_dashboard('sales-metrics', {})
    assert exc_info.value.status_code == 500
    assert 'HTTP 500' in exc_info.value.message


def test_transport_error_raises():
    client, _ = make_client(error=requests.ConnectionError("refused"))
    with pytest.raises(ReportingAPIError) as exc_info:
        client.fetch_opportunities({})
    assert exc_info.value.status_code is None
    assert exc_info.value.path == '/opportunities/'


def test_invalid_json_raises():
    client, _ = make_client(response=StubResponse(bad_json=True))
    with pytest.raises(ReportingAPIError):
        client.fetch_locations()


def test_pipeline_categories_are_cleaned():
    client, _ = make_client(response=StubResponse(payload={
        'Sales': ['Sales PH', 7], 'Broken': 'not-a-list',
    }))
    assert client.fetch_pipeline_categories() == {'Sales': ['Sales PH', '7']}


def test_record_lists_accept_envelopes():
    client, _ = make_client(response=StubResponse(payload={'results': [{'id': 1}, 'junk']}))
    assert client.fetch_users() == [{'id': 1}]


def test_check_api_connection():
    client, _ = make_client(response=StubResponse(payload={}))
    assert check_api_connection(client) == (True, None)

    client, _ = make_client(response=StubResponse(status_code=503))
    ok, message = check_api_connection(client)
    assert ok is False
    assert '503' in message
