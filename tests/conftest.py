# tests/conftest.py
"""Shared fixtures: a reporting client that serves canned payloads."""

import threading
from datetime import date

import pytest

from club_dashboard.api_client import ReportingAPIClient, ReportingAPIError
from club_dashboard.pipeline_performance.state import DashboardStore

DASH = "/opportunity_dash"

CATEGORY_MAP = {
    "AFC Sales Pipeline": ["Sales PH", "Sales ID"],
    "Member Onboarding": ["Onboarding PH"],
    "Defaulter Pipeline": ["Defaulters PH", "Defaulters ID"],
    "Franchise": ["Franchise A", "Franchise B"],
}

SALES_PAYLOADS = {
    f"{DASH}/valid-lead-source/": {"lead_sources": ["Facebook", "Google", "Walk-in"]},
    f"{DASH}/sales-metrics/": {
        "total_leads": 1045,
        "total_appointments": 708,
        "total_njms": 409,
        "membership_agreements": 377,
        "total_contacted": 900,
        "total_paid_media": 120,
        "online_leads": 600,
        "offline_leads": 445,
        "leads_without_tags": 12,
        "shown_appointments": 500,
        "percentage_changes": {"leads": 12.5, "njms": 15.2},
    },
    f"{DASH}/trend-data/": {
        "daily": [
            {"period": "2024-01-01", "leads": 10, "appointments": 4, "njms": 2},
            {"period": "2024-01-02", "leads": 5, "appointments": None, "njms": 1},
        ],
        "weekly": [{"period": "2024-W01", "leads": 15, "appointments": 4, "njms": 3}],
        "monthly": [],
    },
    f"{DASH}/appointment-stats/": {"status_counts": {"showed": 65, "no_show": 24, "cancelled": 11}},
    f"{DASH}/breakdown-data/": {
        "lead_source": {"Facebook": 50, "Google": 30, "Walk-in": 20},
        "njm_lead_source": {"Facebook": 3, "Google": 1},
    },
}


class FakeClient(ReportingAPIClient):
    """
    ReportingAPIClient whose get_json serves canned payloads.

    `responses` maps a path to a payload, an exception instance (raised),
    or a callable taking the params dict.
    """

    def __init__(self, responses=None):
        super().__init__(base_url="http://reporting.test", timeout=1)
        self.responses = dict(responses or {})
        self.calls = []
        self._lock = threading.Lock()

    def get_json(self, path, params=None):
        with self._lock:
            self.calls.append((path, dict(params or {})))
        if path not in self.responses:
            raise ReportingAPIError(f"No canned response for {path}", path=path, status_code=404)
        response = self.responses[path]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(dict(params or {}))
        return response

    def paths(self):
        return [path for path, _ in self.calls]

    def calls_to(self, path):
        return [params for p, params in self.calls if p == path]


def opportunity_page(metric_tag, page, count=25):
    return {
        "count": count,
        "results": [
            {
                "id": f"{metric_tag}-{page}-{i}",
                "name": f"{metric_tag} lead {i}",
                "contact": {"name": f"Contact {i}", "email": f"c{i}@example.com", "phone": None},
                "assigned_to": {"name": "Coach Kim"},
                "lead_source": "Facebook",
                "stage": {"name": "New"},
                "pipeline": {"name": "Sales PH"},
                "location": {"name": "Manila Central", "country": "ph", "country_display": "Philippines"},
                "status": "open",
                "monetary_value": "1500.50",
                "raw_created_at": "2024-01-05T10:00:00Z",
                "last_activity": None,
            }
            for i in range(2)
        ],
    }


@pytest.fixture
def today():
    return date(2024, 3, 15)


@pytest.fixture
def category_map():
    return {k: list(v) for k, v in CATEGORY_MAP.items()}


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def sales_client():
    return FakeClient(SALES_PAYLOADS)


@pytest.fixture
def store():
    return DashboardStore()
