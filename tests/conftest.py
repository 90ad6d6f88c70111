"""Pytest configuration and shared fixtures."""

import json
import pytest
from unittest.mock import Mock, patch

# Import the package modules
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import fuusorpy
from fuusorpy.utils import TokenCache


TOKEN_URL = "https://api.fuusor.fi/connect/token"
BASE_URL = "https://api.fuusor.fi/api/v1"


def create_mock_response(data=None, status_code=200, reason="OK"):
    """Create a mock requests response object."""
    mock_response = Mock()
    mock_response.status_code = status_code
    mock_response.reason = reason

    if data is None:
        mock_response.text = ""
        mock_response.json.side_effect = ValueError("No JSON object could be decoded")
    elif isinstance(data, str):
        mock_response.text = data
        mock_response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        mock_response.text = json.dumps(data)
        mock_response.json.return_value = data

    return mock_response


def token_response(access_token="token-1", expires_in=3600):
    """Mock token endpoint response."""
    return create_mock_response({"access_token": access_token, "expires_in": expires_in})


class FakeClock:
    """Manually advanced clock for token expiry tests."""

    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def client_options():
    """Valid FuusorClient credentials."""
    return {
        "client_id": "client-id",
        "client_secret": "client-secret",
        "username": "api@example.com",
        "password": "secret-password",
    }


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def client(client_options, fake_clock):
    """FuusorClient with a token cache driven by a fake clock."""
    return fuusorpy.FuusorClient(**client_options, token_cache=TokenCache(clock=fake_clock))


@pytest.fixture
def mock_request():
    """Mock requests.Session.request for testing."""
    with patch('requests.Session.request') as mock_req:
        yield mock_req


@pytest.fixture
def dataset_options():
    """Minimal valid dataset options."""
    return {
        "groupId": "g1",
        "datasetId": "d1",
        "datasetName": "N",
        "datasetType": "Invoices",
    }


@pytest.fixture
def dataset(client, dataset_options):
    """Empty dataset bound to the test client."""
    return client.create_dataset(dataset_options)


@pytest.fixture
def invoice_dataset(client):
    """Dataset with one field of every type and a couple of rows."""
    dataset = client.create_dataset(
        group_id="g1",
        dataset_id="invoices",
        dataset_name="Invoices",
        dataset_type="Invoices",
        begin="2024-01-01",
        end="2024-12-31",
        primary_date="date",
    )
    dataset.define_dimension_field("customer", "Customer", [{"id": "c1", "name": "ACME"}])
    dataset.define_date_field("date", "Invoice date")
    dataset.define_value_field("amount", "Amount")
    dataset.define_description_field("note", "Note")
    dataset.add_rows([
        {"customer": "c1", "date": "2024-03-01", "amount": 120.5, "note": "first"},
        {"customer": "c1", "date": None, "amount": None, "note": None},
    ])
    return dataset


@pytest.fixture
def sample_users_response():
    """Sample User/Get response."""
    return [
        {"userName": "anna@example.com", "authenticationType": "microsoft", "language": "fi-FI"},
        {"userName": "bob@example.com", "authenticationType": "google", "language": "en-US",
         "validUntil": "2025-02-28"},
    ]


@pytest.fixture
def sample_user_groups_response():
    """Sample UserGroup/Get response."""
    return [
        {"id": "sales", "name": "Sales", "description": "Sales team",
         "users": ["anna@example.com"]},
        {"id": "board", "name": "Board"},
    ]
