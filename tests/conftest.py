"""Pytest configuration and shared fixtures"""
import pytest
import pandas as pd
from unittest.mock import Mock

from openfalcon.config import DatasourceConfig
from openfalcon.datasource import OpenFalconDatasource
from openfalcon.templating import TemplateVariables


FIXED_NOW = pd.Timestamp("2015-10-21 16:29:30", tz="UTC")


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def variables():
    """Dashboard variables used across tests"""
    return TemplateVariables({
        "host": "srv01",
        "hosts": ["srv01", "srv02"],
        "interval": "5m",
    })


@pytest.fixture
def config():
    return DatasourceConfig(
        name="falcon-test",
        url="http://falcon.example:9966/",
        basic_auth="Basic dXNlcjpwYXNz",
        cache_timeout=60,
    )


@pytest.fixture
def transport():
    """Mock transport returning an empty render response"""
    mock = Mock()
    mock.request.return_value = {"status": 200, "data": []}
    return mock


@pytest.fixture
def datasource(config, transport, variables, fixed_now):
    return OpenFalconDatasource(config, transport=transport, variables=variables, clock=lambda: fixed_now)


@pytest.fixture
def render_rows():
    """Render response rows as returned by the backend"""
    return [
        {
            "endpoint": "srv01",
            "counter": "load.1min",
            "dstype": "GAUGE",
            "step": 60,
            "Values": [
                {"timestamp": 1445444940, "value": 0.5},
                {"timestamp": 1445445000, "value": 0.75},
            ],
        },
        {
            "endpoint": "srv02",
            "counter": "load.1min",
            "dstype": "GAUGE",
            "step": 60,
            "Values": [
                {"timestamp": 1445444940, "value": None},
                {"timestamp": 1445445000, "value": 1.25},
            ],
        },
    ]
