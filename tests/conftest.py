# tests/conftest.py
from unittest.mock import MagicMock

import pytest

from lambdas.monitor_log_groups.models import AlarmPolicy, MonitorTarget, get_settings


@pytest.fixture
def policy() -> AlarmPolicy:
    return AlarmPolicy(notify_target="arn:aws:sns:us-east-1:123456789012:test-topic")


@pytest.fixture
def cloudwatch_client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def target_a() -> MonitorTarget:
    return MonitorTarget(logGroupName="A", searchString="ERROR")


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
