"""
Shared fixtures for stackflow tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError

from stackflow.client import CloudFormationClient
from stackflow.scheduler import Ticker
from stackflow.statuses import STACK_RESOURCE_TYPE

STARTED_AT = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
MAX_TICKS = 50


def make_event(
    event_id: str,
    status: str,
    minutes: float = 1,
    resource_type: str = STACK_RESOURCE_TYPE,
    logical_id: str = "test-stack",
    reason: Optional[str] = None,
) -> Dict[str, Any]:
    """Build a DescribeStackEvents item ``minutes`` after STARTED_AT."""
    event = {
        "EventId": event_id,
        "StackName": "test-stack",
        "Timestamp": STARTED_AT + timedelta(minutes=minutes),
        "ResourceType": resource_type,
        "LogicalResourceId": logical_id,
        "ResourceStatus": status,
    }
    if reason:
        event["ResourceStatusReason"] = reason
    return event


def client_error(code: str, message: str, operation: str = "DescribeStackEvents") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


def bounded_sleep(limit: int = MAX_TICKS):
    """A no-op sleep that fails the test instead of polling forever."""
    calls: List[float] = []

    def _sleep(interval: float) -> None:
        calls.append(interval)
        if len(calls) > limit:
            raise AssertionError(f"Still polling after {limit} ticks")

    return _sleep


@pytest.fixture
def client() -> Mock:
    """CloudFormation client adapter mock."""
    return Mock(spec=CloudFormationClient)


@pytest.fixture
def ticker() -> Ticker:
    return Ticker(0, sleep=bounded_sleep())


@pytest.fixture
def ticker_factory():
    """Ticker factory that ignores the interval and never sleeps."""
    tickers: List[Ticker] = []

    def _factory(poll_interval_ms: int) -> Ticker:
        ticker = Ticker(0, sleep=bounded_sleep())
        tickers.append(ticker)
        return ticker

    _factory.tickers = tickers
    return _factory


@pytest.fixture
def lines() -> List[str]:
    """Collects displayed event lines."""
    return []
