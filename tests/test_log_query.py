# tests/test_log_query.py
import pytest
from botocore.exceptions import EndpointConnectionError

from lambdas.monitor_log_groups.log_query import CloudWatchLogQuery, QueryError
from lambdas.monitor_log_groups.models import MonitorTarget, QueryWindow

from fakes import client_error, make_logs_client

WINDOW = QueryWindow(start_ms=1_000, end_ms=2_000)


def test_filter_follows_every_page():
    """
    Messages from all pages are returned, in page order.
    """
    # Arrange
    logs_client = make_logs_client({"A": [["e1", "e2"], ["e3"], []]})
    query = CloudWatchLogQuery(logs_client)

    # Act
    messages = query.filter(MonitorTarget(logGroupName="A", searchString="ERROR"), WINDOW)

    # Assert
    assert messages == ["e1", "e2", "e3"]
    logs_client.get_paginator.assert_called_once_with('filter_log_events')


def test_filter_request_uses_name_pattern_and_window():
    logs_client = make_logs_client({"/aws/lambda/orders": [["x"]]})
    query = CloudWatchLogQuery(logs_client)

    query.filter(MonitorTarget(logGroupName="/aws/lambda/orders", searchString="?ERROR ?FATAL"), WINDOW)

    kwargs = logs_client.get_paginator.return_value.paginate.call_args.kwargs
    assert kwargs == {
        'logGroupName': "/aws/lambda/orders",
        'filterPattern': "?ERROR ?FATAL",
        'startTime': 1_000,
        'endTime': 2_000,
    }


def test_filter_sends_arn_as_identifier():
    arn = "arn:aws:logs:us-east-1:123456789012:log-group:/aws/lambda/orders"
    logs_client = make_logs_client({arn: [["x"]]})
    query = CloudWatchLogQuery(logs_client)

    messages = query.filter(MonitorTarget(logGroupName=arn, searchString="ERROR"), WINDOW)

    kwargs = logs_client.get_paginator.return_value.paginate.call_args.kwargs
    assert kwargs['logGroupIdentifier'] == arn
    assert 'logGroupName' not in kwargs
    assert messages == ["x"]


def test_empty_pattern_omits_filter_pattern():
    logs_client = make_logs_client({"A": [["anything"]]})
    query = CloudWatchLogQuery(logs_client)

    query.filter(MonitorTarget(logGroupName="A", searchString=""), WINDOW)

    kwargs = logs_client.get_paginator.return_value.paginate.call_args.kwargs
    assert 'filterPattern' not in kwargs


def test_events_without_message_still_count():
    logs_client = make_logs_client({})
    logs_client.get_paginator.return_value.paginate.side_effect = lambda **kwargs: iter(
        [{'events': [{'message': "m"}, {'eventId': "no-message"}]}, {}]
    )
    query = CloudWatchLogQuery(logs_client)

    messages = query.filter(MonitorTarget(logGroupName="A"), WINDOW)

    assert messages == ["m", ""]


def test_failure_on_a_later_page_raises_query_error():
    """
    A page failure after some pages succeeded aborts the whole query.
    """
    cause = client_error("ThrottlingException", "Rate exceeded", "FilterLogEvents")
    logs_client = make_logs_client({"A": [["e1"], ["e2"]]}, failing_groups={"A": cause})
    query = CloudWatchLogQuery(logs_client)

    with pytest.raises(QueryError) as exc_info:
        query.filter(MonitorTarget(logGroupName="A", searchString="ERROR"), WINDOW)

    assert exc_info.value.log_group_name == "A"
    assert exc_info.value.__cause__ is cause
    assert "Rate exceeded" in str(exc_info.value)


def test_connection_failure_raises_query_error():
    cause = EndpointConnectionError(endpoint_url="https://logs.us-east-1.amazonaws.com")
    logs_client = make_logs_client({}, failing_groups={"A": cause})
    query = CloudWatchLogQuery(logs_client)

    with pytest.raises(QueryError):
        query.filter(MonitorTarget(logGroupName="A"), WINDOW)
