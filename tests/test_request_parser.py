# tests/test_request_parser.py
import pytest

from lambdas.monitor_log_groups.models import MonitorTarget
from lambdas.monitor_log_groups.request_parser import InvalidRequestError, parse_monitor_targets


def test_parses_targets_in_order():
    event = {
        "monitoredLogGroups": [
            {"logGroupName": "/aws/lambda/orders", "searchString": "ERROR"},
            {"logGroupName": "/aws/lambda/billing", "searchString": "\"connection failed\""},
        ]
    }

    targets = parse_monitor_targets(event)

    assert targets == [
        MonitorTarget(logGroupName="/aws/lambda/orders", searchString="ERROR"),
        MonitorTarget(logGroupName="/aws/lambda/billing", searchString="\"connection failed\""),
    ]


def test_missing_search_string_means_match_all():
    targets = parse_monitor_targets({"monitoredLogGroups": [{"logGroupName": "A"}]})
    assert targets[0].search_string == ""


def test_missing_key_or_none_event_yields_no_targets():
    assert parse_monitor_targets({}) == []
    assert parse_monitor_targets(None) == []


def test_scheduled_event_metadata_is_ignored():
    event = {
        "version": "0",
        "detail-type": "Scheduled Event",
        "source": "aws.events",
        "monitoredLogGroups": [{"logGroupName": "A", "searchString": "WARN"}],
    }
    assert len(parse_monitor_targets(event)) == 1


def test_duplicates_are_kept():
    item = {"logGroupName": "A", "searchString": "ERROR"}
    assert len(parse_monitor_targets({"monitoredLogGroups": [item, item]})) == 2


def test_log_group_name_is_stripped():
    targets = parse_monitor_targets({"monitoredLogGroups": [{"logGroupName": "  A  "}]})
    assert targets[0].log_group_name == "A"


def test_search_string_is_passed_through_untouched():
    targets = parse_monitor_targets({"monitoredLogGroups": [
        {"logGroupName": "A", "searchString": "   "},
        {"logGroupName": "B", "searchString": " ERROR "},
    ]})
    assert targets[0].search_string == "   "
    assert targets[1].search_string == " ERROR "


def test_null_target_list_yields_no_targets():
    """
    A YAML key with every entry commented out loads as None.
    """
    assert parse_monitor_targets({"monitoredLogGroups": None}) == []


@pytest.mark.parametrize("event", [
    {"monitoredLogGroups": [{"logGroupName": ""}]},
    {"monitoredLogGroups": [{"logGroupName": "   "}]},
    {"monitoredLogGroups": [{"searchString": "ERROR"}]},
    {"monitoredLogGroups": [{"logGroupName": 42}]},
    {"monitoredLogGroups": "A"},
])
def test_malformed_targets_raise(event):
    with pytest.raises(InvalidRequestError, match="monitoredLogGroups"):
        parse_monitor_targets(event)


def test_non_object_event_raises():
    with pytest.raises(InvalidRequestError, match="JSON object"):
        parse_monitor_targets(["A"])
