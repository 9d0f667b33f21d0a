# lambdas/monitor_log_groups/request_parser.py
from typing import List

from pydantic import ValidationError

from .models import MonitorEvent, MonitorTarget


class InvalidRequestError(ValueError):
    """Custom exception for validation errors."""
    pass


def parse_monitor_targets(event) -> List[MonitorTarget]:
    """
    Validates the invocation event and returns the targets in input order.

    Args:
        event: The invocation payload, e.g. {"monitoredLogGroups": [{"logGroupName": ..., "searchString": ...}]}.

    Returns:
        The list of MonitorTarget objects. Empty when the event carries no targets.

    Raises:
        InvalidRequestError: If the event is not an object or a target is malformed.
    """
    if event is None:
        return []
    if not isinstance(event, dict):
        raise InvalidRequestError(f"Event must be a JSON object, got {type(event).__name__}.")

    try:
        parsed = MonitorEvent.model_validate(event)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise InvalidRequestError(f"Invalid monitor event: {problems}") from e

    return parsed.monitored_log_groups
