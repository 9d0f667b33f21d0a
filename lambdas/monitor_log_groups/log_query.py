# lambdas/monitor_log_groups/log_query.py
import logging
from typing import List

from botocore.exceptions import BotoCoreError, ClientError

from .models import MonitorTarget, QueryWindow

logger = logging.getLogger(__name__)


class QueryError(Exception):
    """The log query, or one of its page fetches, failed."""

    def __init__(self, log_group_name: str, cause: Exception):
        super().__init__(f"Error fetching log events for '{log_group_name}': {cause}")
        self.log_group_name = log_group_name
        self.cause = cause


class CloudWatchLogQuery:
    """
    Searches a CloudWatch Logs log group with FilterLogEvents, following
    pagination until the result set is exhausted.
    """

    def __init__(self, logs_client):
        self.logs_client = logs_client

    @staticmethod
    def _build_request(target: MonitorTarget, window: QueryWindow) -> dict:
        request = {
            'startTime': window.start_ms,
            'endTime': window.end_ms,
        }
        # FilterLogEvents takes an ARN only through logGroupIdentifier.
        if target.log_group_name.startswith("arn:"):
            request['logGroupIdentifier'] = target.log_group_name
        else:
            request['logGroupName'] = target.log_group_name
        if target.search_string:
            request['filterPattern'] = target.search_string
        return request

    def filter(self, target: MonitorTarget, window: QueryWindow) -> List[str]:
        """
        Returns the messages of every matching event in the window.

        Raises:
            QueryError: If any page fetch fails. Partial results are discarded.
        """
        request = self._build_request(target, window)
        messages = []
        try:
            paginator = self.logs_client.get_paginator('filter_log_events')
            for page in paginator.paginate(**request):
                for event in page.get('events', []):
                    messages.append(event.get('message', ''))
        except (ClientError, BotoCoreError) as e:
            raise QueryError(target.log_group_name, e) from e

        logger.info("Found %d matching log events in log group %s", len(messages), target.log_group_name)
        return messages
