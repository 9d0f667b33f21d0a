# lambdas/monitor_log_groups/app.py
import json
import logging
from functools import lru_cache

import boto3
from botocore.exceptions import BotoCoreError
from pydantic import ValidationError

from .log_query import CloudWatchLogQuery
from .logging_config import configure_logging
from .metrics_alarms import CloudWatchMetricsAlarms
from .models import AlarmPolicy, get_settings
from .reconciler import LogGroupReconciler
from .request_parser import InvalidRequestError, parse_monitor_targets

logger = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """The function could not load its settings or build its AWS clients."""


@lru_cache(maxsize=1)
def get_reconciler() -> LogGroupReconciler:
    """
    Builds the clients and the reconciler once per container so warm
    invocations reuse them.

    Raises:
        ConfigurationError: If the settings are invalid or a client cannot be created.
    """
    try:
        settings = get_settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    try:
        logs_client = boto3.client('logs', region_name=settings.aws_region)
        cloudwatch_client = boto3.client('cloudwatch', region_name=settings.aws_region)
    except BotoCoreError as e:
        raise ConfigurationError(f"Unable to create AWS clients: {e}") from e

    policy = AlarmPolicy.from_settings(settings)
    return LogGroupReconciler(
        log_query=CloudWatchLogQuery(logs_client),
        metrics=CloudWatchMetricsAlarms(cloudwatch_client, policy),
        policy=policy,
        max_workers=settings.max_workers,
        deadline_margin_ms=settings.deadline_margin_ms,
    )


def handler(event, context) -> str:
    """
    Scheduled entry point. Searches each monitored log group, publishes the
    match counts and reconciles the alarms.

    Returns:
        A status line such as
        "Processed 2 log groups, found 5 total matches, triggered 1 alarms".
    """
    try:
        configure_logging(get_settings().log_level)
    except ValidationError as e:
        configure_logging()
        logger.critical("FATAL: Invalid configuration: %s", e)
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Received event: %s", json.dumps(event, default=str))

    try:
        targets = parse_monitor_targets(event)
    except InvalidRequestError as e:
        logger.error("Validation Error: %s", e)
        raise

    try:
        reconciler = get_reconciler()
    except ConfigurationError as e:
        logger.critical("FATAL: %s", e)
        raise

    time_remaining_ms = getattr(context, 'get_remaining_time_in_millis', None)
    summary = reconciler.run(targets, time_remaining_ms=time_remaining_ms)

    result = summary.message()
    logger.info(result)
    return result
