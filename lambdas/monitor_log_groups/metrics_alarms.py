# lambdas/monitor_log_groups/metrics_alarms.py
import logging

from botocore.exceptions import BotoCoreError, ClientError

from .models import AlarmPolicy

logger = logging.getLogger(__name__)

# Error codes CloudWatch returns when the alarm to delete does not exist
_ALARM_NOT_FOUND_CODES = ("ResourceNotFound", "ResourceNotFoundException")


class PublishError(Exception):
    """Publishing the match count metric failed."""


class AlarmError(Exception):
    """Creating, updating or deleting an alarm failed."""


def _error_message(e: Exception) -> str:
    if isinstance(e, ClientError):
        return e.response.get('Error', {}).get('Message', str(e))
    return str(e)


class CloudWatchMetricsAlarms:
    """
    Publishes per-log-group match counts and manages the matching alarms.
    Both operations share one CloudWatch client.
    """

    def __init__(self, cloudwatch_client, policy: AlarmPolicy):
        self.cloudwatch_client = cloudwatch_client
        self.policy = policy

    def alarm_name(self, log_group_name: str) -> str:
        return f"{self.policy.alarm_name_prefix}{log_group_name}"

    def _dimensions(self, log_group_name: str) -> list:
        return [{'Name': self.policy.dimension_name, 'Value': log_group_name}]

    def put_count(self, log_group_name: str, value: int) -> None:
        try:
            self.cloudwatch_client.put_metric_data(
                Namespace=self.policy.namespace,
                MetricData=[{
                    'MetricName': self.policy.metric_name,
                    'Dimensions': self._dimensions(log_group_name),
                    'Value': float(value),
                    'Unit': 'Count',
                }]
            )
        except (ClientError, BotoCoreError) as e:
            raise PublishError(f"Failed to publish metric for '{log_group_name}': {_error_message(e)}") from e

    def upsert_alarm(self, log_group_name: str) -> str:
        """
        Creates the alarm for a log group, or overwrites it with the same
        definition if it already exists. PutMetricAlarm is idempotent by name.

        Returns:
            The alarm name.
        """
        alarm_name = self.alarm_name(log_group_name)
        try:
            self.cloudwatch_client.put_metric_alarm(
                AlarmName=alarm_name,
                AlarmDescription=f"Log events matched in {log_group_name}",
                ComparisonOperator=self.policy.comparison_operator,
                EvaluationPeriods=self.policy.evaluation_periods,
                MetricName=self.policy.metric_name,
                Namespace=self.policy.namespace,
                Dimensions=self._dimensions(log_group_name),
                Period=self.policy.period_seconds,
                Statistic=self.policy.statistic,
                Threshold=self.policy.threshold,
                ActionsEnabled=True,
                AlarmActions=[self.policy.notify_target],
            )
        except (ClientError, BotoCoreError) as e:
            raise AlarmError(f"Failed to create/update alarm '{alarm_name}': {_error_message(e)}") from e
        return alarm_name

    def delete_alarm(self, log_group_name: str) -> str:
        """
        Deletes the alarm for a log group. A missing alarm counts as deleted.

        Returns:
            The alarm name.
        """
        alarm_name = self.alarm_name(log_group_name)
        try:
            self.cloudwatch_client.delete_alarms(AlarmNames=[alarm_name])
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') in _ALARM_NOT_FOUND_CODES:
                logger.debug("Alarm %s does not exist, nothing to delete", alarm_name)
                return alarm_name
            raise AlarmError(f"Failed to delete alarm '{alarm_name}': {_error_message(e)}") from e
        except BotoCoreError as e:
            raise AlarmError(f"Failed to delete alarm '{alarm_name}': {e}") from e
        return alarm_name
