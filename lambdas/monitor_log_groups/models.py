# lambdas/monitor_log_groups/models.py
"""
Settings and plain data models for the log group monitor.
"""
import time
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_TOPIC_ARN = "arn:aws:sns:us-east-1:123456789012:LogGroupAlarms"


class AppSettings(BaseSettings):
    """
    Reads the monitor configuration from environment variables (or a .env file
    for local runs). Every field has a default so the function deploys with
    only ALARM_TOPIC_ARN set.
    """
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    aws_region: str = Field("us-east-1", alias='AWS_REGION')
    metric_namespace: str = Field("App/Errors", alias='METRIC_NAMESPACE')
    metric_name: str = Field("ErrorCount", alias='METRIC_NAME')
    metric_dimension_name: str = Field("LogGroupName", alias='METRIC_DIMENSION_NAME')
    alarm_name_prefix: str = Field("AlarmForLogGroup-", alias='ALARM_NAME_PREFIX')
    alarm_period_seconds: int = Field(300, alias='ALARM_PERIOD_SECONDS')
    alarm_threshold: float = Field(1.0, alias='ALARM_THRESHOLD')
    alarm_evaluation_periods: int = Field(1, ge=1, alias='ALARM_EVALUATION_PERIODS')
    alarm_statistic: str = Field("Sum", alias='ALARM_STATISTIC')
    alarm_topic_arn: str = Field(_DEFAULT_TOPIC_ARN, alias='ALARM_TOPIC_ARN')
    lookback_hours: int = Field(12, ge=1, alias='LOOKBACK_HOURS')
    max_workers: int = Field(1, ge=1, alias='MAX_WORKERS')
    deadline_margin_ms: int = Field(5000, ge=0, alias='DEADLINE_MARGIN_MS')
    log_level: str = Field("INFO", alias='LOG_LEVEL')

    @field_validator('alarm_period_seconds')
    @classmethod
    def _valid_alarm_period(cls, value: int) -> int:
        # CloudWatch accepts 10, 20, 30 or any multiple of 60.
        if value in (10, 20, 30) or (value >= 60 and value % 60 == 0):
            return value
        raise ValueError(f"ALARM_PERIOD_SECONDS must be 10, 20, 30 or a multiple of 60, got {value}")


@lru_cache
def get_settings() -> AppSettings:
    return AppSettings()


@dataclass(frozen=True)
class AlarmPolicy:
    """
    The fixed metric and alarm parameters applied to every monitored log group.

    Defaults:
        namespace: "App/Errors"
        metric_name: "ErrorCount"
        dimension_name: "LogGroupName"
        alarm_name_prefix: "AlarmForLogGroup-"
        period_seconds: 300 (one five-minute evaluation period)
        threshold: 1.0, compared with GreaterThanOrEqualToThreshold
        evaluation_periods: 1
        statistic: "Sum"
        notify_target: the SNS topic ARN the alarm notifies
        lookback_hours: 12, the trailing query window
    """
    namespace: str = "App/Errors"
    metric_name: str = "ErrorCount"
    dimension_name: str = "LogGroupName"
    alarm_name_prefix: str = "AlarmForLogGroup-"
    period_seconds: int = 300
    threshold: float = 1.0
    evaluation_periods: int = 1
    statistic: str = "Sum"
    comparison_operator: str = "GreaterThanOrEqualToThreshold"
    notify_target: str = _DEFAULT_TOPIC_ARN
    lookback_hours: int = 12

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "AlarmPolicy":
        return cls(
            namespace=settings.metric_namespace,
            metric_name=settings.metric_name,
            dimension_name=settings.metric_dimension_name,
            alarm_name_prefix=settings.alarm_name_prefix,
            period_seconds=settings.alarm_period_seconds,
            threshold=settings.alarm_threshold,
            evaluation_periods=settings.alarm_evaluation_periods,
            statistic=settings.alarm_statistic,
            notify_target=settings.alarm_topic_arn,
            lookback_hours=settings.lookback_hours,
        )


class MonitorTarget(BaseModel):
    """
    One log group to search and the filter pattern to search it with.
    An empty pattern matches every event.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    log_group_name: str = Field(..., min_length=1, alias='logGroupName')
    # Passed to the backend untouched, whitespace included.
    search_string: str = Field("", alias='searchString')

    @field_validator('log_group_name', mode='before')
    @classmethod
    def _strip_log_group_name(cls, value):
        return value.strip() if isinstance(value, str) else value


class MonitorEvent(BaseModel):
    """The invocation payload. Unknown keys (e.g. EventBridge metadata) are ignored."""
    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    monitored_log_groups: List[MonitorTarget] = Field(default_factory=list, alias='monitoredLogGroups')

    @field_validator('monitored_log_groups', mode='before')
    @classmethod
    def _null_means_empty(cls, value):
        # A YAML key with every entry commented out loads as None.
        return [] if value is None else value


@dataclass(frozen=True)
class QueryWindow:
    """A [start_ms, end_ms] interval in epoch milliseconds."""
    start_ms: int
    end_ms: int

    def __post_init__(self):
        if self.start_ms >= self.end_ms:
            raise ValueError(f"Query window start ({self.start_ms}) must be before end ({self.end_ms})")

    @classmethod
    def trailing(cls, hours: int, now_ms: Optional[int] = None) -> "QueryWindow":
        end_ms = now_ms if now_ms is not None else int(time.time() * 1000)
        return cls(start_ms=end_ms - hours * 60 * 60 * 1000, end_ms=end_ms)


# Alarm actions recorded on a TargetOutcome
ALARM_UPSERTED = "upserted"
ALARM_DELETED = "deleted"


@dataclass
class TargetOutcome:
    """
    What happened to a single target during one run.

    A failed query leaves `count` as None and sets `query_error`; nothing else
    is attempted for that target. Otherwise `count` is set and the publish and
    alarm fields record the two independent side effects.

    `unexpected_error` is set when something other than a port error escaped;
    the fields recorded before it (including side effects already made) are
    kept, and the target is treated as failed in the summary.
    """
    target: MonitorTarget
    count: Optional[int] = None
    query_error: Optional[str] = None
    metric_published: bool = False
    publish_error: Optional[str] = None
    alarm_action: Optional[str] = None
    alarm_error: Optional[str] = None
    unexpected_error: Optional[str] = None

    @property
    def queried(self) -> bool:
        return self.query_error is None and self.unexpected_error is None and self.count is not None

    @property
    def alarm_touched(self) -> bool:
        return self.queried and self.count > 0 and self.alarm_action == ALARM_UPSERTED


@dataclass
class RunSummary:
    targets_processed: int = 0
    total_matches: int = 0
    alarms_touched: int = 0
    outcomes: List[TargetOutcome] = field(default_factory=list)

    @classmethod
    def from_outcomes(cls, outcomes: List[TargetOutcome]) -> "RunSummary":
        summary = cls(outcomes=list(outcomes))
        for outcome in outcomes:
            if not outcome.queried:
                continue
            summary.targets_processed += 1
            summary.total_matches += outcome.count
            if outcome.alarm_touched:
                summary.alarms_touched += 1
        return summary

    def message(self) -> str:
        return (
            f"Processed {self.targets_processed} log groups, "
            f"found {self.total_matches} total matches, "
            f"triggered {self.alarms_touched} alarms"
        )
