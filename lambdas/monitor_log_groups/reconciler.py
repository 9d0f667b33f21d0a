# lambdas/monitor_log_groups/reconciler.py
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence

from .log_query import QueryError
from .metrics_alarms import AlarmError, PublishError
from .models import (
    ALARM_DELETED,
    ALARM_UPSERTED,
    AlarmPolicy,
    MonitorTarget,
    QueryWindow,
    RunSummary,
    TargetOutcome,
)

logger = logging.getLogger(__name__)


class LogGroupReconciler:
    """
    For each target: count the matching log events in the lookback window,
    publish the count as a metric, then create the alarm when there were
    matches or delete it when there were none.

    The log query and metrics/alarm ports are injected so tests can pass doubles.
    """

    def __init__(self, log_query, metrics, policy: AlarmPolicy, max_workers: int = 1,
                 deadline_margin_ms: int = 0, clock: Optional[Callable[[], float]] = None):
        self.log_query = log_query
        self.metrics = metrics
        self.policy = policy
        self.max_workers = max(1, max_workers)
        self.deadline_margin_ms = deadline_margin_ms
        self.clock = clock or time.time

    def _window(self) -> QueryWindow:
        return QueryWindow.trailing(self.policy.lookback_hours, now_ms=int(self.clock() * 1000))

    def _out_of_time(self, time_remaining_ms: Optional[Callable[[], int]]) -> bool:
        if time_remaining_ms is None:
            return False
        return time_remaining_ms() < self.deadline_margin_ms

    def process_target(self, target: MonitorTarget, window: QueryWindow,
                       outcome: Optional[TargetOutcome] = None) -> TargetOutcome:
        outcome = outcome if outcome is not None else TargetOutcome(target=target)
        name = target.log_group_name

        # Step 1: Query and count
        try:
            outcome.count = len(self.log_query.filter(target, window))
        except QueryError as e:
            logger.error("Error processing log group %s: %s", name, e)
            outcome.query_error = str(e)
            return outcome

        # Step 2: Publish the count. Alarm reconciliation runs whatever happens here.
        try:
            self.metrics.put_count(name, outcome.count)
            outcome.metric_published = True
        except PublishError as e:
            logger.error("Error publishing metric for log group %s: %s", name, e)
            outcome.publish_error = str(e)

        # Step 3: Reconcile the alarm
        try:
            if outcome.count > 0:
                alarm_name = self.metrics.upsert_alarm(name)
                outcome.alarm_action = ALARM_UPSERTED
                logger.info("CloudWatch alarm %s ensured for log group %s", alarm_name, name)
            else:
                alarm_name = self.metrics.delete_alarm(name)
                outcome.alarm_action = ALARM_DELETED
                logger.info("CloudWatch alarm %s deleted for log group %s", alarm_name, name)
        except AlarmError as e:
            logger.error("Error reconciling alarm for log group %s: %s", name, e)
            outcome.alarm_error = str(e)

        return outcome

    def _safe_process_target(self, target: MonitorTarget, window: QueryWindow) -> TargetOutcome:
        outcome = TargetOutcome(target=target)
        try:
            return self.process_target(target, window, outcome)
        except Exception as e:
            logger.exception("Unexpected error processing log group %s", target.log_group_name)
            outcome.unexpected_error = f"Unexpected error: {e}"
            return outcome

    def run(self, targets: Sequence[MonitorTarget],
            time_remaining_ms: Optional[Callable[[], int]] = None) -> RunSummary:
        """
        Processes every target and folds the outcomes into a RunSummary.

        Args:
            targets: The targets, processed (or at least collected) in input order.
            time_remaining_ms: Optional callable returning the invocation's remaining
                time. Targets not yet started when it drops below the deadline margin
                are skipped and left out of the summary.
        """
        window = self._window()
        logger.info("Searching %d log groups between %d and %d", len(targets), window.start_ms, window.end_ms)

        if self.max_workers == 1:
            outcomes = self._run_sequential(targets, window, time_remaining_ms)
        else:
            outcomes = self._run_concurrent(targets, window, time_remaining_ms)

        summary = RunSummary.from_outcomes(outcomes)
        skipped = len(targets) - len(outcomes)
        if skipped:
            logger.warning("Deadline approaching, skipped %d log groups", skipped)
        return summary

    def _run_sequential(self, targets, window, time_remaining_ms) -> List[TargetOutcome]:
        outcomes = []
        for target in targets:
            if self._out_of_time(time_remaining_ms):
                break
            outcomes.append(self._safe_process_target(target, window))
        return outcomes

    def _run_concurrent(self, targets, window, time_remaining_ms) -> List[TargetOutcome]:
        def task(target):
            # Checked when the task starts so queued targets are dropped near the deadline.
            if self._out_of_time(time_remaining_ms):
                return None
            return self._safe_process_target(target, window)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            results = list(executor.map(task, targets))
        return [outcome for outcome in results if outcome is not None]
