# infra_cdk/log_monitor_stack.py
import yaml
from aws_cdk import (
    Stack,
    Aspects,
    Duration,
    CfnParameter,
    aws_events as events,
    aws_events_targets as targets,
    aws_iam as iam,
    aws_lambda as _lambda,
    aws_logs as logs,
    aws_sns as sns,
    aws_sns_subscriptions as sns_subscriptions,
    CfnOutput
)
from cdk_nag import AwsSolutionsChecks
from constructs import Construct


class LogMonitorStack(Stack):
    '''
    CDK stack for the log group monitor.
    An EventBridge schedule invokes the monitor Lambda with the target list from
    monitored_log_groups.yml. The Lambda searches each log group, publishes an
    ErrorCount metric per group and creates or deletes the group's alarm, which
    notifies the alarm topic.
    '''

    def __init__(self, scope: Construct, construct_id: str, targets_file: str = "monitored_log_groups.yml",
                 metric_namespace: str = "App/Errors", **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # === Parameters for Deployment ===
        alarm_email_param = CfnParameter(self, "AlarmEmail", type="String",
            description="The email address subscribed to the alarm topic.")

        schedule_minutes_param = CfnParameter(self, "ScheduleMinutes", type="Number", default=60,
            description="How often, in minutes, the monitor runs.")

        with open(targets_file, 'r') as f:
            monitored_log_groups = (yaml.safe_load(f) or {}).get("monitoredLogGroups") or []

        # === Alarm notifications ===
        alarm_topic = sns.Topic(self, "LogGroupAlarmTopic", display_name="Log Group Alarms", enforce_ssl=True)
        alarm_topic.add_subscription(sns_subscriptions.EmailSubscription(alarm_email_param.value_as_string))

        # === Shared dependency layer (pydantic, pydantic-settings) ===
        dependency_layer = _lambda.LayerVersion(self, "MonitorDependencyLayer",
            code=_lambda.Code.from_asset("lambda_layer"),
            compatible_runtimes=[_lambda.Runtime.PYTHON_3_12],
            description="Third-party packages for the log group monitor"
        )

        # === Monitor function ===
        monitor_function = _lambda.Function(self, "MonitorLogGroupsFunction",
            runtime=_lambda.Runtime.PYTHON_3_12,
            code=_lambda.Code.from_asset(".", exclude=[
                "*", "!lambdas", "!lambdas/monitor_log_groups", "!lambdas/monitor_log_groups/*.py",
            ]),
            handler="lambdas.monitor_log_groups.app.handler",
            timeout=Duration.minutes(5),
            layers=[dependency_layer],
            log_retention=logs.RetentionDays.ONE_MONTH,
            environment={
                "ALARM_TOPIC_ARN": alarm_topic.topic_arn,
                "METRIC_NAMESPACE": metric_namespace,
                "LOOKBACK_HOURS": "12",
                "LOG_LEVEL": "INFO",
            }
        )

        # Least privilege for the four API calls the monitor makes
        monitor_function.add_to_role_policy(iam.PolicyStatement(
            actions=["logs:FilterLogEvents"],
            resources=[f"arn:aws:logs:{self.region}:{self.account}:log-group:*"]
        ))
        monitor_function.add_to_role_policy(iam.PolicyStatement(
            actions=["cloudwatch:PutMetricData"],
            resources=["*"],
            conditions={"StringEquals": {"cloudwatch:namespace": metric_namespace}}
        ))
        monitor_function.add_to_role_policy(iam.PolicyStatement(
            actions=["cloudwatch:PutMetricAlarm", "cloudwatch:DeleteAlarms"],
            resources=[f"arn:aws:cloudwatch:{self.region}:{self.account}:alarm:AlarmForLogGroup-*"]
        ))

        # === Schedule ===
        schedule_rule = events.Rule(self, "MonitorScheduleRule",
            schedule=events.Schedule.rate(Duration.minutes(schedule_minutes_param.value_as_number)),
        )
        schedule_rule.add_target(targets.LambdaFunction(
            monitor_function,
            event=events.RuleTargetInput.from_object({"monitoredLogGroups": monitored_log_groups}),
            retry_attempts=0,
        ))

        CfnOutput(self, "AlarmTopicArn", value=alarm_topic.topic_arn,
            description="The SNS topic the log group alarms notify.")
        CfnOutput(self, "MonitorFunctionName", value=monitor_function.function_name)

        # Add AWS Solutions checks for best practices
        Aspects.of(self).add(AwsSolutionsChecks())
