# infra_cdk/app.py
# Run from the repository root: cdk deploy --app "python infra_cdk/app.py"
import aws_cdk as cdk

from log_monitor_stack import LogMonitorStack

app = cdk.App()
LogMonitorStack(app, "LogGroupMonitorStack",
    metric_namespace=app.node.try_get_context("metric_namespace") or "App/Errors",
)
app.synth()
