# log-group-monitor/run_live.py
import argparse
import json

import yaml
from dotenv import load_dotenv

# Load ALARM_TOPIC_ARN and friends from a .env file before the settings are read.
load_dotenv()

from lambdas.monitor_log_groups.app import handler  # noqa: E402


def load_event(path: str) -> dict:
    """
    Reads the YAML target list and builds the same event the schedule sends.

    Expected file layout:
        monitoredLogGroups:
          - logGroupName: /aws/lambda/orders
            searchString: ERROR
    """
    with open(path, 'r') as f:
        config = yaml.safe_load(f) or {}
    return {"monitoredLogGroups": config.get("monitoredLogGroups") or []}


def run_live():
    """Executes the monitor handler using your live AWS credentials."""
    parser = argparse.ArgumentParser(description="Run the log group monitor against live AWS.")
    parser.add_argument("--targets", default="monitored_log_groups.yml",
                        help="YAML file listing the log groups and search strings")
    parser.add_argument("--dry-run", action="store_true",
                        help="print the event that would be sent and exit")
    args = parser.parse_args()

    event = load_event(args.targets)
    print(f"--- Loaded {len(event['monitoredLogGroups'])} log groups from {args.targets} ---")

    if args.dry_run:
        print(json.dumps(event, indent=2))
        return

    print("\n--- Invoking Lambda handler (this will call CloudWatch Logs and CloudWatch) ---")
    result = handler(event, {})
    print("--- Lambda handler execution finished ---")
    print(f"\n{result}")


if __name__ == "__main__":
    run_live()
