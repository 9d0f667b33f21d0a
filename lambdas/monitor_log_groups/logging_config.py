# lambdas/monitor_log_groups/logging_config.py
"""
Logging setup for the monitor Lambda.

LOG_LEVEL values:
- ERROR: only per-target failures
- WARNING: failures plus skipped targets
- INFO: the above plus per-target counts and alarm actions (default)
- DEBUG: everything
"""
import logging

_LEVELS = {
    'ERROR': logging.ERROR,
    'WARNING': logging.WARNING,
    'INFO': logging.INFO,
    'DEBUG': logging.DEBUG,
}


def configure_logging(level_name: str = "INFO") -> logging.Logger:
    numeric_level = _LEVELS.get((level_name or "").upper(), logging.INFO)

    logger = logging.getLogger()
    logger.setLevel(numeric_level)

    # Lambda installs its own handler; add one only for local runs.
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        logger.addHandler(handler)

    # boto's request logging drowns out the per-target lines at DEBUG.
    for noisy in ('botocore', 'boto3', 'urllib3'):
        logging.getLogger(noisy).setLevel(max(numeric_level, logging.INFO))
    return logger
