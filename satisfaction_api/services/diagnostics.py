"""
Anomaly channel for the scoring engine.

Malformed catalog entries and unresolvable answers never abort scoring. They
are reported here, on a dedicated logger, with structured ``extra`` fields so
log pipelines can filter them apart from real errors.
"""

import logging

anomaly_logger = logging.getLogger("satisfaction_api.anomalies")


def report_anomaly(kind: str, message: str, **context) -> None:
    """Log a non-fatal scoring anomaly."""
    anomaly_logger.warning(
        f"{kind}: {message}",
        extra={"anomaly": kind, **context},
    )
