# lambda_kit/metric.py
"""
Metric sinks used by the handler wrapper.

NoopMetric is the default so instrumentation calls are always safe to make.
CloudWatchMetric is the real backend, selected with METRICS_BACKEND=cloudwatch.
"""
from datetime import datetime, timezone
from typing import Optional, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from lambda_kit.logger import Logger


class Metric(Protocol):
    def gauge(self, name: str, action: str, value: float) -> None: ...

    def timer(self, name: str, action: str, start: datetime) -> None: ...


class NoopMetric:
    def gauge(self, name: str, action: str, value: float) -> None:
        return

    def timer(self, name: str, action: str, start: datetime) -> None:
        return


class CloudWatchMetric:
    """
    Publishes gauges and timers as CloudWatch custom metrics.

    Metric names are "<name>.<action>" with a Handler=<name> dimension, e.g.
    "default.start" (Count) or "default.latency" (Milliseconds).
    """

    def __init__(self, namespace: str, client=None, logger: Optional[Logger] = None):
        self.namespace = namespace
        self.client = client or boto3.client("cloudwatch")
        self.logger = logger.child(component="metric") if logger else None

    def gauge(self, name: str, action: str, value: float) -> None:
        self._put(name, action, value, "Count")

    def timer(self, name: str, action: str, start: datetime) -> None:
        elapsed_ms = (datetime.now(timezone.utc) - start).total_seconds() * 1000
        self._put(name, action, elapsed_ms, "Milliseconds")

    def _put(self, name: str, action: str, value: float, unit: str) -> None:
        try:
            self.client.put_metric_data(
                Namespace=self.namespace,
                MetricData=[{
                    "MetricName": f"{name}.{action}",
                    "Dimensions": [{"Name": "Handler", "Value": name}],
                    "Value": value,
                    "Unit": unit,
                }],
            )
        except (BotoCoreError, ClientError) as e:
            # Metrics must never fail the invocation they are measuring.
            if self.logger:
                self.logger.warn("Could not publish metric", metric=f"{name}.{action}", error=e)


def create_metric(settings, logger: Optional[Logger] = None) -> Metric:
    """Builds the metric sink selected by settings.metrics_backend."""
    if settings.metrics_backend == "cloudwatch":
        client = boto3.client("cloudwatch", region_name=settings.aws_region)
        return CloudWatchMetric(settings.metrics_namespace, client=client, logger=logger)
    return NoopMetric()
