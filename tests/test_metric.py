# tests/test_metric.py
import io
import json
import unittest
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError

from lambda_kit.logger import Logger
from lambda_kit.metric import CloudWatchMetric, NoopMetric, create_metric


class TestNoopMetric(unittest.TestCase):

    def test_operations_do_nothing(self):
        metric = NoopMetric()
        self.assertIsNone(metric.gauge("default", "start", 1))
        self.assertIsNone(metric.timer("default", "latency", datetime.now(timezone.utc)))


class TestCloudWatchMetric(unittest.TestCase):

    def setUp(self):
        self.client = MagicMock()
        self.stream = io.StringIO()
        self.logger = Logger(name="metric-test", stream=self.stream)
        self.metric = CloudWatchMetric("Charts", client=self.client, logger=self.logger)

    def test_gauge_publishes_count(self):
        self.metric.gauge("default", "start", 1)

        self.client.put_metric_data.assert_called_once_with(
            Namespace="Charts",
            MetricData=[{
                "MetricName": "default.start",
                "Dimensions": [{"Name": "Handler", "Value": "default"}],
                "Value": 1,
                "Unit": "Count",
            }],
        )

    def test_timer_publishes_elapsed_milliseconds(self):
        start = datetime.now(timezone.utc) - timedelta(seconds=2)
        self.metric.timer("default", "latency", start)

        kwargs = self.client.put_metric_data.call_args.kwargs
        datum = kwargs["MetricData"][0]
        self.assertEqual(datum["MetricName"], "default.latency")
        self.assertEqual(datum["Unit"], "Milliseconds")
        self.assertGreaterEqual(datum["Value"], 2000)
        self.assertLess(datum["Value"], 60000)

    def test_client_errors_are_logged_not_raised(self):
        self.client.put_metric_data.side_effect = ClientError(
            {"Error": {"Code": "Throttling", "Message": "Rate exceeded"}}, "PutMetricData"
        )

        self.metric.gauge("default", "failure", 1)

        record = json.loads(self.stream.getvalue())
        self.assertEqual(record["msg"], "Could not publish metric")
        self.assertEqual(record["level"], 40)
        self.assertEqual(record["component"], "metric")
        self.assertEqual(record["metric"], "default.failure")
        self.assertEqual(record["error"]["name"], "ClientError")

    @patch("lambda_kit.metric.boto3.client")
    def test_default_client_is_cloudwatch(self, mock_boto_client):
        metric = CloudWatchMetric("Charts")

        mock_boto_client.assert_called_once_with("cloudwatch")
        self.assertIs(metric.client, mock_boto_client.return_value)


class TestCreateMetric(unittest.TestCase):

    def test_noop_backend(self):
        settings = SimpleNamespace(metrics_backend="noop")
        self.assertIsInstance(create_metric(settings), NoopMetric)

    @patch("lambda_kit.metric.boto3.client")
    def test_cloudwatch_backend(self, mock_boto_client):
        settings = SimpleNamespace(metrics_backend="cloudwatch", metrics_namespace="Charts", aws_region="af-south-1")

        metric = create_metric(settings)

        mock_boto_client.assert_called_once_with("cloudwatch", region_name="af-south-1")
        self.assertIsInstance(metric, CloudWatchMetric)
        self.assertEqual(metric.namespace, "Charts")


if __name__ == "__main__":
    unittest.main()
