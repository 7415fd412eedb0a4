# lambdas/default/handler.py
import json

from lambda_kit.lambda_handler import LambdaHandler
from lambda_kit.logger import Logger
from lambda_kit.metric import Metric

from lambdas.default.chart_service import ChartService


def build_response(status_code: int, body: dict) -> dict:
    """Helper function to build the API Gateway proxy response."""
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }


class DefaultHandler(LambdaHandler):
    """Refreshes the chart index whatever triggered the function."""

    def __init__(self, chart_service: ChartService, logger: Logger, metric: Metric):
        super().__init__(logger, metric, operations={"default": self.default})
        self.chart_service = chart_service

    def default(self, event: dict, context: object) -> dict:
        self.logger.trace("Event", data={"event": event})

        source = self.detect_event_source(event)
        airports = self.chart_service.refresh_index()

        return build_response(200, {
            "message": "Chart index refreshed.",
            "source": source.value,
            "airports": len(airports),
            "documents": sum(len(airport.documents) for airport in airports),
        })
