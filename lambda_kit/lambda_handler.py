# lambda_kit/lambda_handler.py
"""
Base class for Lambda handlers.

A handler owns a table of named operations. `decorate(name)` turns one of them
into a Lambda entry point that logs and measures every invocation and makes
sure anything it raises is an AppError.
"""
from contextlib import contextmanager
from datetime import datetime, timezone
from enum import Enum
from functools import wraps
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Tuple

from lambda_kit.errors import AppError, NotYetImplementedError
from lambda_kit.logger import Logger
from lambda_kit.metric import Metric

Operation = Callable[[Any, Any], Any]


class EventSource(str, Enum):
    API_GATEWAY_AUTHORIZER = "api-gateway-authorizer"
    API_GATEWAY_PROXY = "api-gateway-proxy"
    AWS_CONFIG = "aws-config"
    COGNITO_SYNC_TRIGGER = "cognito-sync-trigger"
    CLOUDFORMATION = "cloudformation"
    CLOUDFRONT = "cloudfront"
    CLOUDWATCH_LOGS = "cloudwatch-logs"
    CODE_COMMIT = "code-commit"
    DDB = "dynamodb"
    KINESIS = "kinesis"
    KINESIS_FIREHOSE = "kinesis-firehose"
    MOBILE_BACKEND = "mobile-backend"
    SCHEDULED = "scheduled"
    S3 = "s3"
    SES = "simple-email-service"
    SNS = "simple-notification-service"
    SQS = "simple-queue-service"
    UNKNOWN = "unknown"


RECORD_EVENT_SOURCES = {
    "aws:codecommit": EventSource.CODE_COMMIT,
    "aws:sqs": EventSource.SQS,
    "aws:ses": EventSource.SES,
    "aws:sns": EventSource.SNS,
    "aws:dynamodb": EventSource.DDB,
    "aws:kinesis": EventSource.KINESIS,
    "aws:s3": EventSource.S3,
}

FIREHOSE_ARN_PREFIX = "arn:aws:kinesis:"


def _first(items: Any) -> Any:
    if isinstance(items, list) and items:
        return items[0]
    return None


# Event source detectors. Each takes the event mapping and returns an
# EventSource or None; they never raise.

def _from_records(event: Mapping) -> Optional[EventSource]:
    record = _first(event.get("Records"))
    if not isinstance(record, Mapping):
        return None
    # Presence is enough, an empty "cf" mapping still marks a CloudFront record
    if record.get("cf") is not None:
        return EventSource.CLOUDFRONT
    source = record.get("eventSource")
    if isinstance(source, str):
        return RECORD_EVENT_SOURCES.get(source)
    return None


def _from_firehose(event: Mapping) -> Optional[EventSource]:
    records = event.get("records")
    if not isinstance(records, list) or not records:
        return None
    record = records[0]
    if isinstance(record, Mapping) and record.get("approximateArrivalTimestamp"):
        return EventSource.KINESIS_FIREHOSE
    arn = event.get("deliveryStreamArn")
    if isinstance(arn, str) and arn.startswith(FIREHOSE_ARN_PREFIX):
        return EventSource.KINESIS_FIREHOSE
    return None


def _from_config_rule(event: Mapping) -> Optional[EventSource]:
    if event.get("configRuleId") and event.get("configRuleName") and event.get("configRuleArn"):
        return EventSource.AWS_CONFIG
    return None


def _from_authorizer(event: Mapping) -> Optional[EventSource]:
    if event.get("authorizationToken") == "incoming-client-token":
        return EventSource.API_GATEWAY_AUTHORIZER
    return None


def _from_cloudformation(event: Mapping) -> Optional[EventSource]:
    if event.get("StackId") and event.get("RequestType") and event.get("ResourceType"):
        return EventSource.CLOUDFORMATION
    return None


def _from_api_gateway_proxy(event: Mapping) -> Optional[EventSource]:
    path_parameters = event.get("pathParameters")
    if isinstance(path_parameters, Mapping) and path_parameters.get("proxy"):
        return EventSource.API_GATEWAY_PROXY
    return None


def _from_scheduled(event: Mapping) -> Optional[EventSource]:
    if event.get("source") == "aws.events":
        return EventSource.SCHEDULED
    return None


def _from_cloudwatch_logs(event: Mapping) -> Optional[EventSource]:
    awslogs = event.get("awslogs")
    if isinstance(awslogs, Mapping) and awslogs.get("data"):
        return EventSource.CLOUDWATCH_LOGS
    return None


def _from_cognito_sync(event: Mapping) -> Optional[EventSource]:
    if event.get("eventType") == "SyncTrigger" and event.get("identityId") and event.get("identityPoolId"):
        return EventSource.COGNITO_SYNC_TRIGGER
    return None


def _from_mobile_backend(event: Mapping) -> Optional[EventSource]:
    if event.get("operation") and event.get("message"):
        return EventSource.MOBILE_BACKEND
    return None


# Order matters: a generic shape (e.g. a "Records" list) must be checked
# after the more specific ones it overlaps with.
EVENT_SOURCE_DETECTORS: Tuple[Callable[[Mapping], Optional[EventSource]], ...] = (
    _from_records,
    _from_firehose,
    _from_config_rule,
    _from_authorizer,
    _from_cloudformation,
    _from_api_gateway_proxy,
    _from_scheduled,
    _from_cloudwatch_logs,
    _from_cognito_sync,
    _from_mobile_backend,
)


def detect_event_source(event: Any) -> EventSource:
    """
    Classifies an invocation payload by its shape. The first matching detector
    wins; anything unrecognised (including non-mapping payloads) is UNKNOWN.
    """
    if not isinstance(event, Mapping):
        return EventSource.UNKNOWN

    for detector in EVENT_SOURCE_DETECTORS:
        source = detector(event)
        if source is not None:
            return source

    return EventSource.UNKNOWN


class LambdaHandler:
    """
    Args:
        logger: Logger receiving the lifecycle records of every invocation.
        metric: Metric sink receiving the start/success/failure gauges and
            the latency timer.
        operations: Mapping of operation name to a callable taking
            (event, context).
    """

    def __init__(self, logger: Logger, metric: Metric, operations: Optional[Mapping[str, Operation]] = None):
        self.logger = logger
        self.metric = metric
        self._operations: Dict[str, Operation] = dict(operations or {})

    @property
    def operations(self) -> list:
        return sorted(self._operations)

    def register(self, name: str) -> Callable[[Operation], Operation]:
        """Decorator form of adding an operation to the table."""
        def add(operation: Operation) -> Operation:
            self._operations[name] = operation
            return operation
        return add

    @contextmanager
    def _latency(self, name: str) -> Iterator[None]:
        start = datetime.now(timezone.utc)
        try:
            yield
        finally:
            self.metric.timer(name, "latency", start)

    def decorate(self, name: str) -> Callable[[Any, Any], Any]:
        """
        Wraps the named operation as a Lambda entry point.

        Raises:
            NotYetImplementedError: If no operation is registered under name.
        """
        operation = self._operations.get(name)
        if operation is None:
            raise NotYetImplementedError(f"No operation registered under '{name}'")

        @wraps(operation)
        def invoke(event: Any, context: Any) -> Any:
            with self._latency(name):
                try:
                    self.logger.trace(f"{name} - Start", data={"event": event, "context": context})
                    self.metric.gauge(name, "start", 1)

                    result = operation(event, context)

                    self.logger.debug(f"{name} - Complete", data={"result": result, "event": event, "context": context})
                    self.metric.gauge(name, "success", 1)
                except Exception as error:
                    self.logger.error(f"{name} - Error", error=error, data={"event": event, "context": context})
                    self.metric.gauge(name, "failure", 1)

                    app_error = AppError.convert(error)
                    if app_error is error:
                        raise
                    raise app_error from error

                return result

        return invoke

    def detect_event_source(self, event: Any) -> EventSource:
        return detect_event_source(event)
