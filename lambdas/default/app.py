# lambdas/default/app.py
"""
Lambda entry point. Everything is built at import time so warm invocations
reuse the logger, metric client and HTTP session.
"""
from lambda_kit.logger import Logger
from lambda_kit.metric import create_metric
from lambda_kit.settings import get_settings

from lambdas.default.chart_service import ChartService
from lambdas.default.handler import DefaultHandler

SETTINGS = get_settings()

LOGGER = Logger(name=SETTINGS.logger_name, level=SETTINGS.log_level)
METRIC = create_metric(SETTINGS, LOGGER)

CHART_SERVICE = ChartService(SETTINGS, LOGGER)
DEFAULT_HANDLER = DefaultHandler(CHART_SERVICE, LOGGER, METRIC)

handler = DEFAULT_HANDLER.decorate("default")
