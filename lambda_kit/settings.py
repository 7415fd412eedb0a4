# lambda_kit/settings.py
"""
Environment-driven configuration for the Lambda functions.
"""
from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CHART_INDEX_PAGES = [
    "/Pages/Aeronautical%20Information/Aeronautical-charts.aspx?p_SortBehavior=1&p_No=31%2e0000000000000&p_Chart_x0020_Title=&&PageFirstRow=1",
    "/Pages/Aeronautical%20Information/Aeronautical-charts.aspx?Paged=TRUE&p_SortBehavior=1&p_No=30%2e0000000000000&p_Chart_x0020_Title=&p_ID=33&PageFirstRow=31",
]


class HandlerSettings(BaseSettings):
    """
    Manages env vars using Pydantic BaseSettings; a .env file is read too,
    which is handy for local runs.
    """
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )

    logger_name: str = Field("default-handler", alias="LOGGER_NAME")
    log_level: Literal["trace", "debug", "info", "warn", "error", "fatal"] = Field("debug", alias="LOG_LEVEL")

    # Metrics
    metrics_backend: Literal["noop", "cloudwatch"] = Field("noop", alias="METRICS_BACKEND")
    metrics_namespace: str = Field("LambdaHandlerKit", alias="METRICS_NAMESPACE")
    aws_region: str = Field("us-east-1", alias="AWS_REGION")

    # Chart index service
    chart_base_url: str = Field("http://www.caa.co.za", alias="CHART_BASE_URL")
    chart_index_pages: List[str] = Field(default_factory=lambda: list(DEFAULT_CHART_INDEX_PAGES), alias="CHART_INDEX_PAGES")
    chart_airports: List[str] = Field(default_factory=list, alias="CHART_AIRPORTS")
    chart_download_dir: Optional[str] = Field(None, alias="CHART_DOWNLOAD_DIR")
    chart_download_delay: float = Field(0.5, ge=0.0, alias="CHART_DOWNLOAD_DELAY")
    request_timeout: float = Field(10.0, gt=0.0, alias="REQUEST_TIMEOUT")


@lru_cache()
def get_settings() -> HandlerSettings:
    """Returns the settings, loaded once per container."""
    return HandlerSettings()
