# lambdas/default/chart_service.py
"""
Builds an index of aeronautical charts published on the SA CAA website and,
optionally, downloads the chart PDFs.
"""
import os
import re
import time
import urllib.parse
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Pattern

import requests

from lambda_kit.errors import AppError
from lambda_kit.helpers import hash_value
from lambda_kit.logger import Logger

AIRPORT_ROUTE_REGEXP = re.compile(
    r'href="(/Pages/Aeronautical%20Information/Aeronautical-charts\.aspx\?RootFolder=\S+)"', re.IGNORECASE
)
AIRPORT_ICAO_FROM_ROUTE_REGEXP = re.compile(r"\s-\s+(FA[A-Z]{2})|\((FA[A-Z]{2})\)")
AIRPORT_PDF_LINK_REGEXP = re.compile(r'href="(/Aeronautical Charts/(?:\\.|[^"\\])*\.pdf)"', re.IGNORECASE)

UNAVAILABLE_MESSAGE = "Unable to reach the chart index."


class ChartType(str, Enum):
    INFORMATIONAL = "INF"
    APPROACH = "APP"
    ARRIVAL = "ARR"
    DEPARTURE = "DEP"


@dataclass
class ChartDocument:
    id: str
    route: str
    file_name: str
    chart_type: ChartType
    path: Optional[str] = None


@dataclass
class Airport:
    route: str
    icao: Optional[str]
    documents: List[ChartDocument] = field(default_factory=list)


def get_matches(pattern: Pattern, text: str) -> List[str]:
    """Returns the first non-empty capture group of every match."""
    matches = []
    for match in pattern.finditer(text):
        value = next((group for group in match.groups() if group), None)
        if value:
            matches.append(value)
    return matches


def get_chart_type(name: str) -> ChartType:
    if re.search(r"vor|apr|rnav|rnp|ils|ndb|gnss", name, re.IGNORECASE):
        return ChartType.APPROACH
    if re.search(r"arr", name, re.IGNORECASE):
        return ChartType.ARRIVAL
    if re.search(r"dep", name, re.IGNORECASE):
        return ChartType.DEPARTURE
    return ChartType.INFORMATIONAL


def chart_file_name(icao: Optional[str], route: str) -> str:
    """
    Turns a chart route into a local file name prefixed with its chart type,
    e.g. "/Aeronautical Charts/FACT_ILS Z RWY 01.pdf" -> "APP.ILS_Z_RWY_01.pdf".
    """
    name = route.split("/")[-1]
    if icao:
        name = name.replace(f"{icao}_", "").replace(icao, "")
    name = re.sub(r"^[^a-z0-9]", "", name, flags=re.IGNORECASE)
    name = re.sub(r"[^a-z0-9]+$", "", name, flags=re.IGNORECASE)
    name = re.sub(r"\s+", "_", name)
    return f"{get_chart_type(name).value}.{name}"


class ChartService:
    """
    Args:
        settings: HandlerSettings carrying the chart_* options.
        logger: Parent logger; the service logs through a child.
        session: requests.Session to use, a new one by default.
    """

    def __init__(self, settings, logger: Logger, session: Optional[requests.Session] = None):
        self.settings = settings
        self.logger = logger.child(component="chart-service")
        self.session = session or requests.Session()

    def _get(self, route: str, **kwargs) -> requests.Response:
        url = urllib.parse.urljoin(self.settings.chart_base_url, route)
        try:
            response = self.session.get(url, timeout=self.settings.request_timeout, **kwargs)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise AppError(f"GET {url} failed: {e}", UNAVAILABLE_MESSAGE) from e
        return response

    def list_airports(self) -> List[Airport]:
        """Collects the unique airport routes linked from every index page."""
        airports = []
        seen = set()

        for page in self.settings.chart_index_pages:
            html = self._get(page).text
            for route in get_matches(AIRPORT_ROUTE_REGEXP, html):
                if route in seen:
                    continue
                seen.add(route)

                decoded = urllib.parse.unquote(route)
                icao_matches = get_matches(AIRPORT_ICAO_FROM_ROUTE_REGEXP, decoded)
                airports.append(Airport(route=decoded, icao=icao_matches[0] if icao_matches else None))

        self.logger.debug("Airports indexed", count=len(airports))

        wanted = {code.upper() for code in self.settings.chart_airports}
        if wanted:
            airports = [airport for airport in airports if airport.icao in wanted]
        return airports

    def list_documents(self, airport: Airport) -> List[ChartDocument]:
        html = self._get(airport.route).text
        documents = []
        for route in dict.fromkeys(get_matches(AIRPORT_PDF_LINK_REGEXP, html)):
            file_name = chart_file_name(airport.icao, route)
            documents.append(ChartDocument(
                id=hash_value(route),
                route=route,
                file_name=file_name,
                chart_type=ChartType(file_name.split(".", 1)[0]),
            ))
        return documents

    def download(self, airport: Airport, document: ChartDocument) -> bool:
        """
        Streams a chart PDF into <download dir>/<icao>/. Returns False if the
        file was already there.
        """
        directory = os.path.join(self.settings.chart_download_dir, airport.icao or "UNKNOWN")
        os.makedirs(directory, exist_ok=True)
        document.path = os.path.join(directory, document.file_name)

        if os.path.exists(document.path):
            return False

        # Stream into a .part file so an interrupted download is never taken
        # for a complete chart on the next run.
        part_path = document.path + ".part"
        try:
            with self._get(document.route, stream=True) as response, open(part_path, "wb") as f:
                for chunk in response.iter_content(chunk_size=64 * 1024):
                    f.write(chunk)
            os.replace(part_path, document.path)
        except requests.exceptions.RequestException as e:
            raise AppError(f"Download of {document.route} failed: {e}", UNAVAILABLE_MESSAGE) from e
        finally:
            if os.path.exists(part_path):
                os.remove(part_path)

        self.logger.debug("Chart downloaded", icao=airport.icao, path=document.path)
        return True

    def refresh_index(self) -> List[Airport]:
        airports = self.list_airports()

        for airport in airports:
            airport.documents = self.list_documents(airport)

            if not self.settings.chart_download_dir:
                continue
            for document in airport.documents:
                if self.download(airport, document):
                    time.sleep(self.settings.chart_download_delay)  # Avoid rate-limiting

        self.logger.info(
            "Chart index refreshed",
            airports=len(airports),
            documents=sum(len(airport.documents) for airport in airports),
        )
        return airports
