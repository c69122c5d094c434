"""
GetRequest module wrapping a SODA resource endpoint with its filters and query
"""

import csv
import logging
import requests
from contextlib import contextmanager
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Any, Dict, Iterator, List, Optional

from .config_loader import ConfigLoader, SodaConfig
from .exceptions import ConfigurationError, DecodeError
from .http_client import APIRequest, HTTPClient, HTTPRequester
from .metadata import MetadataRequest
from .soql import SimpleFilters, SoQLQuery, merge_parameters


LAST_MODIFIED_HEADERS = ("X-Soda2-Truth-Last-Modified", "Last-Modified")

_UNSET: Any = object()


class GetRequest:
    """
    Container for a SODA GET request

    Not safe for use by multiple threads, because count(), fields() and
    modified() temporarily overwrite format and query. Create one GetRequest
    per thread or share an OffsetGetRequest.
    """

    def __init__(self, endpoint: str, app_token: str = "",
                 requester: Optional[HTTPRequester] = None,
                 timeout: Optional[float] = None, format: str = "json"):
        """
        Args:
            endpoint: Resource URL without format, e.g. https://data.ct.gov/resource/hma6-9xbg
            app_token: Value sent in the X-App-Token header, may be empty
            requester: Optional transport, a requests.Session is created if omitted
            timeout: Optional transport timeout in seconds
            format: Response format appended to the endpoint (json, csv, ...)
        """
        self.endpoint = endpoint
        self.format = format
        self.filters = SimpleFilters()
        self.query = SoQLQuery()
        self.http_client = HTTPClient(app_token=app_token, requester=requester, timeout=timeout)
        self.metadata = MetadataRequest.from_resource_url(endpoint, self.http_client)
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config: SodaConfig,
                    requester: Optional[HTTPRequester] = None) -> "GetRequest":
        """
        Build a request from a loaded SodaConfig, resolving the app token

        Raises:
            EnvironmentError: If the configured app token variable is not set
        """
        ConfigLoader.validate_environment_variables(config)
        return cls(
            config.resource_url,
            app_token=ConfigLoader.resolve_app_token(config),
            requester=requester,
            timeout=config.timeout_seconds,
            format=config.format
        )

    def get_endpoint(self) -> str:
        """Return the complete SODA URL with format"""
        if not self.format:
            self.format = "json"
        return f"{self.endpoint}.{self.format}"

    def url_values(self) -> Dict[str, str]:
        """Return the merged filter and query parameters"""
        return merge_parameters(self.filters, self.query)

    def build_request(self) -> APIRequest:
        """Snapshot the current endpoint and parameters into an APIRequest"""
        return APIRequest(url=self.get_endpoint(), parameters=self.url_values())

    def check_order(self) -> None:
        """
        Raises:
            ConfigurationError: If an offset is used without any sort key
        """
        if self.query.offset > 0 and not self.query.order:
            raise ConfigurationError("Cannot use an offset without setting the order")

    def get(self) -> requests.Response:
        """
        Execute the HTTP GET request

        Returns:
            The live streamed response, the caller must close it

        Raises:
            ConfigurationError: If an offset is used without any sort key
            RemoteError: If the service answers with status 400 or above
            TransportError: If the request cannot be sent
        """
        self.check_order()
        return self.http_client.make_request(self.build_request())

    @contextmanager
    def _override(self, format: str, select: List[str], limit: Any = _UNSET) -> Iterator[None]:
        """
        Temporarily replace format, select and limit, clear the order and
        reset the offset

        The order is cleared because aggregate and header requests must not
        be sorted, which also rules out an offset. The previous values are
        restored when the block exits, including when it raises.
        """
        old_format = self.format
        old_select = self.query.select
        old_order = self.query.order
        old_limit = self.query.limit
        old_offset = self.query.offset

        self.format = format
        self.query.select = select
        self.query.clear_order()
        self.query.offset = 0
        if limit is not _UNSET:
            self.query.limit = limit
        try:
            yield
        finally:
            self.format = old_format
            self.query.select = old_select
            self.query.order = old_order
            self.query.limit = old_limit
            self.query.offset = old_offset
            self.logger.debug(f"Restored query settings for {self.endpoint}")

    def count(self) -> int:
        """
        Get the number of records matching the filters and query

        Returns:
            Total record count reported by a count(*) request

        Raises:
            DecodeError: If the response is empty or the count is not a non-negative integer
        """
        with self._override(format="json", select=["count(*)"]):
            response = self.get()
            try:
                payload = response.json()
            except ValueError as e:
                raise DecodeError(f"Count response is not valid JSON: {e}") from e
            finally:
                response.close()

        total = _parse_count(payload)
        self.logger.info(f"{self.endpoint} has {total} matching records")
        return total

    def fields(self) -> List[str]:
        """
        Get all field names of the dataset, ignoring the selected columns

        Spaces in field names are replaced by underscores.
        """
        with self._override(format="csv", select=[], limit=0):
            response = self.get()
            try:
                if response.encoding is None:
                    response.encoding = "utf-8"
                reader = csv.reader(_iter_csv_lines(response))
                record = next(reader, [])
            except csv.Error as e:
                raise DecodeError(f"Cannot read CSV header: {e}") from e
            finally:
                response.close()

        return [name.replace(" ", "_") for name in record]

    def modified(self) -> datetime:
        """
        Get the time the dataset was last updated

        Raises:
            DecodeError: If no last modified header is present or it cannot be parsed
        """
        with self._override(format="json", select=[], limit=0):
            response = self.get()
            response.close()

        value = None
        for header in LAST_MODIFIED_HEADERS:
            value = response.headers.get(header)
            if value:
                break
        if not value:
            raise DecodeError("Cannot get last modified date, field not present in HTTP header")
        try:
            return parsedate_to_datetime(value)
        except (TypeError, ValueError) as e:
            raise DecodeError(f"Invalid last modified date {value!r}: {e}") from e


def _parse_count(payload: Any) -> int:
    """Extract the scalar count from a [{"count": "<n>"}] response"""
    if not isinstance(payload, list) or not payload:
        raise DecodeError("Empty count response")

    row = payload[0]
    if not isinstance(row, dict):
        raise DecodeError(f"Unexpected count row: {row!r}")

    value = next((v for k, v in row.items() if k.lower() == "count"), None)
    if value is None:
        raise DecodeError(f"Count field missing from response: {row!r}")

    if isinstance(value, str):
        # Digits only, no sign, whitespace or underscores
        if not (value.isascii() and value.isdigit()):
            raise DecodeError(f"Invalid count value {value!r}")
        return int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"Invalid count value {value!r}")
    if value < 0:
        raise DecodeError(f"Negative count value {value!r}")
    return value


def _iter_csv_lines(response: requests.Response) -> Iterator[str]:
    """Yield decoded body lines with their terminators, as csv.reader expects"""
    pending = ""
    for chunk in response.iter_content(chunk_size=8192, decode_unicode=True):
        pending += chunk
        *lines, pending = pending.split("\n")
        for line in lines:
            yield line + "\n"
    if pending:
        yield pending
