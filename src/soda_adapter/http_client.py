"""
HTTPClient module for executing single SODA GET requests
"""

import logging
import requests
from typing import Dict, Any, Optional, Protocol
from dataclasses import dataclass, field

from .exceptions import RemoteError, TransportError


APP_TOKEN_HEADER = "X-App-Token"


class HTTPRequester(Protocol):
    """Transport capability, satisfied by requests.Session"""

    def send(self, request: requests.PreparedRequest, **kwargs: Any) -> requests.Response:
        ...


@dataclass
class APIRequest:
    """Represents a single API request"""
    url: str
    parameters: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=dict)
    method: str = "GET"

    def prepare(self) -> requests.PreparedRequest:
        """Build the wire request with the parameters encoded into the URL"""
        return requests.Request(
            self.method,
            self.url,
            params=self.parameters,
            headers=self.headers
        ).prepare()


class HTTPClient:
    """HTTP client sending the app token header, without retries"""

    def __init__(self, app_token: str = "", requester: Optional[HTTPRequester] = None,
                 timeout: Optional[float] = None):
        self.app_token = app_token
        self.timeout = timeout
        self._owns_requester = requester is None
        self.requester: Optional[HTTPRequester] = requester if requester is not None else requests.Session()
        self.logger = logging.getLogger(__name__)

    def make_request(self, request: APIRequest) -> requests.Response:
        """
        Send one request and classify the response status

        Args:
            request: APIRequest object containing request details

        Returns:
            The live streamed response, the caller must close it

        Raises:
            RemoteError: If the response status code is 400 or above
            TransportError: If requests fails before a response is received
        """
        # Reopen after close_connection()
        if self.requester is None:
            self.requester = requests.Session()

        combined_headers = {**request.headers, APP_TOKEN_HEADER: self.app_token}
        prepared = APIRequest(
            url=request.url,
            parameters=request.parameters,
            headers=combined_headers,
            method=request.method
        ).prepare()

        self.logger.debug(f"{prepared.method} {prepared.url}")
        try:
            response = self.requester.send(prepared, stream=True, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Request to {prepared.url} failed: {e}") from e

        if response.status_code >= 400:
            try:
                body = response.text
            finally:
                response.close()
            self.logger.debug(f"{prepared.url} answered with status {response.status_code}")
            raise RemoteError(response.status_code, prepared.url, body)

        return response

    def close_connection(self) -> None:
        """
        Close the HTTP session if this client created it
        """
        if self._owns_requester and self.requester is not None:
            self.requester.close()
            self.requester = None
