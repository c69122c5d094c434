"""
Shared fixtures replacing the network with recording stub transports
"""

import json
import threading
import pytest
import requests
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import parse_qs, urlsplit


def build_response(status_code: int = 200, body: Any = b"",
                   headers: Optional[Dict[str, str]] = None, url: str = "") -> requests.Response:
    """Build a fully buffered requests.Response"""
    if isinstance(body, (list, dict)):
        body = json.dumps(body)
    if isinstance(body, str):
        body = body.encode('utf-8')

    response = requests.Response()
    response.status_code = status_code
    response._content = body
    response._content_consumed = True
    response.headers.update(headers or {})
    response.encoding = 'utf-8'
    response.url = url
    return response


def query_of(request: requests.PreparedRequest) -> Dict[str, str]:
    """Decode the query string of a prepared request into single values"""
    return {key: values[0] for key, values in parse_qs(urlsplit(request.url).query).items()}


class StubRequester:
    """Records every prepared request and answers it with a responder callable"""

    def __init__(self, responder: Callable[[requests.PreparedRequest], requests.Response]):
        self.responder = responder
        self.requests: List[requests.PreparedRequest] = []
        self.send_kwargs: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def send(self, request: requests.PreparedRequest, **kwargs: Any) -> requests.Response:
        with self._lock:
            self.requests.append(request)
            self.send_kwargs.append(kwargs)
        return self.responder(request)

    def data_requests(self) -> List[requests.PreparedRequest]:
        """Requests other than count(*) queries"""
        return [r for r in self.requests if query_of(r).get('$select') != 'count(*)']


@pytest.fixture
def make_response():
    return build_response


@pytest.fixture
def parse_query():
    return query_of


@pytest.fixture
def stub_requester():
    """Factory for StubRequester instances"""
    return StubRequester


@pytest.fixture
def counting_requester():
    """
    Factory for a requester that answers count(*) queries with total and
    data queries with the requested window as JSON rows
    """
    def factory(total: int, fail_offsets: Optional[set] = None) -> StubRequester:
        fail_offsets = fail_offsets or set()

        def respond(request: requests.PreparedRequest) -> requests.Response:
            params = query_of(request)
            if params.get('$select') == 'count(*)':
                return build_response(200, [{'count': str(total)}], url=request.url)
            offset = int(params.get('$offset', '0'))
            limit = int(params.get('$limit', '0'))
            if offset in fail_offsets:
                return build_response(500, 'internal error', url=request.url)
            rows = [{'row': str(i)} for i in range(offset, offset + limit)]
            return build_response(200, rows, url=request.url)

        return StubRequester(respond)

    return factory
