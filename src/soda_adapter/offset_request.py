"""
OffsetGetRequest module for fetching all records of a query from concurrent workers
"""

import logging
import threading
import requests
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from .config_loader import SodaConfig
from .exceptions import ConfigurationError
from .get_request import GetRequest


class OffsetGetRequest:
    """
    Hands out non-overlapping offset windows of one query to concurrent callers

    The record count is taken once at construction. Every call to
    next_batch() claims the next window under a lock and performs the
    network request outside of it, so workers overlap their I/O while
    windows stay contiguous and disjoint.

    A window whose request fails is not handed out again, so a session
    that hit an error cannot be resumed; create a new one instead.
    """

    def __init__(self, get_request: GetRequest):
        """
        Args:
            get_request: Request holding the filters and query to page through,
                it must not be mutated elsewhere while this session is used

        Raises:
            RemoteError, TransportError, DecodeError: If the count request fails
        """
        self.logger = logging.getLogger(__name__)
        self._get_request = get_request
        self._lock = threading.Lock()
        self._offset = 0
        self._count = get_request.count()
        self.logger.info(f"Paging over {self._count} records of {get_request.endpoint}")

    def next_batch(self, number: int) -> Optional[requests.Response]:
        """
        Get the next number of records

        Args:
            number: Maximum number of records in this window

        Returns:
            The live streamed response for the claimed window, or None once
            all records have been handed out

        Raises:
            ConfigurationError: If number is not positive or the query has no order
            RemoteError, TransportError: If the request fails, the window stays consumed
        """
        if number <= 0:
            raise ConfigurationError(f"Batch size must be positive, got {number}")

        with self._lock:
            if self._offset >= self._count:
                return None
            # Offsets are only stable across pages with a deterministic order
            if not self._get_request.query.order:
                raise ConfigurationError("Cannot use an offset without setting the order")

            number = min(number, self._count - self._offset)
            query = self._get_request.query
            query.offset = self._offset
            query.limit = number
            api_request = self._get_request.build_request()
            self.logger.debug(f"Claimed records [{self._offset}, {self._offset + number})")
            self._offset += number

        return self._get_request.http_client.make_request(api_request)

    def count(self) -> int:
        """Return the number of records counted at construction"""
        return self._count

    def remaining(self) -> int:
        """Approximate number of unclaimed records, not for control decisions"""
        return max(self._count - self._offset, 0)

    def is_done(self) -> bool:
        """Whether all records have been claimed"""
        return self._offset >= self._count


def run_workers(offset_request: OffsetGetRequest, batch_size: int, workers: int,
                handler: Callable[[requests.Response], None]) -> int:
    """
    Drain an OffsetGetRequest from a pool of worker threads

    Each worker claims windows until the session is exhausted and passes
    every response to handler, closing it afterwards. Responses arrive in
    no particular order. A failing worker stops; the others keep going and
    the first error is raised once all workers have finished.

    Args:
        offset_request: Shared paging session
        batch_size: Records per window
        workers: Number of threads
        handler: Called once per response, possibly from several threads at once

    Returns:
        Number of windows handled
    """
    if workers <= 0:
        raise ConfigurationError(f"Worker count must be positive, got {workers}")

    logger = logging.getLogger(__name__)

    def work() -> int:
        handled = 0
        while True:
            response = offset_request.next_batch(batch_size)
            if response is None:
                return handled
            try:
                handler(response)
            finally:
                response.close()
            handled += 1

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(work) for _ in range(workers)]

    handled = 0
    first_error: Optional[BaseException] = None
    for future in futures:
        error = future.exception()
        if error is None:
            handled += future.result()
        elif first_error is None:
            first_error = error

    if first_error is not None:
        logger.error(f"Worker failed after {handled} batches: {first_error}")
        raise first_error
    logger.info(f"Fetched {handled} batches with {workers} workers")
    return handled


def run_workers_from_config(get_request: GetRequest, config: SodaConfig,
                            handler: Callable[[requests.Response], None]) -> int:
    """
    Drain a configured request using the [pagination] settings

    Args:
        get_request: Request with its filters and order already set
        config: Loaded configuration supplying batch_size and workers
        handler: Called once per response, possibly from several threads at once

    Returns:
        Number of windows handled
    """
    offset_request = OffsetGetRequest(get_request)
    return run_workers(offset_request, config.batch_size, config.workers, handler)
