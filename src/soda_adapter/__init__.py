"""
Read-only client for the Socrata Open Data API (SODA)
Builds SoQL queries, executes GET requests and pages through large datasets from concurrent workers
"""

from .exceptions import (
    SodaError,
    ConfigurationError,
    EnvironmentError,
    TransportError,
    RemoteError,
    DecodeError
)
from .soql import Direction, OrderColumn, SoQLQuery, SimpleFilters, merge_parameters
from .http_client import HTTPClient, HTTPRequester, APIRequest
from .config_loader import ConfigLoader, SodaConfig
from .metadata import MetadataRequest, Metadata, Column, ColumnFormat, Owner
from .get_request import GetRequest
from .offset_request import OffsetGetRequest, run_workers, run_workers_from_config

__all__ = [
    'SodaError',
    'ConfigurationError',
    'EnvironmentError',
    'TransportError',
    'RemoteError',
    'DecodeError',
    'Direction',
    'OrderColumn',
    'SoQLQuery',
    'SimpleFilters',
    'merge_parameters',
    'HTTPClient',
    'HTTPRequester',
    'APIRequest',
    'ConfigLoader',
    'SodaConfig',
    'MetadataRequest',
    'Metadata',
    'Column',
    'ColumnFormat',
    'Owner',
    'GetRequest',
    'OffsetGetRequest',
    'run_workers',
    'run_workers_from_config'
]
