"""
Metadata module for retrieving dataset descriptions from the SODA views API
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field
from urllib.parse import urlsplit

from .exceptions import ConfigurationError, DecodeError
from .http_client import APIRequest, HTTPClient


def _timestamp(value: Any) -> Optional[datetime]:
    """Convert a unix epoch in seconds to an aware UTC datetime"""
    if value is None:
        return None
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError) as e:
        raise DecodeError(f"Invalid timestamp {value!r}") from e


@dataclass
class ColumnFormat:
    """Display format of a column"""
    precision_style: str = ""
    align: str = ""
    no_commas: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ColumnFormat":
        return cls(
            precision_style=data.get('precisionStyle', ''),
            align=data.get('align', ''),
            no_commas=str(data.get('noCommas', ''))
        )


@dataclass
class Column:
    """Describes one data column"""
    id: int
    name: str
    field_name: str
    data_type_name: str = ""
    render_type_name: str = ""
    position: int = 0
    table_column_id: int = 0
    width: int = 0
    description: str = ""
    format: ColumnFormat = field(default_factory=ColumnFormat)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Column":
        return cls(
            id=data.get('id', 0),
            name=data.get('name', ''),
            field_name=data.get('fieldName', ''),
            data_type_name=data.get('dataTypeName', ''),
            render_type_name=data.get('renderTypeName', ''),
            position=data.get('position', 0),
            table_column_id=data.get('tableColumnId', 0),
            width=data.get('width', 0),
            description=data.get('description', ''),
            format=ColumnFormat.from_dict(data.get('format') or {})
        )


@dataclass
class Owner:
    """Owner or author of a dataset"""
    id: str = ""
    display_name: str = ""
    screen_name: str = ""
    role_name: str = ""
    rights: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Owner":
        return cls(
            id=data.get('id', ''),
            display_name=data.get('displayName', ''),
            screen_name=data.get('screenName', ''),
            role_name=data.get('roleName', ''),
            rights=list(data.get('rights') or [])
        )


@dataclass
class Metadata:
    """Resource metadata as returned by /views/<identifier>"""
    id: str
    name: str
    description: str = ""
    category: str = ""
    display_type: str = ""
    view_type: str = ""
    license_id: str = ""
    license_name: str = ""
    columns: List[Column] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    flags: List[str] = field(default_factory=list)
    rights: List[str] = field(default_factory=list)
    owner: Owner = field(default_factory=Owner)
    table_author: Owner = field(default_factory=Owner)
    average_rating: int = 0
    download_count: int = 0
    view_count: int = 0
    number_of_comments: int = 0
    new_backend: bool = False
    publication_stage: str = ""
    rows_updated_by: str = ""
    created_at: Optional[datetime] = None
    publication_date: Optional[datetime] = None
    rows_updated_at: Optional[datetime] = None
    view_last_modified: Optional[datetime] = None
    index_updated_at: Optional[datetime] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Metadata":
        """
        Build Metadata from the decoded views response

        Raises:
            DecodeError: If required keys are missing or timestamps are invalid
        """
        if 'id' not in data:
            raise DecodeError("Metadata response has no 'id' field")
        return cls(
            id=data['id'],
            name=data.get('name', ''),
            description=data.get('description', ''),
            category=data.get('category', ''),
            display_type=data.get('displayType', ''),
            view_type=data.get('viewType', ''),
            license_id=data.get('licenseId', ''),
            license_name=(data.get('license') or {}).get('name', ''),
            columns=[Column.from_dict(c) for c in data.get('columns') or []],
            tags=list(data.get('tags') or []),
            flags=list(data.get('flags') or []),
            rights=list(data.get('rights') or []),
            owner=Owner.from_dict(data.get('owner') or {}),
            table_author=Owner.from_dict(data.get('tableAuthor') or {}),
            average_rating=data.get('averageRating', 0),
            download_count=data.get('downloadCount', 0),
            view_count=data.get('viewCount', 0),
            number_of_comments=data.get('numberOfComments', 0),
            new_backend=data.get('newBackend', False),
            publication_stage=data.get('publicationStage', ''),
            rows_updated_by=data.get('rowsUpdatedBy', ''),
            created_at=_timestamp(data.get('createdAt')),
            publication_date=_timestamp(data.get('publicationDate')),
            rows_updated_at=_timestamp(data.get('rowsUpdatedAt')),
            view_last_modified=_timestamp(data.get('viewLastModified')),
            index_updated_at=_timestamp(data.get('indexUpdatedAt')),
            raw=data
        )


class MetadataRequest:
    """Fetches the metadata of the dataset behind a resource URL"""

    def __init__(self, base_url: str, identifier: str, http_client: HTTPClient):
        self.base_url = base_url
        self.identifier = identifier
        self.http_client = http_client
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_resource_url(cls, resource_url: str, http_client: HTTPClient) -> "MetadataRequest":
        """
        Split https://data.ct.gov/resource/hma6-9xbg into
        https://data.ct.gov and hma6-9xbg

        Unparseable URLs give empty parts, url() reports them.
        """
        try:
            parts = urlsplit(resource_url)
        except ValueError:
            return cls("", "", http_client)

        base_url = f"{parts.scheme}://{parts.netloc}" if parts.scheme and parts.netloc else ""
        identifier = parts.path.rstrip('/').split('/')[-1]
        return cls(base_url, identifier, http_client)

    def url(self) -> str:
        """
        Raises:
            ConfigurationError: If the resource URL did not contain a valid identifier
        """
        if not self.base_url or len(self.identifier) != 9 or self.identifier[4] != '-':
            raise ConfigurationError("Cannot get metadata, is the resource URL used correct?")
        return f"{self.base_url}/views/{self.identifier}"

    def get(self) -> Metadata:
        """
        Fetch and decode the metadata for this dataset

        Raises:
            ConfigurationError: If the resource identifier is malformed
            RemoteError: If the service answers with status 400 or above
            DecodeError: If the body is not a JSON object
        """
        url = self.url()
        response = self.http_client.make_request(APIRequest(url=url, parameters={}))
        try:
            data = response.json()
        except ValueError as e:
            raise DecodeError(f"Metadata response from {url} is not valid JSON: {e}") from e
        finally:
            response.close()

        if not isinstance(data, dict):
            raise DecodeError(f"Metadata response from {url} is not a JSON object")
        self.logger.debug(f"Fetched metadata for {self.identifier}")
        return Metadata.from_dict(data)

    def get_columns(self) -> List[Column]:
        """Fetch only the column descriptions for this dataset"""
        return self.get().columns
