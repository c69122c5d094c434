"""
SoQL module for building Socrata query parameters from structured queries
"""

from enum import Enum
from typing import Dict, List
from dataclasses import dataclass, field

from .exceptions import ConfigurationError


class Direction(Enum):
    """Sort direction for an order column"""
    ASC = "ASC"
    DESC = "DESC"


@dataclass(frozen=True)
class OrderColumn:
    """A single sort key of a SoQL query"""
    column: str
    direction: Direction = Direction.ASC

    def to_soql(self) -> str:
        return f"{self.column} {self.direction.value}"


@dataclass
class SoQLQuery:
    """
    Socrata Query Language parameters for a GET request

    Only non-default fields are sent, so an empty query returns all columns
    in the server's default order and page size.
    See http://dev.socrata.com/docs/queries.html
    """
    select: List[str] = field(default_factory=list)
    where: str = ""
    order: List[OrderColumn] = field(default_factory=list)
    group: str = ""
    limit: int = 0
    offset: int = 0
    q: str = ""

    def add_order(self, column: str, direction: Direction = Direction.ASC) -> None:
        """
        Append a sort key, the first key added is the primary sort key

        Args:
            column: Column name to sort on
            direction: Direction.ASC or Direction.DESC
        """
        self.order.append(OrderColumn(column, Direction(direction)))

    def clear_order(self) -> None:
        """Remove all sort keys"""
        self.order = []

    def to_params(self) -> Dict[str, str]:
        """
        Serialise the query into SoQL URL parameters

        Returns:
            Ordered dictionary of parameter name to value, containing only
            the fields that differ from their defaults

        Raises:
            ConfigurationError: If limit or offset is negative
        """
        if self.limit < 0 or self.offset < 0:
            raise ConfigurationError(
                f"Limit and offset must not be negative (limit={self.limit}, offset={self.offset})"
            )

        params: Dict[str, str] = {}
        if self.select:
            params['$select'] = ",".join(self.select)
        if self.where:
            params['$where'] = self.where
        if self.order:
            params['$order'] = ",".join(o.to_soql() for o in self.order)
        if self.q:
            params['$q'] = self.q
        if self.group:
            params['$group'] = self.group
        if self.limit > 0:
            params['$limit'] = str(self.limit)
        if self.offset > 0:
            params['$offset'] = str(self.offset)
        return params


class SimpleFilters(dict):
    """
    Equality filters keyed by column name

    Multiple filters are combined by the server using a boolean AND.
    See http://dev.socrata.com/docs/filtering.html
    """

    def to_params(self) -> Dict[str, str]:
        return {column: str(value) for column, value in self.items()}


def merge_parameters(filters: SimpleFilters, query: SoQLQuery) -> Dict[str, str]:
    """
    Merge filter and query parameters into one parameter set

    Filters are applied first, so a filter named like a reserved SoQL
    parameter is overwritten by the query value.
    """
    params = filters.to_params()
    params.update(query.to_params())
    return params
