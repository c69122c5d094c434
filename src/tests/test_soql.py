"""
Test suite for SoQL query model components
Following TDD approach with AAA pattern and descriptive naming
"""

import copy
import pytest
from soda_adapter.soql import Direction, OrderColumn, SoQLQuery, SimpleFilters, merge_parameters
from soda_adapter.exceptions import ConfigurationError


class TestSoQLQuery:
    """Test suite for SoQLQuery serialisation"""

    def test_to_params_with_default_query_returns_empty_dict(self):
        """
        Test that a query with only default values emits no parameters
        """
        # Arrange
        query = SoQLQuery()

        # Act
        result = query.to_params()

        # Assert
        assert result == {}

    def test_to_params_with_full_query_returns_expected_values(self):
        """
        Test the documented farm/category query serialises to exact values
        """
        # Arrange
        query = SoQLQuery(
            select=['farm_name', 'category'],
            where="item like '%ADISH%'",
            limit=10,
            offset=20
        )
        query.add_order('category', Direction.DESC)
        query.add_order('farm_name', Direction.ASC)

        # Act
        result = query.to_params()

        # Assert
        assert result == {
            '$select': 'farm_name,category',
            '$where': "item like '%ADISH%'",
            '$order': 'category DESC,farm_name ASC',
            '$limit': '10',
            '$offset': '20'
        }

    def test_to_params_with_search_and_group_includes_both_keys(self):
        """
        Test that full text search and grouping use their own keys
        """
        # Arrange
        query = SoQLQuery(q='radish', group='category')

        # Act
        result = query.to_params()

        # Assert
        assert result == {'$q': 'radish', '$group': 'category'}

    def test_to_params_with_zero_limit_and_offset_omits_both_keys(self):
        """
        Test that zero limit and offset mean server defaults and are not sent
        """
        # Arrange
        query = SoQLQuery(select=['a'], limit=0, offset=0)

        # Act
        result = query.to_params()

        # Assert
        assert '$limit' not in result
        assert '$offset' not in result

    def test_to_params_called_twice_returns_identical_result_without_mutation(self):
        """
        Test that serialisation is stable and does not alter the query
        """
        # Arrange
        query = SoQLQuery(select=['b', 'a'], where='x > 1', limit=5)
        query.add_order('b', Direction.DESC)
        before = copy.deepcopy(query)

        # Act
        first = query.to_params()
        second = query.to_params()

        # Assert
        assert first == second
        assert list(first) == list(second)
        assert query == before

    def test_to_params_keeps_select_in_insertion_order(self):
        """
        Test that selected columns are not re-sorted
        """
        # Arrange
        query = SoQLQuery(select=['zeta', 'alpha', 'mid'])

        # Act
        result = query.to_params()

        # Assert
        assert result['$select'] == 'zeta,alpha,mid'

    def test_to_params_with_negative_offset_raises_configuration_error(self):
        """
        Test that negative paging values are rejected
        """
        # Arrange
        query = SoQLQuery(offset=-1)

        # Act & Assert
        with pytest.raises(ConfigurationError):
            query.to_params()


class TestSoQLQueryOrder:
    """Test suite for sort key handling"""

    @pytest.mark.parametrize("keys, expected", [
        ([('a', Direction.ASC)], 'a ASC'),
        ([('a', Direction.DESC)], 'a DESC'),
        ([('b', Direction.DESC), ('a', Direction.ASC), ('c', Direction.DESC)], 'b DESC,a ASC,c DESC'),
    ])
    def test_add_order_preserves_insertion_order_and_direction(self, keys, expected):
        """
        Test that the first sort key added stays the primary key
        """
        # Arrange
        query = SoQLQuery()

        # Act
        for column, direction in keys:
            query.add_order(column, direction)

        # Assert
        assert query.to_params()['$order'] == expected

    def test_add_order_without_direction_defaults_to_ascending(self):
        """
        Test that omitting the direction sorts ascending
        """
        # Arrange
        query = SoQLQuery()

        # Act
        query.add_order('category')

        # Assert
        assert query.order == [OrderColumn('category', Direction.ASC)]

    def test_clear_order_removes_all_sort_keys(self):
        """
        Test that clearing the order drops the $order parameter
        """
        # Arrange
        query = SoQLQuery()
        query.add_order('a', Direction.ASC)
        query.add_order('b', Direction.DESC)

        # Act
        query.clear_order()

        # Assert
        assert query.order == []
        assert '$order' not in query.to_params()

    def test_clear_order_does_not_mutate_previous_order_list(self):
        """
        Test that a saved reference to the old order list stays intact
        """
        # Arrange
        query = SoQLQuery()
        query.add_order('a', Direction.ASC)
        saved = query.order

        # Act
        query.clear_order()

        # Assert
        assert saved == [OrderColumn('a', Direction.ASC)]


class TestMergeParameters:
    """Test suite for combining filters with query parameters"""

    def test_merge_parameters_combines_filters_and_query(self):
        """
        Test that filters and query parameters end up in one set
        """
        # Arrange
        filters = SimpleFilters({'farm_name': 'Bell Nurseries', 'item': 'Salad/micro greens'})
        query = SoQLQuery(limit=1)

        # Act
        result = merge_parameters(filters, query)

        # Assert
        assert result == {
            'farm_name': 'Bell Nurseries',
            'item': 'Salad/micro greens',
            '$limit': '1'
        }

    def test_merge_parameters_with_colliding_key_keeps_query_value(self):
        """
        Test that a filter named like a SoQL parameter is overwritten by the query
        """
        # Arrange
        filters = SimpleFilters({'$limit': '99', 'city': 'Hartford'})
        query = SoQLQuery(limit=5)

        # Act
        result = merge_parameters(filters, query)

        # Assert
        assert result['$limit'] == '5'
        assert result['city'] == 'Hartford'

    def test_simple_filters_to_params_converts_values_to_strings(self):
        """
        Test that non-string filter values are sent as strings
        """
        # Arrange
        filters = SimpleFilters(year=2020)

        # Act
        result = filters.to_params()

        # Assert
        assert result == {'year': '2020'}
