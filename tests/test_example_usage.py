"""
Tests for the example host
"""

from unittest.mock import Mock

import pytest

from example_usage import REGISTRY, execute_query
from resource_limiter import EvaluationCoordinator, MissingIdentifier, PartialStoreFailure, StoreUnavailable


def _down_store():
    store = Mock()
    store.incr_and_get.side_effect = StoreUnavailable('ratelimit:k', 'Connection refused')
    return store


class TestExecuteQuery:
    """Test suite for execute_query"""

    def test_rejects_after_threshold(self, store):
        coordinator = EvaluationCoordinator(REGISTRY, store)
        context = {'ip': '99.99.99.99'}

        for i in range(5):
            result = execute_query(coordinator, ['expensiveField', 'inexpensiveField'], context)
            assert 'errors' not in result, f"Request {i+1} should be allowed"

        result = execute_query(coordinator, ['expensiveField', 'inexpensiveField'], context)
        assert result == {
            'data': None,
            'errors': [{'message': 'Query rate limit exceeded', 'path': ['expensiveField']}],
        }

    def test_missing_identifier_counts_nothing(self, store):
        """
        fieldWithOnOption lacks client_id, so expensiveField must not be counted either.
        """
        coordinator = EvaluationCoordinator(REGISTRY, store)

        with pytest.raises(MissingIdentifier):
            execute_query(coordinator, ['expensiveField', 'fieldWithOnOption'], {'ip': '1.1.1.1'})
        assert store.keys() == []

    def test_fail_open_field_passes_when_store_is_down(self):
        coordinator = EvaluationCoordinator(REGISTRY, _down_store())

        result = execute_query(coordinator, ['expensiveField2'], {'ip': '1.1.1.1'})
        assert result == {'data': {'expensiveField2': 'result'}}

    def test_fail_closed_field_fails_when_store_is_down(self):
        coordinator = EvaluationCoordinator(REGISTRY, _down_store())

        with pytest.raises(PartialStoreFailure):
            execute_query(coordinator, ['expensiveField', 'expensiveField2'], {'ip': '1.1.1.1'})
