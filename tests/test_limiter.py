"""
Tests for the fixed window counter
"""

from unittest.mock import Mock

import pytest

from resource_limiter.errors import StoreUnavailable
from resource_limiter.limiter import LimitDecision, check_and_record


class TestCheckAndRecord:
    """Test suite for check_and_record"""

    def test_threshold_is_inclusive(self, store):
        """
        First 5 attempts are allowed, the 6th is denied.
        """
        for i in range(5):
            decision = check_and_record(store, 'ratelimit:k', 5, 15)
            assert decision == LimitDecision(allowed=True, count=i + 1), f"Attempt {i+1} should be allowed"

        decision = check_and_record(store, 'ratelimit:k', 5, 15)
        assert decision == LimitDecision(allowed=False, count=6)

    def test_denied_attempts_still_count(self, store):
        for _ in range(7):
            decision = check_and_record(store, 'ratelimit:k', 1, 15)
        assert decision.count == 7
        assert decision.allowed is False

    def test_counter_resets_after_window(self, store, clock):
        for _ in range(6):
            check_and_record(store, 'ratelimit:k', 5, 15)

        clock.advance(15)

        for i in range(5):
            decision = check_and_record(store, 'ratelimit:k', 5, 15)
            assert decision.allowed is True, f"Attempt {i+1} after reset should be allowed"

    def test_boundary_burst_is_allowed(self, store, clock):
        """
        Fixed window: a full window's worth at the end of one window and another
        at the start of the next all go through.
        """
        check_and_record(store, 'ratelimit:k', 5, 15)
        clock.advance(14)
        results = [check_and_record(store, 'ratelimit:k', 5, 15).allowed for _ in range(4)]
        clock.advance(1)
        results += [check_and_record(store, 'ratelimit:k', 5, 15).allowed for _ in range(5)]

        assert all(results)

    def test_store_unavailable_propagates(self):
        store = Mock()
        store.incr_and_get.side_effect = StoreUnavailable('ratelimit:k', 'Connection refused')

        with pytest.raises(StoreUnavailable):
            check_and_record(store, 'ratelimit:k', 5, 15)
        store.incr_and_get.assert_called_once_with('ratelimit:k', 15)
