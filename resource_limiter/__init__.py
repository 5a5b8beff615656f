"""
Resource Limiter

Per-identifier, per-resource rate limiting on top of a shared Redis counter,
using a fixed window counter.
"""

from .coordinator import EvaluationCoordinator, EvaluationOutcome, rejections
from .errors import (
    ConfigurationError,
    MissingIdentifier,
    PartialStoreFailure,
    RateLimitError,
    StoreUnavailable,
)
from .keys import build_key
from .limiter import LimitDecision, check_and_record
from .registry import ResourceLimitConfig, ResourceLimitRegistry, limit
from .store import CounterStore, MemoryCounterStore, RedisCounterStore

__all__ = [
    'EvaluationCoordinator',
    'EvaluationOutcome',
    'rejections',
    'ConfigurationError',
    'MissingIdentifier',
    'PartialStoreFailure',
    'RateLimitError',
    'StoreUnavailable',
    'build_key',
    'LimitDecision',
    'check_and_record',
    'ResourceLimitConfig',
    'ResourceLimitRegistry',
    'limit',
    'CounterStore',
    'MemoryCounterStore',
    'RedisCounterStore',
]
