"""
Example Usage of Resource Limiter

Shows how a query-executing host would use the limiter: every rate-limited
field of a query evaluated together, rejections reported per field, and the
host's own policy for a counter store that is down.
"""

import logging

from resource_limiter import (
    EvaluationCoordinator,
    MemoryCounterStore,
    ResourceLimitRegistry,
    PartialStoreFailure,
    rejections,
)
from resource_limiter.config import configure_logging

logger = logging.getLogger(__name__)

REGISTRY = ResourceLimitRegistry.from_mapping({
    'expensiveField': {'threshold': 5, 'interval': 15},
    'expensiveField2': {'threshold': 10, 'interval': 15},
    'fieldWithOnOption': {'threshold': 10, 'interval': 15, 'on': 'client_id'},
})

# What to do with a field when Redis is unreachable: 'fail-open' | 'fail-closed'
FAILURE_BEHAVIOR = {
    'expensiveField': 'fail-closed',
    'expensiveField2': 'fail-open',
}


def execute_query(coordinator: EvaluationCoordinator, fields: list, context: dict) -> dict:
    """
    Example: resolve a flat query of fields, rate limiting the ones that have a limit
    """
    # MissingIdentifier propagates before any counter is touched: the whole request fails
    try:
        outcomes = coordinator.evaluate_request(context, fields)
    except PartialStoreFailure as e:
        for field in e.failures:
            if FAILURE_BEHAVIOR.get(field, 'fail-open') == 'fail-closed':
                raise
            logger.warning("store down, letting %s through", field)
        outcomes = e.outcomes

    errors = rejections(outcomes)
    if errors:
        return {'data': None, 'errors': errors}
    return {'data': {field: 'result' for field in fields}}


if __name__ == '__main__':
    configure_logging()
    coordinator = EvaluationCoordinator(REGISTRY, MemoryCounterStore())
    context = {'ip': '99.99.99.99'}

    for attempt in range(1, 8):
        print(attempt, execute_query(coordinator, ['expensiveField', 'inexpensiveField'], context))

    # Request 6 and 7 → {'data': None, 'errors': [{'message': 'Query rate limit exceeded', 'path': ['expensiveField']}]}
