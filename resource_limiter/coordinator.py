"""
Evaluation Coordinator

Called by the host once per rate-limited resource a request touches. Each
evaluation is independent: a denied resource never stops the others from
being evaluated, and nothing is shared between evaluations except the store.
"""

import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .config import DEFAULT_SCOPE, LOG_HASH_SECRET
from .errors import MissingIdentifier, PartialStoreFailure, StoreUnavailable
from .keys import build_key
from .limiter import check_and_record
from .registry import ResourceLimitConfig, ResourceLimitRegistry
from .store import CounterStore, RedisCounterStore

logger = logging.getLogger(__name__)

RATE_LIMIT_EXCEEDED_MESSAGE = 'Query rate limit exceeded'


@dataclass(frozen=True)
class EvaluationOutcome:
    resource_name: str
    allowed: bool
    count: int
    threshold: int
    window_seconds: int


def _correlation_id(identifier: Any) -> str:
    """Keyed hash of the identifier, so logs can be correlated without exposing it."""
    return hmac.new(LOG_HASH_SECRET.encode(), str(identifier).encode(), hashlib.sha256).hexdigest()[:16]


class EvaluationCoordinator:
    """
    Resolves the limit for a resource, reads the identifier from the request
    context and records the attempt.

    Args:
        registry: Limits per resource
        store: Default counter store; a RedisCounterStore built from the
            environment when omitted
        scope: Namespace segment of the counter keys
    """

    def __init__(self, registry: ResourceLimitRegistry, store: Optional[CounterStore] = None,
                 scope: str = DEFAULT_SCOPE):
        self.registry = registry
        self.store = store if store is not None else RedisCounterStore()
        self.scope = scope

    def _identifier(self, context: Mapping[str, Any], config: ResourceLimitConfig) -> Any:
        identifier = context.get(config.identifier_key)
        if identifier is None:
            logger.warning(
                "rate_limit.missing_identifier",
                extra={"resource": config.resource_name, "identifier_key": config.identifier_key},
            )
            raise MissingIdentifier(config.identifier_key)
        return identifier

    def record(self, config: ResourceLimitConfig, identifier: Any) -> EvaluationOutcome:
        """
        Count one attempt for an already resolved (config, identifier) pair.

        Raises:
            StoreUnavailable: the counter store could not be reached
        """
        key = build_key(self.scope, config.resource_name, identifier, config.identifier_key)
        store = config.store if config.store is not None else self.store
        decision = check_and_record(store, key, config.threshold, config.window_seconds)

        log_extra = {
            "resource": config.resource_name,
            "identifier_key": config.identifier_key,
            "identifier_id": _correlation_id(identifier),
            "count": decision.count,
            "limit": config.threshold,
            "window_s": config.window_seconds,
        }
        if decision.allowed:
            logger.debug("rate_limit.allowed", extra=log_extra)
        else:
            logger.warning("rate_limit.exceeded", extra=log_extra)

        return EvaluationOutcome(
            resource_name=config.resource_name,
            allowed=decision.allowed,
            count=decision.count,
            threshold=config.threshold,
            window_seconds=config.window_seconds,
        )

    def evaluate(self, context: Mapping[str, Any], resource_name: str) -> EvaluationOutcome:
        """
        Record one access to resource_name and report whether it is allowed.

        Raises:
            ConfigurationError: resource_name has no registered limit
            MissingIdentifier: context lacks the configured identifier key
            StoreUnavailable: the counter store could not be reached
        """
        config = self.registry.lookup(resource_name)
        identifier = self._identifier(context, config)
        return self.record(config, identifier)

    def resolve(self, context: Mapping[str, Any],
                resource_names: Iterable[str]) -> List[Tuple[ResourceLimitConfig, Any]]:
        """
        Pair every rate-limited resource of a request with its identifier.

        Touches no counter. Resources without a registered limit are skipped.

        Raises:
            MissingIdentifier: context lacks the identifier key of any resource
        """
        pending = []
        for resource_name in resource_names:
            if resource_name not in self.registry:
                continue
            config = self.registry.lookup(resource_name)
            pending.append((config, self._identifier(context, config)))
        return pending

    def evaluate_request(self, context: Mapping[str, Any],
                         resource_names: Iterable[str]) -> List[EvaluationOutcome]:
        """
        Evaluate every rate-limited resource a request accesses, in order.

        All identifiers are resolved before the first counter is touched, so a
        missing identifier fails the whole request without recording anything.
        A store failure on one resource does not stop the others: every
        resource is attempted, then PartialStoreFailure reports the failed ones
        along with the outcomes of the rest.
        """
        outcomes = []
        failures: Dict[str, StoreUnavailable] = {}
        for config, identifier in self.resolve(context, resource_names):
            try:
                outcomes.append(self.record(config, identifier))
            except StoreUnavailable as e:
                failures[config.resource_name] = e

        if failures:
            raise PartialStoreFailure(failures, outcomes)
        return outcomes


def rejections(outcomes: Iterable[EvaluationOutcome]) -> List[Dict[str, Any]]:
    """
    Errors for the denied outcomes, in request order.

    The host adds 'locations' from its own view of the request.
    """
    return [
        {'message': RATE_LIMIT_EXCEEDED_MESSAGE, 'path': [outcome.resource_name]}
        for outcome in outcomes
        if not outcome.allowed
    ]
