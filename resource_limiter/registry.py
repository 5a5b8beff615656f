"""
Resource Limit Registry

Holds one ResourceLimitConfig per rate-limited resource. The registry is
filled once at startup, then frozen; lookups after that need no locking.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import redis

from .config import DEFAULT_IDENTIFIER_KEY
from .errors import ConfigurationError
from .store import CounterStore, RedisCounterStore

logger = logging.getLogger(__name__)

_ATTACHMENT_OPTIONS = {'threshold', 'interval', 'redis_client', 'on'}


def _positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


@dataclass(frozen=True)
class ResourceLimitConfig:
    """
    Limit attached to one resource.

    Attributes:
        resource_name: Name the host uses for the resource (e.g. a field name)
        threshold: Attempts allowed per window, inclusive
        window_seconds: Length of the window
        identifier_key: Request context key holding the identifier
        store: Counter store used instead of the coordinator's default
    """

    resource_name: str
    threshold: int
    window_seconds: int
    identifier_key: str = DEFAULT_IDENTIFIER_KEY
    store: Optional[CounterStore] = None

    def __post_init__(self):
        if not self.resource_name or ':' in self.resource_name:
            raise ConfigurationError(f"Invalid resource name: {self.resource_name!r}")
        if not self.identifier_key or ':' in self.identifier_key:
            raise ConfigurationError(
                f"Invalid identifier key {self.identifier_key!r} for {self.resource_name}"
            )
        if not _positive_int(self.threshold):
            raise ConfigurationError(
                f"threshold must be a positive integer for {self.resource_name}, got {self.threshold!r}"
            )
        if not _positive_int(self.window_seconds):
            raise ConfigurationError(
                f"interval must be a positive integer for {self.resource_name}, got {self.window_seconds!r}"
            )

    @property
    def key_suffix(self) -> str:
        """Part of the counter key that identifies this limit within a scope."""
        if self.identifier_key == DEFAULT_IDENTIFIER_KEY:
            return self.resource_name
        return f"{self.resource_name}-{self.identifier_key}"


def limit(resource_name: str, threshold: int, interval: int,
          redis_client: Union[redis.Redis, CounterStore, None] = None,
          on: Optional[str] = None) -> ResourceLimitConfig:
    """
    Build a config from the declarative attachment options.

    Args:
        resource_name: Resource the limit is attached to
        threshold: Attempts allowed per interval
        interval: Window length in seconds
        redis_client: Alternate Redis client (or counter store) for this resource
        on: Context key to identify callers by; defaults to 'ip'
    """
    store = redis_client
    if isinstance(redis_client, redis.Redis):
        store = RedisCounterStore(redis_client)
    elif redis_client is not None and not isinstance(redis_client, CounterStore):
        raise ConfigurationError(
            f"redis_client for {resource_name} must be a redis.Redis or CounterStore"
        )
    return ResourceLimitConfig(
        resource_name=resource_name,
        threshold=threshold,
        window_seconds=interval,
        identifier_key=on if on is not None else DEFAULT_IDENTIFIER_KEY,
        store=store,
    )


class ResourceLimitRegistry:
    """
    Maps resource names to their limits.

    The registry is frozen once built from configs. Pass freeze=False to
    register limits one by one, then call freeze() before serving requests.
    """

    def __init__(self, configs: Iterable[ResourceLimitConfig] = (), freeze: bool = True):
        self._configs: Dict[str, ResourceLimitConfig] = {}
        self._suffixes: Dict[str, str] = {}
        self._frozen = False
        for config in configs:
            self.register(config.resource_name, config)
        if freeze:
            self.freeze()

    @classmethod
    def from_mapping(cls, limits: Mapping[str, Mapping[str, Any]], freeze: bool = True) -> 'ResourceLimitRegistry':
        """
        Build a registry from {resource_name: {threshold, interval, redis_client, on}}.

        Example:
            ResourceLimitRegistry.from_mapping({
                'expensiveField': {'threshold': 5, 'interval': 15},
                'fieldWithOnOption': {'threshold': 10, 'interval': 15, 'on': 'client_id'},
            })
        """
        registry = cls(freeze=False)
        for resource_name, options in limits.items():
            registry.register(resource_name, options)
        if freeze:
            registry.freeze()
        return registry

    def register(self, resource_name: str,
                 config: Union[ResourceLimitConfig, Mapping[str, Any]]) -> ResourceLimitConfig:
        """
        Attach a limit to resource_name.

        Registering an equal config twice is a no-op. A different config for
        an already registered resource is rejected, as is any registration
        after freeze().

        Raises:
            ConfigurationError: On conflicting, colliding, invalid or late registration
        """
        if self._frozen:
            raise ConfigurationError(f"Registry is frozen; cannot register {resource_name}")

        if isinstance(config, Mapping):
            unknown = set(config) - _ATTACHMENT_OPTIONS
            if unknown:
                raise ConfigurationError(
                    f"Unknown rate limit options for {resource_name}: {', '.join(sorted(unknown))}"
                )
            missing = {'threshold', 'interval'} - set(config)
            if missing:
                raise ConfigurationError(
                    f"Missing rate limit options for {resource_name}: {', '.join(sorted(missing))}"
                )
            config = limit(resource_name, **config)
        elif config.resource_name != resource_name:
            raise ConfigurationError(
                f"Config for {config.resource_name} registered under {resource_name}"
            )

        existing = self._configs.get(resource_name)
        if existing is not None:
            if existing == config:
                return existing
            raise ConfigurationError(f"Conflicting rate limit for {resource_name}")

        # Two limits must never share a counter key
        owner = self._suffixes.get(config.key_suffix)
        if owner is not None:
            raise ConfigurationError(
                f"Rate limit for {resource_name} would share counter keys with {owner}"
            )

        self._configs[resource_name] = config
        self._suffixes[config.key_suffix] = resource_name
        logger.debug(
            "rate_limit.registered",
            extra={
                "resource": resource_name,
                "threshold": config.threshold,
                "window_s": config.window_seconds,
                "identifier_key": config.identifier_key,
            },
        )
        return config

    def lookup(self, resource_name: str) -> ResourceLimitConfig:
        """
        Return the limit for resource_name.

        Raises:
            ConfigurationError: If the resource has no registered limit
        """
        try:
            return self._configs[resource_name]
        except KeyError:
            raise ConfigurationError(f"No rate limit registered for {resource_name}") from None

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def names(self) -> List[str]:
        return list(self._configs)

    def __contains__(self, resource_name: object) -> bool:
        return resource_name in self._configs

    def __len__(self) -> int:
        return len(self._configs)
