"""
Counter Key Builder

Keys look like ``ratelimit:{identifier}:{scope}-{resource}[-{identifier_key}]``.
Limits keyed on the default "ip" context value keep the short shape so that
existing counters stay valid.
"""

from typing import Any

from .config import DEFAULT_IDENTIFIER_KEY

KEY_PREFIX = 'ratelimit'


def build_key(scope: str, resource_name: str, identifier: Any,
              identifier_key: str = DEFAULT_IDENTIFIER_KEY) -> str:
    """
    Build the counter key for one (resource, identifier) pair.

    Args:
        scope: Namespace of the caller, e.g. 'graphql-query'
        resource_name: Name of the rate-limited resource
        identifier: Value read from the request context (IP, client ID, ...)
        identifier_key: Context key the identifier was read from

    Returns:
        The key under which the attempt is counted
    """
    key = f"{KEY_PREFIX}:{identifier}:{scope}-{resource_name}"
    if identifier_key != DEFAULT_IDENTIFIER_KEY:
        key = f"{key}-{identifier_key}"
    return key


def key_pattern(prefix: str = KEY_PREFIX) -> str:
    """Match pattern covering every counter key, for SCAN based cleanup."""
    return f"{prefix}:*"
