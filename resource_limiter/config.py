import os
import secrets
import logging
import redis
from dotenv import load_dotenv
load_dotenv()

"""
Resource Limiter Configuration

Connection settings for the shared counter store and the defaults used when
a resource limit does not say otherwise.
"""

# Context key read when a resource limit does not name one
DEFAULT_IDENTIFIER_KEY = 'ip'

# Namespace segment of every counter key, e.g. ratelimit:1.2.3.4:graphql-query-field
DEFAULT_SCOPE = os.getenv('RATELIMIT_SCOPE', 'graphql-query')

REDIS_HOST = os.getenv('REDIS_HOST', 'localhost')
REDIS_PORT = int(os.getenv('REDIS_PORT', '6379'))
REDIS_DB = int(os.getenv('REDIS_DB', '0'))
REDIS_PASSWORD = os.getenv('REDIS_PASSWORD')
REDIS_SSL = os.getenv('REDIS_SSL', 'false').lower() in ('1', 'true', 'yes')
REDIS_SOCKET_TIMEOUT = float(os.getenv('REDIS_SOCKET_TIMEOUT', '1.0'))

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

# Key for the HMAC that turns identifiers into log correlation ids.
# Without it ids are only stable within one process.
LOG_HASH_SECRET = os.getenv('RATELIMIT_LOG_SECRET') or secrets.token_hex(16)


def get_redis_client() -> redis.Redis:
    """
    Build a Redis client from the environment settings.

    The socket timeout bounds every store round-trip, so a slow or
    unreachable server surfaces as an error instead of blocking the caller.
    """
    return redis.Redis(
        host=REDIS_HOST,
        port=REDIS_PORT,
        db=REDIS_DB,
        password=REDIS_PASSWORD,
        ssl=REDIS_SSL,
        socket_timeout=REDIS_SOCKET_TIMEOUT,
        socket_connect_timeout=REDIS_SOCKET_TIMEOUT,
        decode_responses=False,
    )


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Set up a plain root handler for scripts and examples."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s %(message)s',
    )
