"""
Rate Limiter Errors

Every failure raised by the limiter derives from RateLimitError. A request
that exceeds its limit is not an error: it is reported as a denied outcome.
"""


class RateLimitError(Exception):
    """Base class for limiter failures."""


class ConfigurationError(RateLimitError):
    """A resource is unregistered, misconfigured, or registered twice with different limits."""


class MissingIdentifier(RateLimitError):
    """The request context lacks the key a resource limit is keyed on."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Missing :{key} key on the GraphQL context")


class StoreUnavailable(RateLimitError):
    """The counter store could not be reached or timed out."""

    def __init__(self, key: str, reason: str = ''):
        self.key = key
        self.reason = reason
        message = f"Counter store unavailable for {key}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class PartialStoreFailure(StoreUnavailable):
    """
    Some resources of a request could not be counted.

    Raised only after every resource of the request was attempted.

    Attributes:
        failures: resource name -> StoreUnavailable, in request order
        outcomes: outcomes of the resources that were counted, in request order
    """

    def __init__(self, failures, outcomes):
        self.failures = failures
        self.outcomes = outcomes
        first = next(iter(failures.values()))
        super().__init__(first.key, f"{len(failures)} resource(s) not counted: {', '.join(failures)}")
