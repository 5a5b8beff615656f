"""
Fixed Window Counter

Every attempt increments the counter for its key; the attempt is allowed
while the count stays at or below the threshold. All attempts made before
the key expires share one bucket, so a burst straddling a window boundary
can let through up to twice the threshold.
"""

from dataclasses import dataclass

from .store import CounterStore


@dataclass(frozen=True)
class LimitDecision:
    allowed: bool
    count: int


def check_and_record(store: CounterStore, key: str, threshold: int, window_seconds: int) -> LimitDecision:
    """
    Record one attempt against key and decide whether it may proceed.

    Args:
        store: Counter store holding the key
        key: Counter key built by build_key()
        threshold: Maximum attempts allowed per window (inclusive)
        window_seconds: Window length, used as the TTL of a new key

    Returns:
        LimitDecision with the decision and the count after this attempt

    Raises:
        StoreUnavailable: Propagated from the store; no retry is attempted
    """
    count = store.incr_and_get(key, window_seconds)
    return LimitDecision(allowed=count <= threshold, count=count)
