"""Rate limiting adapters.

Start with the per-process sliding window limiter; a shared store can be
plugged in later behind the same interface without touching the API layer.
"""

from discovery_core.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from discovery_core.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemorySlidingWindowRateLimiter",
    "RateLimitResult",
]
