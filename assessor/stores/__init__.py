"""Injectable cache and rate limiter capabilities."""

from .cache import Cache, MemoryCache
from .rate_limit import RateLimiter, SlidingWindowRateLimiter

__all__ = ["Cache", "MemoryCache", "RateLimiter", "SlidingWindowRateLimiter"]
