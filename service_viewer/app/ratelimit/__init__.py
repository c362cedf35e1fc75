"""
Rate limiting package for the Viewer service.

Holds the positional pacer and the token bucket that together keep the
aggregate request rate under the ladder API ceiling.
"""

from .token_bucket import Pacer, TokenBucket

__all__ = ["Pacer", "TokenBucket"]
