"""
Viewer caching package.

Provides the Redis gateway that backs the read-through viewer cache and
the codec used for cached batches. Cache reads degrade to a miss instead of
failing a request.
"""

from .cache_gateway import CacheGateway, EMPTY_ENCODING, decode_profiles, encode_profiles

__all__ = ["CacheGateway", "EMPTY_ENCODING", "decode_profiles", "encode_profiles"]
