"""
Adapters package for the Viewer Service.

Contains the HTTP client wrapper for the Battle.net community API. The
adapter encapsulates:

- Hosts per region, OAuth token handling and request shapes
- Retry policies and circuit breakers
- Validation of response bodies into decode schemas, with failures
  mapped to shared errors
"""

from .sc2_client import Sc2CommunityClient, UpstreamClient

__all__ = [
    "Sc2CommunityClient",
    "UpstreamClient",
]
