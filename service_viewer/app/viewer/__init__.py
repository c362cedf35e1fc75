"""
Viewer read-through service package.
"""

from .service import ViewerService, viewer_cache_key

__all__ = ["ViewerService", "viewer_cache_key"]
