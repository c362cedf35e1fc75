"""
Persistence package for the Viewer service: per-channel profile lists.
"""

from .postgres import ChannelConfigStore

__all__ = ["ChannelConfigStore"]
