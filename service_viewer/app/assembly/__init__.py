"""
Assembly package for the Viewer service.

ProfileAssembler builds one profile's payload from the ladder API;
BatchAggregator runs it for every profile of a channel concurrently.
"""

from .batch_aggregator import BatchAggregator
from .profile_assembler import ProfileAssembler

__all__ = ["BatchAggregator", "ProfileAssembler"]
