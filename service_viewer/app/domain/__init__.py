"""
Viewer domain: output models, upstream decode schemas and the pure
transforms between them.
"""

from .models import (
    AssemblyFailure,
    ChannelConfigRequest,
    LadderResult,
    MatchRecord,
    PlayerProfile,
    ProfileResult,
    RankTier,
    ViewerPayload,
    ViewerRequest,
)
from .ranks import highest_rank, season_win_ratio

__all__ = [
    "AssemblyFailure",
    "ChannelConfigRequest",
    "LadderResult",
    "MatchRecord",
    "PlayerProfile",
    "ProfileResult",
    "RankTier",
    "ViewerPayload",
    "ViewerRequest",
    "highest_rank",
    "season_win_ratio",
]
