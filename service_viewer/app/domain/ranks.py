"""
League comparison and season ratio helpers.
"""

import math
from typing import Mapping, Optional

from .models import RankTier
from .schemas import ModeSnapshot


def highest_rank(solo_rank: Optional[str], team_rank: Optional[str]) -> str:
    """Return the higher of the two league labels, lower-cased.

    The team label only wins when its tier is strictly higher; otherwise the
    solo label is used when present, then the team label, then "".
    """
    if RankTier.index_of(team_rank) > RankTier.index_of(solo_rank):
        return team_rank.lower()
    if solo_rank:
        return solo_rank.lower()
    if team_rank:
        return team_rank.lower()
    return ""


def total_season_wins(season_snapshot: Mapping[str, ModeSnapshot]) -> int:
    return sum(mode.total_wins or 0 for mode in season_snapshot.values())


def season_win_ratio(season_snapshot: Mapping[str, ModeSnapshot], total_games: Optional[int]) -> int:
    """Percentage of ranked games won this season, rounded half up."""
    if not total_games:
        return 0
    wins = total_season_wins(season_snapshot)
    return int(math.floor(wins * 100 / total_games + 0.5))
