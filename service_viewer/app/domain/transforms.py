"""
Transforms from decoded upstream responses to viewer models.

Missing data that the viewer cannot do without raises UpstreamFailure so the
whole profile is reported as failed instead of half filled.
"""

from typing import List, Tuple

from shared.errors import UpstreamFailure

from .models import (
    Clan,
    Heading,
    LadderResult,
    MatchRecord,
    Player,
    Portrait,
    Stats,
)
from .ranks import highest_rank, season_win_ratio
from .schemas import (
    LadderResponse,
    MatchHistoryResponse,
    ProfileResponse,
    SeasonSnapshot,
)

CUSTOM_GAME_MODE = "Custom"


def build_heading(profile_data: ProfileResponse, region_name: str) -> Heading:
    summary = profile_data.summary
    career = profile_data.career

    frame = highest_rank(
        career.current_1v1_league_name if career else None,
        career.current_best_team_league_name if career else None,
    )

    return Heading(
        portrait=Portrait(url=summary.portrait, frame=frame),
        player=Player(
            clan=Clan(name=summary.clan_name, tag=summary.clan_tag),
            name=summary.display_name,
            server=region_name,
        ),
    )


def build_stats(profile_data: ProfileResponse) -> Stats:
    snapshot = profile_data.snapshot or SeasonSnapshot()
    career = profile_data.career

    best_solo = career.best_1v1_finish if career else None
    best_team = career.best_team_finish if career else None

    return Stats(
        total_career_games=(career.total_career_games if career else None) or 0,
        total_ranked_games_this_season=snapshot.total_ranked_season_games_played or 0,
        season_win_ratio=season_win_ratio(
            snapshot.season_snapshot,
            snapshot.total_ranked_season_games_played,
        ),
        highest_solo_rank=((best_solo.league_name if best_solo else None) or "").lower(),
        highest_team_rank=((best_team.league_name if best_team else None) or "").lower(),
    )


def build_history(match_history: MatchHistoryResponse) -> List[MatchRecord]:
    """Drop custom games and normalize the rest (date in ms, lower-case result)."""
    records = []
    for match in match_history.matches:
        if match.type == CUSTOM_GAME_MODE:
            continue
        if match.decision is None or match.date is None:
            raise UpstreamFailure(
                "get_legacy_match_history",
                "match entry without decision or date",
                details={"map": match.map, "type": match.type},
            )
        records.append(MatchRecord(
            map_name=match.map,
            mode=match.type,
            result=match.decision.lower(),
            date_epoch_millis=match.date * 1000,
        ))
    return records


def parse_game_mode(localized_game_mode: str) -> Tuple[str, str]:
    """Split "2v2 Random Gold" style labels into ("2v2", "gold")."""
    words = localized_game_mode.split()
    if len(words) < 2:
        raise UpstreamFailure("get_ladder", f"unrecognized game mode {localized_game_mode!r}")

    mode = words[0].lower()
    league = words[1].lower()
    if league == "random":
        if len(words) < 3:
            raise UpstreamFailure("get_ladder", f"unrecognized game mode {localized_game_mode!r}")
        league = words[2].lower()
    return mode, league


def build_ladder_result(ladder: LadderResponse, profile_id: int) -> LadderResult:
    """Pick the team the profile plays in and describe its standing.

    When several teams list the same member the first one wins.
    """
    mode, rank_name = parse_game_mode(ladder.current_ladder_membership.localized_game_mode)

    if not ladder.ranks_and_pools:
        raise UpstreamFailure("get_ladder", "ladder without ranks and pools")
    standing = ladder.ranks_and_pools[0]

    for team in ladder.ladder_teams:
        member = next((m for m in team.team_members if m.id == profile_id), None)
        if member is None:
            continue
        return LadderResult(
            mode=mode,
            rank_name=rank_name,
            wins=team.wins,
            losses=team.losses,
            race=member.favorite_race,
            mmr=standing.mmr,
            division_rank=standing.rank,
            team_member_names=[m.display_name for m in team.team_members],
        )

    raise UpstreamFailure(
        "get_ladder",
        "profile is not a member of any ladder team",
        details={"profile_id": profile_id},
    )
