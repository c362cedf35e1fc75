"""
Decode schemas for StarCraft II community API responses.

Only the fields the viewer reads are declared; everything else in the
upstream bodies is ignored. Validation happens once, at the client boundary.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class UpstreamModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ProfileSummary(UpstreamModel):
    display_name: str = Field(..., alias="displayName")
    portrait: Optional[str] = None
    clan_name: Optional[str] = Field(None, alias="clanName")
    clan_tag: Optional[str] = Field(None, alias="clanTag")


class ModeSnapshot(UpstreamModel):
    rank: Optional[int] = None
    league_name: Optional[str] = Field(None, alias="leagueName")
    total_games: Optional[int] = Field(None, alias="totalGames")
    total_wins: Optional[int] = Field(None, alias="totalWins")


class SeasonSnapshot(UpstreamModel):
    season_snapshot: Dict[str, ModeSnapshot] = Field(default_factory=dict, alias="seasonSnapshot")
    total_ranked_season_games_played: Optional[int] = Field(None, alias="totalRankedSeasonGamesPlayed")


class LeagueFinish(UpstreamModel):
    league_name: Optional[str] = Field(None, alias="leagueName")
    times_achieved: Optional[int] = Field(None, alias="timesAchieved")


class Career(UpstreamModel):
    total_career_games: Optional[int] = Field(None, alias="totalCareerGames")
    total_games_this_season: Optional[int] = Field(None, alias="totalGamesThisSeason")
    current_1v1_league_name: Optional[str] = Field(None, alias="current1v1LeagueName")
    current_best_team_league_name: Optional[str] = Field(None, alias="currentBestTeamLeagueName")
    best_1v1_finish: Optional[LeagueFinish] = Field(None, alias="best1v1Finish")
    best_team_finish: Optional[LeagueFinish] = Field(None, alias="bestTeamFinish")


class ProfileResponse(UpstreamModel):
    """GET /sc2/profile/{regionId}/{realmId}/{profileId}"""

    summary: ProfileSummary
    snapshot: Optional[SeasonSnapshot] = None
    career: Optional[Career] = None


class LegacyMatch(UpstreamModel):
    map: Optional[str] = None
    type: str
    decision: Optional[str] = None
    speed: Optional[str] = None
    date: Optional[int] = None


class MatchHistoryResponse(UpstreamModel):
    """GET /sc2/legacy/profile/{regionId}/{realmId}/{profileId}/matches"""

    matches: List[LegacyMatch] = Field(default_factory=list)


class LadderMembership(UpstreamModel):
    ladder_id: int = Field(..., alias="ladderId")
    localized_game_mode: Optional[str] = Field(None, alias="localizedGameMode")
    rank: Optional[int] = None


class LadderSummaryResponse(UpstreamModel):
    """GET /sc2/profile/{regionId}/{realmId}/{profileId}/ladder/summary"""

    all_ladder_memberships: List[LadderMembership] = Field(default_factory=list, alias="allLadderMemberships")


class TeamMember(UpstreamModel):
    id: int
    display_name: str = Field(..., alias="displayName")
    favorite_race: Optional[str] = Field(None, alias="favoriteRace")
    clan_tag: Optional[str] = Field(None, alias="clanTag")


class LadderTeam(UpstreamModel):
    team_members: List[TeamMember] = Field(default_factory=list, alias="teamMembers")
    wins: int = 0
    losses: int = 0
    points: Optional[int] = None
    mmr: Optional[int] = None


class RankAndPool(UpstreamModel):
    rank: Optional[int] = None
    mmr: Optional[int] = None
    bonus_pool: Optional[int] = Field(None, alias="bonusPool")


class CurrentLadderMembership(UpstreamModel):
    ladder_id: Optional[int] = Field(None, alias="ladderId")
    localized_game_mode: str = Field(..., alias="localizedGameMode")


class LadderResponse(UpstreamModel):
    """GET /sc2/profile/{regionId}/{realmId}/{profileId}/ladder/{ladderId}"""

    ladder_teams: List[LadderTeam] = Field(default_factory=list, alias="ladderTeams")
    ranks_and_pools: List[RankAndPool] = Field(default_factory=list, alias="ranksAndPools")
    current_ladder_membership: CurrentLadderMembership = Field(..., alias="currentLadderMembership")
