"""
Viewer data models.

Output models serialize with the camelCase keys the viewer frontend reads;
Python attributes stay snake_case.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RankTier(IntEnum):
    """Ladder leagues in ascending order."""
    BRONZE = 0
    SILVER = 1
    GOLD = 2
    PLATINUM = 3
    DIAMOND = 4
    MASTER = 5
    GRANDMASTER = 6

    @classmethod
    def index_of(cls, label: Optional[str]) -> int:
        """Position of a league label, -1 when absent or unknown."""
        if not label:
            return -1
        try:
            return cls[label.strip().upper()].value
        except KeyError:
            return -1


class PlayerProfile(BaseModel):
    """External identity of a player on the ladder service."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    region_id: int = Field(..., alias="regionId")
    realm_id: int = Field(..., alias="realmId")
    profile_id: int = Field(..., alias="profileId")

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class LadderResult(WireModel):
    mode: str
    rank_name: str = Field(..., alias="rank")
    wins: int
    losses: int
    race: Optional[str] = None
    mmr: Optional[int] = None
    division_rank: Optional[int] = Field(None, alias="divisionRank")
    team_member_names: List[str] = Field(default_factory=list, alias="teamMembers")


class MatchRecord(WireModel):
    map_name: Optional[str] = Field(None, alias="mapName")
    mode: str
    result: str
    date_epoch_millis: int = Field(..., alias="date")


class Portrait(WireModel):
    url: Optional[str] = None
    frame: str = ""


class Clan(WireModel):
    name: Optional[str] = None
    tag: Optional[str] = None


class Player(WireModel):
    clan: Clan
    name: str
    server: str


class Heading(WireModel):
    portrait: Portrait
    player: Player


class Stats(WireModel):
    total_career_games: int = Field(0, alias="totalCareerGames")
    total_ranked_games_this_season: int = Field(0, alias="totalRankedGamesThisSeason")
    season_win_ratio: int = Field(0, alias="seasonWinRatio")
    highest_solo_rank: str = Field("", alias="highestSoloRank")
    highest_team_rank: str = Field("", alias="highestTeamRank")


class Details(WireModel):
    snapshot: List[LadderResult]
    stats: Stats
    history: List[MatchRecord]


class ViewerPayload(WireModel):
    """Everything the viewer shows for one profile."""

    heading: Heading
    details: Details


@dataclass(frozen=True)
class AssemblyFailure:
    """Marks the slot of a profile whose assembly failed."""

    reason: str
    profile: Optional[PlayerProfile] = None
    code: str = "UPSTREAM_FAILURE"

    def to_wire(self) -> Dict[str, Any]:
        return {"error": {"code": self.code, "message": self.reason}}


ProfileResult = Union[ViewerPayload, AssemblyFailure]


class ViewerRequest(BaseModel):
    """Inbound request for a channel's viewer data."""

    model_config = ConfigDict(populate_by_name=True)

    channel_id: str = Field(..., alias="channelId", min_length=1)
    profiles: List[PlayerProfile] = Field(default_factory=list)
    refresh: bool = False

    @field_validator("channel_id", mode="before")
    @classmethod
    def _stringify_channel_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


class ChannelConfigRequest(BaseModel):
    """Inbound request saving a channel's profile list."""

    model_config = ConfigDict(populate_by_name=True)

    channel_id: str = Field(..., alias="channelId", min_length=1)
    profiles: List[PlayerProfile] = Field(default_factory=list)

    @field_validator("channel_id", mode="before")
    @classmethod
    def _stringify_channel_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value
