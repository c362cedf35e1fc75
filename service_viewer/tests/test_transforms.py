"""
Unit tests for upstream-to-viewer transforms.
"""

import pytest

from service_viewer.app.domain.schemas import LadderResponse, MatchHistoryResponse, ProfileResponse
from service_viewer.app.domain.transforms import (
    build_heading,
    build_history,
    build_ladder_result,
    build_stats,
    parse_game_mode,
)
from shared.errors import UpstreamFailure
from shared.test_helpers import (
    make_ladder_payload,
    make_ladder_team,
    make_match_history_payload,
    make_profile_payload,
)

PROFILE_ID = 315071


class TestBuildHeading:
    """Test cases for build_heading."""

    def test_heading(self):
        profile = ProfileResponse.model_validate(make_profile_payload("Serral"))

        heading = build_heading(profile, "eu")

        assert heading.to_wire() == {
            "portrait": {"url": "https://static.starcraft2.com/portraits/1-1.jpg", "frame": "master"},
            "player": {"clan": {"name": "ENCE", "tag": "ENCE"}, "name": "Serral", "server": "eu"},
        }

    def test_frame_without_career(self):
        payload = make_profile_payload()
        del payload["career"]
        profile = ProfileResponse.model_validate(payload)

        assert build_heading(profile, "us").portrait.frame == ""

    def test_missing_clan(self):
        profile = ProfileResponse.model_validate(make_profile_payload(clan_name=None, clan_tag=None))

        heading = build_heading(profile, "kr")

        assert heading.player.clan.name is None
        assert heading.player.clan.tag is None


class TestBuildStats:
    """Test cases for build_stats."""

    def test_stats(self):
        profile = ProfileResponse.model_validate(make_profile_payload())

        stats = build_stats(profile)

        assert stats.to_wire() == {
            "totalCareerGames": 1234,
            "totalRankedGamesThisSeason": 10,
            "seasonWinRatio": 50,
            "highestSoloRank": "grandmaster",
            "highestTeamRank": "master",
        }

    def test_stats_without_ranked_games(self):
        profile = ProfileResponse.model_validate(make_profile_payload(
            season_wins={},
            total_ranked_games=0,
            best_1v1=None,
            best_team=None,
        ))

        stats = build_stats(profile)

        assert stats.total_ranked_games_this_season == 0
        assert stats.season_win_ratio == 0
        assert stats.highest_solo_rank == ""
        assert stats.highest_team_rank == ""


class TestBuildHistory:
    """Test cases for build_history."""

    def test_custom_games_are_dropped(self):
        history = build_history(MatchHistoryResponse.model_validate(make_match_history_payload()))

        assert [record.to_wire() for record in history] == [
            {"mapName": "Oceanborn LE", "mode": "1v1", "result": "win", "date": 1700000000000},
            {"mapName": "Goldenaura LE", "mode": "2v2", "result": "loss", "date": 1699980000000},
        ]

    def test_order_is_preserved(self):
        matches = [
            {"map": f"Map {i}", "type": "Custom" if i % 2 else "1v1", "decision": "Win", "date": 1000 + i}
            for i in range(6)
        ]

        history = build_history(MatchHistoryResponse.model_validate({"matches": matches}))

        assert [record.map_name for record in history] == ["Map 0", "Map 2", "Map 4"]
        assert all(record.mode != "Custom" for record in history)
        assert [record.date_epoch_millis for record in history] == [1000000, 1002000, 1004000]

    def test_empty_history(self):
        assert build_history(MatchHistoryResponse.model_validate({"matches": []})) == []

    def test_missing_decision_fails(self):
        response = MatchHistoryResponse.model_validate({"matches": [{"map": "Oceanborn LE", "type": "1v1", "date": 1}]})

        with pytest.raises(UpstreamFailure):
            build_history(response)

    def test_custom_game_without_decision_is_ignored(self):
        response = MatchHistoryResponse.model_validate({"matches": [{"map": "Arcade", "type": "Custom"}]})

        assert build_history(response) == []


class TestParseGameMode:
    """Test cases for parse_game_mode."""

    @pytest.mark.parametrize("label,expected", [
        ("1v1 Diamond", ("1v1", "diamond")),
        ("2v2 Random Gold", ("2v2", "gold")),
        ("Archon Master", ("archon", "master")),
        ("4v4 Grandmaster", ("4v4", "grandmaster")),
    ])
    def test_labels(self, label, expected):
        assert parse_game_mode(label) == expected

    @pytest.mark.parametrize("label", ["", "1v1", "3v3 Random"])
    def test_unrecognized_labels(self, label):
        with pytest.raises(UpstreamFailure):
            parse_game_mode(label)


class TestBuildLadderResult:
    """Test cases for build_ladder_result."""

    def test_ladder_result(self):
        ladder = LadderResponse.model_validate(make_ladder_payload(PROFILE_ID))

        result = build_ladder_result(ladder, PROFILE_ID)

        assert result.to_wire() == {
            "mode": "1v1",
            "rank": "diamond",
            "wins": 55,
            "losses": 20,
            "race": "zerg",
            "mmr": 4321,
            "divisionRank": 12,
            "teamMembers": ["Serral"],
        }

    def test_first_matching_team_wins(self):
        teams = [
            make_ladder_team([(1, "Other", "protoss")], wins=1, losses=1),
            make_ladder_team([(PROFILE_ID, "Serral", "zerg"), (2, "Partner", "terran")], wins=10, losses=5),
            make_ladder_team([(PROFILE_ID, "Serral", "random"), (3, "Another", "zerg")], wins=99, losses=0),
        ]
        ladder = LadderResponse.model_validate(
            make_ladder_payload(PROFILE_ID, localized_game_mode="2v2 Random Platinum", teams=teams)
        )

        result = build_ladder_result(ladder, PROFILE_ID)

        assert result.mode == "2v2"
        assert result.rank_name == "platinum"
        assert (result.wins, result.losses) == (10, 5)
        assert result.race == "zerg"
        assert result.team_member_names == ["Serral", "Partner"]

    def test_profile_not_on_ladder(self):
        teams = [make_ladder_team([(1, "Other", "protoss")], wins=1, losses=1)]
        ladder = LadderResponse.model_validate(make_ladder_payload(PROFILE_ID, teams=teams))

        with pytest.raises(UpstreamFailure, match="not a member"):
            build_ladder_result(ladder, PROFILE_ID)

    def test_ladder_without_ranks_and_pools(self):
        payload = make_ladder_payload(PROFILE_ID)
        payload["ranksAndPools"] = []
        ladder = LadderResponse.model_validate(payload)

        with pytest.raises(UpstreamFailure):
            build_ladder_result(ladder, PROFILE_ID)
