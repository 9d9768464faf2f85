"""
Unit tests for the bracket data model.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bracket.errors import InvalidInput
from bracket.models import (BYE, TBD, BracketFormat, Match, MatchStatus, Round, Team,
                            is_real, parse_format, parse_status)


class TestTeam:
    """Tests for the Team class."""

    def test_team_creation(self):
        team = Team('team-a', 'Team A', logo='logos/a.png')
        assert team.id == 'team-a'
        assert team.name == 'Team A'
        assert team.logo == 'logos/a.png'

    def test_name_defaults_to_id(self):
        assert Team('team-a').name == 'team-a'

    def test_from_dict(self):
        team = Team.from_dict({'id': 'x', 'name': 'X'})
        assert team == Team('x', 'X')
        assert team.logo is None


class TestParsing:
    """Tests for format and status parsing."""

    def test_parse_format_values(self):
        assert parse_format('single_elimination') == BracketFormat.SINGLE_ELIMINATION
        assert parse_format('double_elimination') == BracketFormat.DOUBLE_ELIMINATION
        assert parse_format('group_stage') == BracketFormat.GROUP_STAGE

    def test_parse_format_aliases(self):
        """Short names used by the web UI are accepted."""
        assert parse_format('elimination') == BracketFormat.SINGLE_ELIMINATION
        assert parse_format('Double-Elimination') == BracketFormat.DOUBLE_ELIMINATION
        assert parse_format('groups') == BracketFormat.GROUP_STAGE

    def test_parse_format_unknown(self):
        with pytest.raises(InvalidInput):
            parse_format('swiss')

    def test_parse_status(self):
        assert parse_status('IN_PROGRESS') == MatchStatus.IN_PROGRESS
        assert parse_status(MatchStatus.COMPLETED) == MatchStatus.COMPLETED

    def test_parse_status_unknown(self):
        with pytest.raises(InvalidInput):
            parse_status('postponed')

    def test_is_real(self):
        assert is_real('team-a')
        assert not is_real(BYE)
        assert not is_real(TBD)
        assert not is_real(None)


class TestMatch:
    """Tests for the Match slot."""

    def test_defaults(self):
        match = Match('cup', 2, 1)
        assert match.key == (2, 1)
        assert match.team1_ref == TBD
        assert match.team2_ref == TBD
        assert match.status == MatchStatus.SCHEDULED
        assert match.round_label == 'Round 2'
        assert match.is_placeholder
        assert not match.is_bye

    def test_loser_ref(self):
        match = Match('cup', 1, 1, 'a', 'b', winner_ref='b')
        assert match.loser_ref == 'a'
        assert Match('cup', 1, 1, 'a', 'b').loser_ref is None

    def test_team_ref_by_side(self):
        match = Match('cup', 1, 1, 'a', 'b')
        match.set_team_ref(2, 'c')
        assert match.team_ref(1) == 'a'
        assert match.team_ref(2) == 'c'

    def test_dict_keeps_routes_and_status(self):
        """Stored form uses plain values so it can be written as YAML."""
        match = Match('cup', 1, 3, 'e', BYE, status='completed', winner_ref='e',
                      winner_to=(2, 2, 1), loser_to=None, round_label='Round 1')
        data = match.to_dict()
        assert data['status'] == 'completed'
        assert data['winner_to'] == [2, 2, 1]
        assert data['loser_to'] is None

        restored = Match.from_dict(data)
        assert restored.winner_to == (2, 2, 1)
        assert restored.status == MatchStatus.COMPLETED
        assert restored.to_dict() == data

    def test_unscheduled_status(self):
        match = Match('cup', 1, 1, 'a', 'b', status=None)
        assert match.status is None
        assert match.to_dict()['status'] is None


class TestRound:
    """Tests for the Round container."""

    def test_matches_sorted_by_number(self):
        bracket_round = Round(1, 'Round 1', [Match('cup', 1, 2), Match('cup', 1, 1)])
        assert [m.match_number for m in bracket_round.matches] == [1, 2]
        assert len(bracket_round) == 2
        assert isinstance(bracket_round.matches, tuple)
