"""
Tests for YAML file storage.
"""
import os

import pytest
import sys
import yaml

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bracket.errors import Conflict, InvalidInput, NotFound
from bracket.models import Match, MatchStatus, Team
from bracket.storage import YamlStore, get_default_settings, slugify


class TestSlugify:
    """Tests for slugify."""

    def test_basic(self):
        assert slugify('Spring Cup 2026') == 'spring-cup-2026'

    def test_strips_punctuation(self):
        assert slugify("  Joe's  Team! ") == 'joes-team'

    def test_empty(self):
        assert slugify('!!!') == ''


class TestTournaments:
    """Tests for tournament records."""

    def test_create_with_defaults(self, store):
        tournament = store.create_tournament('Spring Cup')
        assert tournament['id'] == 'spring-cup'
        assert tournament['name'] == 'Spring Cup'
        for key, value in get_default_settings().items():
            assert tournament[key] == value
        assert store.get_tournament('spring-cup') == tournament

    def test_create_writes_yaml(self, store, tmp_path):
        store.create_tournament('Spring Cup', format='group_stage', group_count=2)
        path = tmp_path / 'tournaments' / 'spring-cup' / 'tournament.yaml'
        data = yaml.safe_load(path.read_text())
        assert data['format'] == 'group_stage'
        assert data['group_count'] == 2

    def test_duplicate_name(self, store):
        store.create_tournament('Spring Cup')
        with pytest.raises(Conflict):
            store.create_tournament('spring  cup')

    def test_name_required(self, store):
        with pytest.raises(InvalidInput):
            store.create_tournament('   ')

    def test_list(self, store):
        assert store.list_tournaments() == []
        store.create_tournament('Beta')
        store.create_tournament('Alpha')
        assert [t['id'] for t in store.list_tournaments()] == ['alpha', 'beta']

    def test_update_keeps_id(self, store):
        store.create_tournament('Cup')
        updated = store.update_tournament('cup', id='other', format='double_elimination')
        assert updated['id'] == 'cup'
        assert store.get_tournament('cup')['format'] == 'double_elimination'

    def test_delete(self, store):
        store.create_tournament('Cup')
        store.delete_tournament('cup')
        with pytest.raises(NotFound):
            store.get_tournament('cup')

    def test_missing(self, store):
        with pytest.raises(NotFound):
            store.get_tournament('nope')
        with pytest.raises(NotFound):
            store.get_tournament('../etc')

    def test_unreadable_yaml_treated_as_missing(self, store, tmp_path):
        store.create_tournament('Cup')
        (tmp_path / 'tournaments' / 'cup' / 'tournament.yaml').write_text('name: [unclosed')
        with pytest.raises(NotFound):
            store.get_tournament('cup')
        assert store.list_tournaments() == []


class TestTeams:
    """Tests for team records."""

    def test_add_and_list_in_order(self, store):
        store.create_tournament('Cup')
        store.add_team('cup', 'Red Lions', logo='red.png')
        store.add_team('cup', 'Blue Sharks')
        teams = store.find_teams_by_tournament('cup')
        assert teams == [Team('red-lions', 'Red Lions', 'red.png'),
                         Team('blue-sharks', 'Blue Sharks')]

    def test_duplicate_team(self, store):
        store.create_tournament('Cup')
        store.add_team('cup', 'Red Lions')
        with pytest.raises(Conflict):
            store.add_team('cup', 'red lions')

    def test_reserved_names(self, store):
        store.create_tournament('Cup')
        for name in ('BYE', 'tbd', ''):
            with pytest.raises(InvalidInput):
                store.add_team('cup', name)

    def test_remove(self, store):
        store.create_tournament('Cup')
        store.add_team('cup', 'A')
        store.remove_team('cup', 'a')
        assert store.find_teams_by_tournament('cup') == []
        with pytest.raises(NotFound):
            store.remove_team('cup', 'a')

    def test_unknown_tournament(self, store):
        with pytest.raises(NotFound):
            store.add_team('nope', 'A')


class TestMatches:
    """Tests for match records."""

    @pytest.fixture
    def tid(self, store):
        return store.create_tournament('Cup')['id']

    def test_create_and_get(self, store, tid):
        store.create_match(Match(tid, 1, 1, 'a', 'b'))
        match = store.get_match(tid, 1, 1)
        assert (match.team1_ref, match.team2_ref) == ('a', 'b')
        with pytest.raises(NotFound):
            store.get_match(tid, 1, 2)

    def test_duplicate_key(self, store, tid):
        store.create_match(Match(tid, 1, 1, 'a', 'b'))
        with pytest.raises(Conflict):
            store.create_match(Match(tid, 1, 1, 'c', 'd'))

    def test_batch_is_all_or_none(self, store, tid):
        store.create_match(Match(tid, 1, 2, 'a', 'b'))
        batch = [Match(tid, 1, 1, 'c', 'd'), Match(tid, 1, 2, 'e', 'f')]
        with pytest.raises(Conflict):
            store.create_matches(tid, batch)
        assert [m.key for m in store.find_matches_by_tournament(tid)] == [(1, 2)]

    def test_batch_repeated_key(self, store, tid):
        with pytest.raises(Conflict):
            store.create_matches(tid, [Match(tid, 1, 1), Match(tid, 1, 1)])
        assert store.find_matches_by_tournament(tid) == []

    def test_replace(self, store, tid):
        store.create_matches(tid, [Match(tid, 1, 1, 'a', 'b')])
        store.create_matches(tid, [Match(tid, 1, 1, 'c', 'd'), Match(tid, 2, 1)], replace=True)
        matches = store.find_matches_by_tournament(tid)
        assert [m.key for m in matches] == [(1, 1), (2, 1)]
        assert matches[0].team1_ref == 'c'

    def test_sorted_by_key(self, store, tid):
        store.create_matches(tid, [Match(tid, 2, 1), Match(tid, 1, 2), Match(tid, 1, 1)])
        assert [m.key for m in store.find_matches_by_tournament(tid)] == [(1, 1), (1, 2), (2, 1)]

    def test_update_with_expected_status(self, store, tid):
        store.create_match(Match(tid, 1, 1, 'a', 'b'))
        match = store.get_match(tid, 1, 1)
        match.status = MatchStatus.IN_PROGRESS
        store.update_match(match, expected_status=MatchStatus.SCHEDULED)
        assert store.get_match(tid, 1, 1).status == MatchStatus.IN_PROGRESS

    def test_stale_update_rejected(self, store, tid):
        """A writer holding an old copy cannot overwrite a newer status."""
        store.create_match(Match(tid, 1, 1, 'a', 'b'))
        first = store.get_match(tid, 1, 1)
        second = store.get_match(tid, 1, 1)

        first.status = MatchStatus.IN_PROGRESS
        store.update_match(first, expected_status=MatchStatus.SCHEDULED)

        second.status = MatchStatus.CANCELLED
        with pytest.raises(Conflict):
            store.update_match(second, expected_status=MatchStatus.SCHEDULED)
        assert store.get_match(tid, 1, 1).status == MatchStatus.IN_PROGRESS

    def test_update_missing(self, store, tid):
        with pytest.raises(NotFound):
            store.update_match(Match(tid, 3, 3))

    def test_delete(self, store, tid):
        store.create_match(Match(tid, 1, 1, 'a', 'b'))
        store.delete_match(tid, 1, 1)
        assert store.find_matches_by_tournament(tid) == []
        with pytest.raises(NotFound):
            store.delete_match(tid, 1, 1)


class TestLocking:
    """Tests for the per-tournament lock."""

    def test_lock_is_reentrant(self, store):
        store.create_tournament('Cup')
        with store.lock('cup'):
            with store.lock('cup'):
                store.add_team('cup', 'A')
        assert len(store.find_teams_by_tournament('cup')) == 1

    def test_lock_file_location(self, store, tmp_path):
        store.create_tournament('Cup')
        lock = store.lock('cup')
        assert lock.lock_file == os.path.join(str(tmp_path), 'locks', 'cup.lock')

    def test_separate_stores_share_data(self, store, tmp_path):
        store.create_tournament('Cup')
        other = YamlStore(str(tmp_path))
        other.add_team('cup', 'A')
        assert [t.id for t in store.find_teams_by_tournament('cup')] == ['a']
