"""
Shared pytest fixtures for bracket engine tests.

Running tests:
    pytest tests/                  - full suite
    pytest tests/ -m "not slow"   - fast subset (skips the large bracket sizes)
"""
import pytest
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bracket.match_state import apply_transition
from bracket.storage import YamlStore

ADMIN_KEY = 'test-admin-key'


@pytest.fixture
def store(tmp_path):
    """A YamlStore rooted in a fresh temporary directory."""
    return YamlStore(str(tmp_path))


def make_tournament(store, name, team_names, **settings):
    """Create a tournament with teams added in order; returns its id."""
    tournament = store.create_tournament(name, **settings)
    for team_name in team_names:
        store.add_team(tournament['id'], team_name)
    return tournament['id']


def play(store, tournament_id, round_number, match_number, score1, score2):
    """Complete a stored match with the given score."""
    return apply_transition(store, tournament_id, round_number, match_number, 'completed',
                            score1=score1, score2=score2)


@pytest.fixture
def five_team_tournament(store):
    """Single elimination tournament with teams a..e."""
    return make_tournament(store, 'Spring Cup', ['A', 'B', 'C', 'D', 'E'])


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point the Flask app at a temporary data directory and set an admin key."""
    import app as app_module

    monkeypatch.setattr(app_module, 'DATA_DIR', str(tmp_path))
    monkeypatch.setenv('ADMIN_API_KEY', ADMIN_KEY)
    return str(tmp_path)


@pytest.fixture
def client(temp_data_dir):
    """Create a test client for the admin API."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def auth_headers():
    return {'Authorization': f'Bearer {ADMIN_KEY}'}
