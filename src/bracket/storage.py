"""
YAML file storage for tournaments, teams and matches.

Layout under the data directory:

    tournaments/<tournament_id>/tournament.yaml
    tournaments/<tournament_id>/teams.yaml
    tournaments/<tournament_id>/matches.yaml
    locks/<tournament_id>.lock

Each tournament has its own FileLock. Every write happens under it, and
callers that read-modify-write several records hold it for the whole
operation (the lock is re-entrant for the same store).
"""
import logging
import os
import re
import shutil
from datetime import datetime
from typing import Dict, Iterable, List, Optional

import yaml
from filelock import FileLock

from .errors import Conflict, InvalidInput, NotFound
from .groups import DEFAULT_GROUP_COUNT
from .models import RESERVED_REFS, BracketFormat, Match, Team

logger = logging.getLogger(__name__)

LOCK_TIMEOUT = 10
_UNCHECKED = object()


def get_default_settings() -> Dict:
    """Default settings for a new tournament."""
    return {
        'format': BracketFormat.SINGLE_ELIMINATION.value,
        'group_count': DEFAULT_GROUP_COUNT,
        'bracket_reset': False,
    }


def slugify(name: str) -> str:
    """Convert a name to a filesystem-safe slug."""
    slug = name.lower().strip()
    slug = re.sub(r'[^a-z0-9\s-]', '', slug)
    slug = re.sub(r'[\s-]+', '-', slug)
    slug = slug.strip('-')
    return slug


class YamlStore:
    def __init__(self, data_dir: str, lock_timeout: float = LOCK_TIMEOUT):
        self.data_dir = data_dir
        self.tournaments_dir = os.path.join(data_dir, 'tournaments')
        self.locks_dir = os.path.join(data_dir, 'locks')
        self.lock_timeout = lock_timeout
        self._locks: Dict[str, FileLock] = {}

    # ---- files ----

    def _tournament_dir(self, tournament_id: str) -> str:
        if not tournament_id or '..' in tournament_id or '/' in tournament_id or '\\' in tournament_id:
            raise NotFound(f'Tournament {tournament_id!r} not found')
        return os.path.join(self.tournaments_dir, tournament_id)

    def _path(self, tournament_id: str, filename: str) -> str:
        return os.path.join(self._tournament_dir(tournament_id), filename)

    def _read_yaml(self, path: str):
        if not os.path.exists(path):
            return None
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.warning(f'Failed to parse {path}: {e}')
            return None

    def _write_yaml(self, path: str, data):
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    def lock(self, tournament_id: str) -> FileLock:
        """Return the (re-entrant) lock guarding one tournament's files."""
        self._tournament_dir(tournament_id)
        if tournament_id not in self._locks:
            os.makedirs(self.locks_dir, exist_ok=True)
            self._locks[tournament_id] = FileLock(
                os.path.join(self.locks_dir, f'{tournament_id}.lock'), timeout=self.lock_timeout)
        return self._locks[tournament_id]

    # ---- tournaments ----

    def list_tournaments(self) -> List[Dict]:
        if not os.path.isdir(self.tournaments_dir):
            return []
        tournaments = []
        for entry in sorted(os.listdir(self.tournaments_dir)):
            data = self._read_yaml(os.path.join(self.tournaments_dir, entry, 'tournament.yaml'))
            if data:
                tournaments.append(data)
        return tournaments

    def get_tournament(self, tournament_id: str) -> Dict:
        data = self._read_yaml(self._path(tournament_id, 'tournament.yaml'))
        if not data:
            raise NotFound(f'Tournament {tournament_id!r} not found')
        return data

    def create_tournament(self, name: str, **settings) -> Dict:
        name = (name or '').strip()
        tournament_id = slugify(name)
        if not tournament_id:
            raise InvalidInput('Tournament name is required')
        with self.lock(tournament_id):
            if os.path.exists(self._path(tournament_id, 'tournament.yaml')):
                raise Conflict(f'A tournament with a similar name already exists ("{tournament_id}")')
            tournament = {'id': tournament_id, 'name': name}
            tournament.update(get_default_settings())
            tournament.update({k: v for k, v in settings.items() if v is not None})
            tournament['created'] = datetime.now().isoformat()
            self._write_yaml(self._path(tournament_id, 'tournament.yaml'), tournament)
        logger.info('Created tournament %s', tournament_id)
        return tournament

    def update_tournament(self, tournament_id: str, **changes) -> Dict:
        with self.lock(tournament_id):
            tournament = self.get_tournament(tournament_id)
            tournament.update({k: v for k, v in changes.items() if v is not None and k not in ('id', 'created')})
            self._write_yaml(self._path(tournament_id, 'tournament.yaml'), tournament)
        return tournament

    def delete_tournament(self, tournament_id: str):
        with self.lock(tournament_id):
            self.get_tournament(tournament_id)
            shutil.rmtree(self._tournament_dir(tournament_id))
        logger.info('Deleted tournament %s', tournament_id)

    # ---- teams ----

    def find_teams_by_tournament(self, tournament_id: str) -> List[Team]:
        self.get_tournament(tournament_id)
        data = self._read_yaml(self._path(tournament_id, 'teams.yaml')) or {}
        return [Team.from_dict(item) for item in data.get('teams', [])]

    def _save_teams(self, tournament_id: str, teams: Iterable[Team]):
        self._write_yaml(self._path(tournament_id, 'teams.yaml'),
                         {'teams': [team.to_dict() for team in teams]})

    def add_team(self, tournament_id: str, name: str, logo: Optional[str] = None,
                 team_id: Optional[str] = None) -> Team:
        name = (name or '').strip()
        if not name:
            raise InvalidInput('Team name is required')
        team_id = team_id or slugify(name)
        if not team_id or team_id.upper() in RESERVED_REFS:
            raise InvalidInput(f'{name!r} cannot be used as a team name')
        with self.lock(tournament_id):
            teams = self.find_teams_by_tournament(tournament_id)
            if any(team.id == team_id for team in teams):
                raise Conflict(f'Team {team_id!r} already exists in {tournament_id}')
            team = Team(team_id, name, logo)
            teams.append(team)
            self._save_teams(tournament_id, teams)
        return team

    def remove_team(self, tournament_id: str, team_id: str):
        with self.lock(tournament_id):
            teams = self.find_teams_by_tournament(tournament_id)
            remaining = [team for team in teams if team.id != team_id]
            if len(remaining) == len(teams):
                raise NotFound(f'Team {team_id!r} not found in {tournament_id}')
            self._save_teams(tournament_id, remaining)

    # ---- matches ----

    def find_matches_by_tournament(self, tournament_id: str) -> List[Match]:
        self.get_tournament(tournament_id)
        data = self._read_yaml(self._path(tournament_id, 'matches.yaml')) or {}
        matches = [Match.from_dict(item) for item in data.get('matches', [])]
        return sorted(matches, key=lambda m: m.key)

    def _save_matches(self, tournament_id: str, matches: Iterable[Match]):
        ordered = sorted(matches, key=lambda m: m.key)
        self._write_yaml(self._path(tournament_id, 'matches.yaml'),
                         {'matches': [match.to_dict() for match in ordered]})

    def get_match(self, tournament_id: str, round_number: int, match_number: int) -> Match:
        for match in self.find_matches_by_tournament(tournament_id):
            if match.key == (round_number, match_number):
                return match
        raise NotFound(f'Match {round_number}-{match_number} not found in {tournament_id}')

    def create_match(self, match: Match) -> Match:
        self.create_matches(match.tournament_id, [match])
        return match

    def create_matches(self, tournament_id: str, matches: List[Match], replace: bool = False):
        """
        Persist a batch of matches in one write. Either all are stored or none:
        any (round, match_number) already present, or repeated in the batch,
        raises Conflict. With replace=True the existing matches are dropped first.
        """
        with self.lock(tournament_id):
            existing = [] if replace else self.find_matches_by_tournament(tournament_id)
            if replace:
                self.get_tournament(tournament_id)
            taken = {match.key for match in existing}
            for match in matches:
                match.tournament_id = tournament_id
                if match.key in taken:
                    raise Conflict(
                        f'A match with tournament {tournament_id}, round {match.round} and '
                        f'match number {match.match_number} already exists')
                taken.add(match.key)
            self._save_matches(tournament_id, existing + list(matches))
        logger.debug('Stored %d matches for %s', len(matches), tournament_id)

    def update_match(self, match: Match, expected_status=_UNCHECKED) -> Match:
        expected = {} if expected_status is _UNCHECKED else {match.key: expected_status}
        self.update_matches([match], expected)
        return match

    def update_matches(self, matches: List[Match], expected_statuses: Optional[Dict] = None):
        """
        Write back changed matches. For every key in `expected_statuses` the
        stored status must still equal the expected one, otherwise the whole
        update is rejected with Conflict.
        """
        if not matches:
            return
        expected_statuses = expected_statuses or {}
        tournament_id = matches[0].tournament_id
        with self.lock(tournament_id):
            stored = {m.key: m for m in self.find_matches_by_tournament(tournament_id)}
            for match in matches:
                current = stored.get(match.key)
                if current is None:
                    raise NotFound(f'Match {match.round}-{match.match_number} not found in {tournament_id}')
                if match.key in expected_statuses and current.status != expected_statuses[match.key]:
                    raise Conflict(
                        f'Match {match.round}-{match.match_number} was changed by another request '
                        f'(now {current.status.value if current.status else "unscheduled"})')
            for match in matches:
                stored[match.key] = match
            self._save_matches(tournament_id, stored.values())

    def delete_match(self, tournament_id: str, round_number: int, match_number: int):
        with self.lock(tournament_id):
            matches = self.find_matches_by_tournament(tournament_id)
            remaining = [m for m in matches if m.key != (round_number, match_number)]
            if len(remaining) == len(matches):
                raise NotFound(f'Match {round_number}-{match_number} not found in {tournament_id}')
            self._save_matches(tournament_id, remaining)
