"""
Flask JSON API for tournament and bracket administration.
"""
import hmac
import logging
import os
from functools import wraps

from filelock import Timeout
from flask import Flask, jsonify, request

from bracket.assembler import assemble, generate_bracket
from bracket.errors import BracketError, Conflict, InvalidInput, InvalidTransition, NotFound
from bracket.formats import validate_settings
from bracket.match_state import apply_transition, schedule, validate_pairing
from bracket.models import Match
from bracket.storage import YamlStore, get_default_settings
from bracket.team_stats import team_matches, team_record

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('TOURNAMENT_DATA_DIR', os.path.join(BASE_DIR, 'data'))

ERROR_STATUS = {
    InvalidInput: 400,
    NotFound: 404,
    Conflict: 409,
    InvalidTransition: 409,
}


def get_store() -> YamlStore:
    """Storage for the configured data directory."""
    return YamlStore(DATA_DIR)


def admin_required(f):
    """Require a valid ADMIN_API_KEY in the Authorization header."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        expected_key = os.environ.get('ADMIN_API_KEY')
        if not expected_key:
            return jsonify({'error': 'Server not configured for admin operations'}), 500

        auth_header = request.headers.get('Authorization', '')
        if not auth_header.startswith('Bearer '):
            return jsonify({'error': 'Missing or invalid Authorization header'}), 401

        provided_key = auth_header[7:]  # Strip "Bearer "
        if not hmac.compare_digest(expected_key, provided_key):
            return jsonify({'error': 'Invalid API key'}), 403

        return f(*args, **kwargs)
    return decorated_function


@app.errorhandler(BracketError)
def handle_bracket_error(error):
    status = 500
    for error_type, code in ERROR_STATUS.items():
        if isinstance(error, error_type):
            status = code
            break
    app.logger.warning(f'{request.method} {request.path} failed ({status}): {error}')
    return jsonify({'error': str(error), 'type': type(error).__name__}), status


@app.errorhandler(Timeout)
def handle_lock_timeout(error):
    app.logger.warning(f'{request.method} {request.path}: tournament is locked ({error})')
    return jsonify({'error': 'Tournament is busy, try again', 'type': 'Conflict'}), 409


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidInput('Request body must be a JSON object')
    return data


def _positive_int(data: dict, field: str) -> int:
    value = data.get(field)
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidInput(f'{field} must be a positive integer')
    return value


def _settings_from(data: dict) -> dict:
    return {key: data[key] for key in ('format', 'group_count', 'bracket_reset') if key in data}


# ---- tournaments ----

@app.route('/api/tournaments', methods=['GET'])
def api_list_tournaments():
    return jsonify({'tournaments': get_store().list_tournaments()})


@app.route('/api/tournaments', methods=['POST'])
@admin_required
def api_create_tournament():
    """Create a tournament. Body: name, format, group_count, bracket_reset."""
    data = _json_body()
    settings = validate_settings({**get_default_settings(), **_settings_from(data)})
    tournament = get_store().create_tournament(data.get('name', ''), **settings)
    return jsonify(tournament), 201


@app.route('/api/tournaments/<tournament_id>', methods=['GET'])
def api_get_tournament(tournament_id):
    store = get_store()
    tournament = store.get_tournament(tournament_id)
    tournament['teams'] = [team.to_dict() for team in store.find_teams_by_tournament(tournament_id)]
    tournament['match_count'] = len(store.find_matches_by_tournament(tournament_id))
    return jsonify(tournament)


@app.route('/api/tournaments/<tournament_id>', methods=['PUT'])
@admin_required
def api_update_tournament(tournament_id):
    data = _json_body()
    store = get_store()
    current = store.get_tournament(tournament_id)
    settings = validate_settings({**current, **_settings_from(data)})
    changes = {key: settings[key] for key in ('format', 'group_count', 'bracket_reset') if key in settings}
    if data.get('name'):
        changes['name'] = data['name'].strip()
    return jsonify(store.update_tournament(tournament_id, **changes))


@app.route('/api/tournaments/<tournament_id>', methods=['DELETE'])
@admin_required
def api_delete_tournament(tournament_id):
    get_store().delete_tournament(tournament_id)
    app.logger.info(f'Tournament {tournament_id} deleted')
    return jsonify({'success': True})


# ---- teams ----

@app.route('/api/tournaments/<tournament_id>/teams', methods=['GET'])
def api_list_teams(tournament_id):
    teams = get_store().find_teams_by_tournament(tournament_id)
    return jsonify({'teams': [team.to_dict() for team in teams]})


@app.route('/api/tournaments/<tournament_id>/teams', methods=['POST'])
@admin_required
def api_add_team(tournament_id):
    """Add a team. Body: name, logo (optional media reference)."""
    data = _json_body()
    team = get_store().add_team(tournament_id, data.get('name', ''), logo=data.get('logo'))
    return jsonify(team.to_dict()), 201


@app.route('/api/tournaments/<tournament_id>/teams/<team_id>', methods=['DELETE'])
@admin_required
def api_remove_team(tournament_id, team_id):
    get_store().remove_team(tournament_id, team_id)
    return jsonify({'success': True})


@app.route('/api/tournaments/<tournament_id>/teams/<team_id>/matches', methods=['GET'])
def api_team_matches(tournament_id, team_id):
    """A team's match history with its win/loss record."""
    matches = team_matches(get_store(), tournament_id, team_id)
    return jsonify({
        'matches': [match.to_dict() for match in matches],
        'record': team_record(matches, team_id),
    })


# ---- bracket ----

@app.route('/api/tournaments/<tournament_id>/bracket', methods=['GET'])
def api_bracket(tournament_id):
    return jsonify(assemble(get_store(), tournament_id))


@app.route('/api/tournaments/<tournament_id>/bracket', methods=['POST'])
@admin_required
def api_generate_bracket(tournament_id):
    """Generate the bracket. Body: regenerate (bool) to replace an existing one."""
    data = _json_body()
    store = get_store()
    rounds = generate_bracket(store, tournament_id, regenerate=bool(data.get('regenerate')))
    app.logger.info(f'Bracket generated for {tournament_id}: {len(rounds)} rounds')
    return jsonify(assemble(store, tournament_id)), 201


# ---- matches ----

@app.route('/api/tournaments/<tournament_id>/matches', methods=['GET'])
def api_list_matches(tournament_id):
    matches = get_store().find_matches_by_tournament(tournament_id)
    return jsonify({'matches': [match.to_dict() for match in matches]})


@app.route('/api/tournaments/<tournament_id>/matches', methods=['POST'])
@admin_required
def api_create_match(tournament_id):
    """
    Schedule a match outside the generated bracket.
    Body: round, match_number, team1, team2, scheduled_date, label.
    """
    data = _json_body()
    round_number = _positive_int(data, 'round')
    match_number = _positive_int(data, 'match_number')
    team1, team2 = data.get('team1'), data.get('team2')
    if not team1 or not team2:
        raise InvalidInput('Missing team ids')
    validate_pairing(team1, team2)

    store = get_store()
    known = {team.id for team in store.find_teams_by_tournament(tournament_id)}
    for team_id in (team1, team2):
        if team_id not in known:
            raise NotFound(f'Team {team_id!r} not found in {tournament_id}')

    match = Match(tournament_id, round_number, match_number, team1, team2,
                  status=None, round_label=data.get('label'))
    schedule(match, data.get('scheduled_date'))
    store.create_match(match)
    return jsonify(match.to_dict()), 201


@app.route('/api/tournaments/<tournament_id>/matches/<int:round_number>/<int:match_number>', methods=['GET'])
def api_get_match(tournament_id, round_number, match_number):
    match = get_store().get_match(tournament_id, round_number, match_number)
    return jsonify(match.to_dict())


@app.route('/api/tournaments/<tournament_id>/matches/<int:round_number>/<int:match_number>', methods=['DELETE'])
@admin_required
def api_delete_match(tournament_id, round_number, match_number):
    get_store().delete_match(tournament_id, round_number, match_number)
    return jsonify({'success': True})


@app.route('/api/tournaments/<tournament_id>/matches/<int:round_number>/<int:match_number>/status',
           methods=['PUT'])
@admin_required
def api_update_match_status(tournament_id, round_number, match_number):
    """
    Move a match through its lifecycle.
    Body: status (scheduled, in_progress, completed, cancelled), score1/score2
    when completing, scheduled_date when scheduling, expected_status to
    guard against concurrent updates.
    """
    data = _json_body()
    if not data.get('status'):
        raise InvalidInput('Status is required')
    match = apply_transition(
        get_store(), tournament_id, round_number, match_number, data['status'],
        score1=data.get('score1'), score2=data.get('score2'),
        scheduled_date=data.get('scheduled_date'),
        expected_status=data.get('expected_status'),
    )
    return jsonify(match.to_dict())


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    app.run(debug=True, port=5000)
