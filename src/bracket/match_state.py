"""
Match status state machine.

    SCHEDULED -> IN_PROGRESS -> COMPLETED
    SCHEDULED | IN_PROGRESS -> CANCELLED

COMPLETED and CANCELLED are terminal. The plain transition functions mutate
the Match they are given and never touch storage; apply_transition() is the
persisted form used by the web API.
"""
import logging
from datetime import datetime
from typing import Optional

from .errors import Conflict, InvalidInput, InvalidTransition
from .models import BYE, Match, MatchStatus, is_real, parse_status

logger = logging.getLogger(__name__)

OPEN_STATUSES = (MatchStatus.SCHEDULED, MatchStatus.IN_PROGRESS)


def _describe(match: Match) -> str:
    return f'match {match.round}-{match.match_number}'


def _require_status(match: Match, allowed, action: str):
    if match.status not in allowed:
        current = match.status.value if match.status else 'unscheduled'
        raise InvalidTransition(f'Cannot {action} {_describe(match)}: it is {current}')


def _require_teams(match: Match, action: str):
    if not (is_real(match.team1_ref) and is_real(match.team2_ref)):
        raise InvalidTransition(
            f'Cannot {action} {_describe(match)}: opponents are not decided '
            f'({match.team1_ref} vs {match.team2_ref})')


def _to_iso(value) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    text = str(value).strip()
    if text.endswith(('Z', 'z')):
        # fromisoformat() only accepts a Z suffix from Python 3.11
        text = text[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(text).isoformat()
    except ValueError:
        raise InvalidInput(f'Invalid date: {value!r}') from None


def _check_score(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInput(f'{name} must be an integer')
    if value < 0:
        raise InvalidInput(f'{name} cannot be negative')
    return value


def validate_pairing(team1_ref, team2_ref):
    """A real pairing needs two different teams."""
    if is_real(team1_ref) and team1_ref == team2_ref:
        raise InvalidInput('Team 1 and Team 2 cannot be the same team')


def schedule(match: Match, date) -> Match:
    """Put a new match on the schedule, or move a still-scheduled match."""
    if match.status is not None:
        _require_status(match, (MatchStatus.SCHEDULED,), 'schedule')
    match.scheduled_date = _to_iso(date) if date is not None else None
    match.status = MatchStatus.SCHEDULED
    return match


def start(match: Match) -> Match:
    _require_status(match, (MatchStatus.SCHEDULED,), 'start')
    _require_teams(match, 'start')
    match.status = MatchStatus.IN_PROGRESS
    return match


def complete(match: Match, score1, score2, now: Optional[datetime] = None) -> Match:
    """Record the final score; the higher score wins and ties are rejected."""
    _require_status(match, OPEN_STATUSES, 'complete')
    _require_teams(match, 'complete')
    score1 = _check_score(score1, 'score1')
    score2 = _check_score(score2, 'score2')
    if score1 == score2:
        raise InvalidInput(f'Scores cannot be equal ({score1}-{score2}); a winner is required')

    match.score1 = score1
    match.score2 = score2
    match.winner_ref = match.team1_ref if score1 > score2 else match.team2_ref
    match.completed_date = (now or datetime.now()).isoformat()
    match.status = MatchStatus.COMPLETED
    return match


def cancel(match: Match) -> Match:
    _require_status(match, OPEN_STATUSES, 'cancel')
    match.status = MatchStatus.CANCELLED
    return match


def settle_byes(match: Match) -> bool:
    """
    Resolve a scheduled slot that has a BYE on either side.

    A real team facing a BYE wins without scores; BYE against BYE is
    cancelled. Returns True when the slot was settled.
    """
    if match.status != MatchStatus.SCHEDULED:
        return False
    team1, team2 = match.team1_ref, match.team2_ref
    if team1 == BYE and team2 == BYE:
        match.status = MatchStatus.CANCELLED
        return True
    if team2 == BYE and is_real(team1):
        match.winner_ref = team1
    elif team1 == BYE and is_real(team2):
        match.winner_ref = team2
    else:
        return False
    match.status = MatchStatus.COMPLETED
    return True


def apply_transition(store, tournament_id: str, round_number: int, match_number: int, status,
                     score1=None, score2=None, scheduled_date=None,
                     expected_status=None, now: Optional[datetime] = None) -> Match:
    """
    Load a match, move it to `status` and save it.

    Completing a match hands it to the progression resolver so the winner
    (and loser, in double elimination) moves on. `expected_status` lets a
    caller detect that someone else changed the match since it was read.
    """
    from .progression import advance

    target = parse_status(status)
    with store.lock(tournament_id):
        match = store.get_match(tournament_id, round_number, match_number)
        loaded_status = match.status
        if expected_status is not None and loaded_status != parse_status(expected_status):
            current = loaded_status.value if loaded_status else 'unscheduled'
            raise Conflict(f'{_describe(match)} is {current}, expected {parse_status(expected_status).value}')

        if target == MatchStatus.SCHEDULED:
            schedule(match, scheduled_date)
        elif target == MatchStatus.IN_PROGRESS:
            start(match)
        elif target == MatchStatus.COMPLETED:
            complete(match, score1, score2, now=now)
        else:
            cancel(match)

        store.update_match(match, expected_status=loaded_status)
        logger.info('%s %s -> %s', tournament_id, _describe(match), match.status.value)

        if match.status == MatchStatus.COMPLETED:
            advance(store, match)
    return match
