"""
Per-team match history and win/loss record, derived from stored matches.
"""
from typing import Dict, List

from .errors import NotFound
from .match_state import OPEN_STATUSES
from .models import BYE, Match, MatchStatus, is_real


def team_matches(store, tournament_id: str, team_id: str) -> List[Match]:
    """Every stored match the team appears in, in (round, match_number) order."""
    if not any(team.id == team_id for team in store.find_teams_by_tournament(tournament_id)):
        raise NotFound(f'Team {team_id!r} not found in {tournament_id}')
    return [match for match in store.find_matches_by_tournament(tournament_id)
            if team_id in (match.team1_ref, match.team2_ref)]


def team_record(matches: List[Match], team_id: str) -> Dict:
    """
    Summarize a team's results.

    Returns: {'team': id, 'total_matches': n, 'wins': n, 'losses': n,
              'win_rate': percent, 'points_for': n, 'points_against': n,
              'upcoming_matches': n, 'byes': n}

    Only completed matches against a real opponent count towards the record;
    a bye advance is counted separately.
    """
    stats = {
        'team': team_id,
        'total_matches': 0,
        'wins': 0,
        'losses': 0,
        'win_rate': 0,
        'points_for': 0,
        'points_against': 0,
        'upcoming_matches': 0,
        'byes': 0,
    }

    for match in matches:
        if team_id not in (match.team1_ref, match.team2_ref):
            continue
        opponent = match.team2_ref if match.team1_ref == team_id else match.team1_ref

        if match.status in OPEN_STATUSES and opponent != BYE:
            stats['upcoming_matches'] += 1
            continue
        if match.status != MatchStatus.COMPLETED:
            continue
        if not is_real(opponent):
            stats['byes'] += 1
            continue

        stats['total_matches'] += 1
        if match.winner_ref == team_id:
            stats['wins'] += 1
        else:
            stats['losses'] += 1

        own, other = (match.score1, match.score2) if match.team1_ref == team_id \
            else (match.score2, match.score1)
        stats['points_for'] += own or 0
        stats['points_against'] += other or 0

    if stats['total_matches']:
        stats['win_rate'] = round(stats['wins'] / stats['total_matches'] * 100)
    return stats
