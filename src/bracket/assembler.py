"""
Bracket generation for a stored tournament, and the read-only bracket view.
"""
import logging
from typing import Dict, List, Optional

from .errors import Conflict, InvalidInput
from .formats import build, builder_options
from .groups import group_membership
from .models import (BRACKET_RESET, GRAND_FINAL, GROUP, MAIN,
                     BracketFormat, Match, MatchStatus, Round, is_real, parse_format)
from .seeding import normalize

logger = logging.getLogger(__name__)


def generate_bracket(store, tournament_id: str, regenerate: bool = False) -> List[Round]:
    """
    Build the tournament's bracket from its team list and store every slot.

    Runs under the tournament lock. A tournament that already has matches
    raises Conflict unless `regenerate` is set, in which case the old
    matches are replaced in the same write. A group stage also records its
    group membership in the tournament settings, so groups without matches
    still count as a generated bracket.
    """
    with store.lock(tournament_id):
        tournament = store.get_tournament(tournament_id)
        bracket_format = parse_format(tournament.get('format'))
        teams = store.find_teams_by_tournament(tournament_id)
        if not teams:
            raise InvalidInput(f'Tournament {tournament_id!r} has no teams')

        existing = store.find_matches_by_tournament(tournament_id)
        if (existing or tournament.get('groups')) and not regenerate:
            raise Conflict(f'Tournament {tournament_id!r} already has a bracket '
                           f'({len(existing)} matches, {len(tournament.get("groups") or [])} groups)')

        if bracket_format == BracketFormat.GROUP_STAGE:
            seeds = [team.id for team in teams]
        else:
            seeds = normalize(teams)
        options = builder_options(bracket_format, tournament)
        rounds = build(bracket_format, seeds, tournament_id, **options)

        matches = [match for bracket_round in rounds for match in bracket_round.matches]
        store.create_matches(tournament_id, matches, replace=regenerate)
        groups = []
        if bracket_format == BracketFormat.GROUP_STAGE:
            groups = group_membership(seeds, options['group_count'])
        store.update_tournament(tournament_id, groups=groups)

    logger.info('Generated %s bracket for %s: %d rounds, %d matches',
                bracket_format.value, tournament_id, len(rounds), len(matches))
    return rounds


def group_rounds(matches: List[Match], groups: Optional[List[Dict]] = None) -> List[Round]:
    """
    Group matches into Rounds by round number, ordered by match number.

    `groups` is the stored group membership of a group stage; every group
    gets a Round, including single-team groups that have no matches.
    """
    by_round: Dict[int, List[Match]] = {}
    for match in matches:
        by_round.setdefault(match.round, []).append(match)
    labels = {group['round']: group['label'] for group in groups or []}
    rounds = []
    for number in sorted(set(by_round) | set(labels)):
        round_matches = by_round.get(number, [])
        if round_matches:
            first = round_matches[0]
            rounds.append(Round(number, first.round_label, round_matches, first.bracket))
        else:
            rounds.append(Round(number, labels[number], [], GROUP))
    return rounds


def find_champion(rounds: List[Round]) -> Optional[str]:
    """Winner of the deciding match, or None while the bracket is undecided."""
    if not rounds or rounds[-1].bracket == GROUP:
        return None
    by_bracket = {r.bracket: r for r in rounds}

    reset_round = by_bracket.get(BRACKET_RESET)
    if reset_round:
        reset = reset_round.matches[0]
        if reset.status == MatchStatus.COMPLETED:
            return reset.winner_ref
        if reset.status != MatchStatus.CANCELLED:
            return None

    grand_final_round = by_bracket.get(GRAND_FINAL)
    if grand_final_round:
        decider = grand_final_round.matches[0]
    else:
        final_rounds = [r for r in rounds if r.bracket == MAIN]
        if not final_rounds or len(final_rounds[-1].matches) != 1:
            return None
        decider = final_rounds[-1].matches[0]
    if decider.status == MatchStatus.COMPLETED:
        return decider.winner_ref
    return None


def _match_view(match: Match, names: Dict[str, str]) -> Dict:
    view = match.to_dict()
    view['team1_name'] = names.get(match.team1_ref, match.team1_ref)
    view['team2_name'] = names.get(match.team2_ref, match.team2_ref)
    view['winner_name'] = names.get(match.winner_ref, match.winner_ref) if match.winner_ref else None
    view['is_bye'] = match.is_bye
    view['is_placeholder'] = match.is_placeholder
    view['is_playable'] = (match.status in (MatchStatus.SCHEDULED, MatchStatus.IN_PROGRESS)
                           and is_real(match.team1_ref) and is_real(match.team2_ref))
    return view


def assemble(store, tournament_id: str) -> Dict:
    """
    Project a tournament's stored matches into a bracket view.

    Pure read: rounds beyond the current frontier simply show TBD slots.

    Returns dict with:
    - 'tournament_id', 'name', 'format'
    - 'rounds': list of {'round', 'label', 'bracket', 'matches'}, plus 'teams'
      for the groups of a group stage
    - 'teams': list of team dicts
    - 'total_matches', 'completed_matches', 'byes'
    - 'champion': winning team id, or None
    """
    tournament = store.get_tournament(tournament_id)
    teams = store.find_teams_by_tournament(tournament_id)
    names = {team.id: team.name for team in teams}
    groups = tournament.get('groups') or []
    members = {group['round']: group['teams'] for group in groups}
    rounds = group_rounds(store.find_matches_by_tournament(tournament_id), groups)

    round_views = []
    total = completed = byes = 0
    for bracket_round in rounds:
        matches = [_match_view(match, names) for match in bracket_round.matches]
        for match in bracket_round.matches:
            if match.is_bye:
                byes += 1
                continue
            total += 1
            if match.status == MatchStatus.COMPLETED:
                completed += 1
        view = {
            'round': bracket_round.number,
            'label': bracket_round.label,
            'bracket': bracket_round.bracket,
            'matches': matches,
        }
        if bracket_round.number in members:
            view['teams'] = list(members[bracket_round.number])
        round_views.append(view)

    champion = find_champion(rounds)
    return {
        'tournament_id': tournament_id,
        'name': tournament.get('name', tournament_id),
        'format': parse_format(tournament.get('format')).value,
        'teams': [team.to_dict() for team in teams],
        'rounds': round_views,
        'total_matches': total,
        'completed_matches': completed,
        'byes': byes,
        'champion': champion,
        'champion_name': names.get(champion) if champion else None,
    }
