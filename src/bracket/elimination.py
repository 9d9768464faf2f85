"""
Single elimination bracket generation.
"""
import math
from typing import Callable, List

from .builder import BracketBuilder, RoundLayout
from .errors import InvalidInput
from .models import MAIN, TBD, BracketFormat, Match
from .progression import next_slot
from .seeding import is_power_of_two


def get_round_name(round_number: int, total_rounds: int) -> str:
    """Get the name of a round from its position in the bracket."""
    if round_number == total_rounds:
        return "Final"
    elif round_number == total_rounds - 1:
        return "Semifinal"
    else:
        return f"Round {round_number}"


def total_rounds_for(bracket_size: int) -> int:
    if bracket_size < 2:
        return 0
    return int(math.log2(bracket_size))


def elimination_layout(seeds: List[str], tournament_id, bracket: str,
                       namer: Callable[[int, int], str]) -> List[RoundLayout]:
    """
    Lay out a knockout tree over a power-of-two seed list.

    Round 1 pairs adjacent seeds (0 v 1, 2 v 3, ...). Every later round has
    half as many slots, filled with TBD until results arrive. The final's
    winner_to is left empty for the caller to route.
    """
    total_rounds = total_rounds_for(len(seeds))
    layout = []
    for round_number in range(1, total_rounds + 1):
        label = namer(round_number, total_rounds)
        num_matches = len(seeds) // 2 ** round_number
        round_matches = []
        for match_number in range(1, num_matches + 1):
            if round_number == 1:
                team1, team2 = seeds[2 * match_number - 2], seeds[2 * match_number - 1]
            else:
                team1, team2 = TBD, TBD
            winner_to = next_slot(round_number, match_number) if round_number < total_rounds else None
            round_matches.append(Match(
                tournament_id, round_number, match_number, team1, team2,
                round_label=label, bracket=bracket, winner_to=winner_to,
            ))
        layout.append((round_number, label, bracket, round_matches))
    return layout


class EliminationBuilder(BracketBuilder):
    """Shared validation for the knockout formats."""

    def validate(self, seeds):
        super().validate(seeds)
        if not is_power_of_two(len(seeds)):
            raise InvalidInput(
                f'Elimination brackets need a power-of-two seed list, got {len(seeds)} seeds')


class SingleElimination(EliminationBuilder):
    format = BracketFormat.SINGLE_ELIMINATION

    def layout(self, seeds, tournament_id):
        return elimination_layout(seeds, tournament_id, MAIN, get_round_name)
