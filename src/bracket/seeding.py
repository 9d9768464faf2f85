"""
Seed normalization for elimination brackets.
"""
import math
from typing import List, Sequence

from .errors import InvalidInput
from .models import BYE, Team


def calculate_bracket_size(num_teams: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_teams <= 0:
        return 0
    return 2 ** math.ceil(math.log2(num_teams))


def calculate_byes(num_teams: int) -> int:
    """Calculate number of byes needed."""
    bracket_size = calculate_bracket_size(num_teams)
    return bracket_size - num_teams


def is_power_of_two(n: int) -> bool:
    return n > 0 and n & (n - 1) == 0


def team_ref(team) -> str:
    return team.id if isinstance(team, Team) else team


def normalize(teams: Sequence) -> List[str]:
    """
    Turn an ordered team list into a power-of-two seed list.

    Real teams keep their relative order and BYE seeds are appended after
    them, so 5 teams become [A, B, C, D, E, BYE, BYE, BYE].
    """
    if not teams:
        raise InvalidInput('Cannot build a bracket without teams')

    seeds = [team_ref(team) for team in teams]
    seeds.extend([BYE] * calculate_byes(len(seeds)))
    return seeds
